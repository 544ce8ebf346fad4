#!/usr/bin/env python3
"""
Lifecycle Report

Prints the lifecycle engine's view of a project snapshot as JSON.

Usage:
    python scripts/lifecycle_report.py SNAPSHOT.yaml [ACTOR_EMAIL]

The snapshot may be YAML or JSON (JSON is valid YAML). The lifecycle policy
is taken from LIFECYCLE_POLICY_FILE when set.
"""

import json
import logging
import sys
from pathlib import Path

import yaml

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from production_lifecycle import LifecycleError, ProductionLifecycleEngine  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("lifecycle_report")


def load_snapshot(path: Path) -> dict:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be a mapping, got {type(data).__name__}")
    return data


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(__doc__)
        return 2

    snapshot_path = Path(args[0])
    actor_email = args[1] if len(args) > 1 else None

    try:
        engine = ProductionLifecycleEngine.from_policy_file()
        snapshot = load_snapshot(snapshot_path)
    except LifecycleError as e:
        logger.error(f"Policy error: {e.message}")
        print(json.dumps(e.to_dict(), indent=2))
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Could not read snapshot {snapshot_path}: {e}")
        return 1

    report = engine.describe(snapshot, actor_email)
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
