"""
Production Lifecycle: Policy Configuration

Optional YAML file that parameterises the engine's gates:

    tracked_approval_roles: [producer, legal, finance, executive]
    extra_module_phases:
      budget-forecast: development
    utility_modules: [activity, settings, search]
    fail_open_unmapped_modules: true

Lookup order: explicit path, then LIFECYCLE_POLICY_FILE, then defaults.
The policy is read once and the resulting tables are immutable.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import PolicyError
from .greenlight_gate import DEFAULT_TRACKED_ROLES, ApprovalRole
from .lifecycle_states import Phase
from .module_gate import UTILITY_MODULES

logger = logging.getLogger("lifecycle_policy")

# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------
POLICY_FILE_ENV = "LIFECYCLE_POLICY_FILE"


class LifecyclePolicy(BaseModel):
    """Validated lifecycle policy. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")

    tracked_approval_roles: List[ApprovalRole] = Field(
        default_factory=lambda: list(DEFAULT_TRACKED_ROLES),
        description="Approvals the greenlight gate waits for",
    )
    extra_module_phases: Dict[str, Phase] = Field(
        default_factory=dict,
        description="Module id -> phase, layered over the built-in module map",
    )
    utility_modules: List[str] = Field(
        default_factory=lambda: sorted(UTILITY_MODULES),
        description="Modules accessible in every state",
    )
    fail_open_unmapped_modules: bool = Field(
        default=True,
        description="Whether modules missing from the map are accessible",
    )


def _validation_messages(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_policy(data: Optional[dict], source: Optional[str] = None) -> LifecyclePolicy:
    """Validate a policy mapping (as loaded from YAML)."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PolicyError("Policy must be a mapping", path=source)

    bad_keys = [repr(key) for key in data if not isinstance(key, str)]
    if bad_keys:
        raise PolicyError(
            "Policy keys must be strings",
            errors=[f"{key}: not a string" for key in bad_keys],
            path=source,
        )

    try:
        policy = LifecyclePolicy.model_validate(data)
    except ValidationError as e:
        raise PolicyError("Policy validation failed", errors=_validation_messages(e), path=source)

    if not policy.tracked_approval_roles:
        raise PolicyError(
            "Policy must track at least one approval role",
            errors=["tracked_approval_roles: empty"],
            path=source,
        )
    return policy


def load_policy(path: Optional[Union[str, Path]] = None) -> LifecyclePolicy:
    """
    Load the lifecycle policy.

    Without a path and without LIFECYCLE_POLICY_FILE the built-in defaults
    are returned. A named file that is missing or invalid raises PolicyError.
    """
    if path is None:
        env_path = os.getenv(POLICY_FILE_ENV)
        if not env_path:
            logger.debug("No lifecycle policy file configured, using defaults")
            return LifecyclePolicy()
        path = env_path

    policy_path = Path(path)
    if not policy_path.exists():
        raise PolicyError(f"Policy file not found: {policy_path}", path=str(policy_path))

    try:
        with open(policy_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PolicyError("Policy file is not valid YAML", errors=[str(e)], path=str(policy_path))

    policy = parse_policy(data, source=str(policy_path))
    logger.info(
        f"Loaded lifecycle policy from {policy_path}: "
        f"{len(policy.tracked_approval_roles)} tracked roles, "
        f"{len(policy.extra_module_phases)} extra modules"
    )
    return policy
