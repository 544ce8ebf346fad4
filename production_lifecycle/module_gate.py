"""
Production Lifecycle: Module Gate

Answers whether a named UI module is unlocked for a project's current
lifecycle state. Each module belongs to one phase; a module is reachable
when its phase is accessible from the current state.

Rules:
- Utility modules (activity, settings, search) are always accessible
- Mapped modules defer to is_phase_accessible
- Unmapped modules are accessible unless the gate is built fail-closed
"""

import logging
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional

from .lifecycle_states import (
    Phase,
    coerce_state,
    get_phase,
    get_phase_display_name,
    is_phase_accessible,
)

logger = logging.getLogger("module_gate")


# -----------------------------------------------------------------------------
# Static Tables
# -----------------------------------------------------------------------------

UTILITY_MODULES: FrozenSet[str] = frozenset({"activity", "settings", "search"})

MODULE_TO_PHASE: Mapping[str, Phase] = MappingProxyType({
    # Development
    "overview": Phase.DEVELOPMENT,
    "brief": Phase.DEVELOPMENT,
    "treatment": Phase.DEVELOPMENT,
    "moodboard": Phase.DEVELOPMENT,
    "scope": Phase.DEVELOPMENT,
    "budget": Phase.DEVELOPMENT,
    "roi": Phase.DEVELOPMENT,
    "vendors": Phase.DEVELOPMENT,
    "contracts": Phase.DEVELOPMENT,
    "dev-timeline": Phase.DEVELOPMENT,
    "decisions": Phase.DEVELOPMENT,
    "change-requests": Phase.DEVELOPMENT,
    "client-portal": Phase.DEVELOPMENT,
    "greenlight": Phase.DEVELOPMENT,
    "approvals": Phase.DEVELOPMENT,

    # Pre-Production
    "team": Phase.PREPRODUCTION,
    "locations": Phase.PREPRODUCTION,
    "equipment": Phase.PREPRODUCTION,
    "call-sheets": Phase.PREPRODUCTION,
    "calendar": Phase.PREPRODUCTION,
    "rights": Phase.PREPRODUCTION,
    "compliance": Phase.PREPRODUCTION,
    "casting": Phase.PREPRODUCTION,
    "safety": Phase.PREPRODUCTION,
    "insurance": Phase.PREPRODUCTION,
    "crew-scheduling": Phase.PREPRODUCTION,

    # Production
    "field-intel": Phase.PRODUCTION,
    "progress-board": Phase.PRODUCTION,
    "dpr": Phase.PRODUCTION,
    "shot-logger": Phase.PRODUCTION,
    "ingest": Phase.PRODUCTION,
    "media-verification": Phase.PRODUCTION,
    "crew-time": Phase.PRODUCTION,
    "tasks": Phase.PRODUCTION,
    "communication": Phase.PRODUCTION,

    # Post-Production
    "assets": Phase.POSTPRODUCTION,
    "collections": Phase.POSTPRODUCTION,
    "versions": Phase.POSTPRODUCTION,
    "review": Phase.POSTPRODUCTION,
    "timeline": Phase.POSTPRODUCTION,
    "edit-pipeline": Phase.POSTPRODUCTION,
    "vfx-tracker": Phase.POSTPRODUCTION,
    "color-pipeline": Phase.POSTPRODUCTION,
    "audio-post": Phase.POSTPRODUCTION,
    "deliverables": Phase.POSTPRODUCTION,
    "qc-checklist": Phase.POSTPRODUCTION,
    "ai-analysis": Phase.POSTPRODUCTION,
    "smart-asset-hub": Phase.POSTPRODUCTION,
    "asset-relationships": Phase.POSTPRODUCTION,
    "stakeholder-portal": Phase.POSTPRODUCTION,
    "downloads": Phase.POSTPRODUCTION,
    "asset-analytics": Phase.POSTPRODUCTION,
    "workflows": Phase.POSTPRODUCTION,

    # Delivery
    "distribution": Phase.DELIVERY,
    "delivery-pipeline": Phase.DELIVERY,
    "archive-dam": Phase.DELIVERY,
    "archive-intelligence": Phase.DELIVERY,
    "master-archive": Phase.DELIVERY,
    "archive": Phase.DELIVERY,
    "reports": Phase.DELIVERY,
    "kpis": Phase.DELIVERY,
})

RESTRICTED_MESSAGE_TEMPLATE = (
    "This module is part of {module_phase}. Complete {current_phase} first to unlock."
)


# -----------------------------------------------------------------------------
# Module Gate
# -----------------------------------------------------------------------------

class ModuleGate:
    """
    Phase-based module visibility.

    Instances are immutable after construction. The default instance uses
    the static tables above; a policy can supply extra module mappings or a
    different utility set.
    """

    def __init__(
        self,
        module_phases: Optional[Mapping[str, Phase]] = None,
        utility_modules: Optional[Iterable[str]] = None,
        fail_open: bool = True,
    ):
        phases = dict(MODULE_TO_PHASE if module_phases is None else module_phases)
        self._module_phases: Mapping[str, Phase] = MappingProxyType(phases)
        self._utility_modules: FrozenSet[str] = frozenset(
            UTILITY_MODULES if utility_modules is None else utility_modules
        )
        self._fail_open = fail_open

    @property
    def module_phases(self) -> Mapping[str, Phase]:
        return self._module_phases

    @property
    def utility_modules(self) -> FrozenSet[str]:
        return self._utility_modules

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    def get_module_phase(self, module_id: str) -> Optional[Phase]:
        """Phase that owns a module, None for utility or unmapped modules."""
        return self._module_phases.get(module_id)

    def can_access_module(self, state: Any, module_id: str) -> bool:
        """Check if a module is unlocked in the given lifecycle state."""
        if module_id in self._utility_modules:
            return True

        module_phase = self._module_phases.get(module_id)
        if module_phase is None:
            if not self._fail_open:
                logger.info(f"Unmapped module '{module_id}' denied (fail-closed gate)")
            return self._fail_open

        return is_phase_accessible(state, module_phase)

    def get_module_restricted_message(self, state: Any, module_id: str) -> Optional[str]:
        """
        Explain why a module is locked.

        Returns None when the module is accessible. Otherwise names the
        module's phase and the current phase that must be completed first.
        """
        if self.can_access_module(state, module_id):
            return None

        module_phase = self._module_phases.get(module_id)
        if module_phase is None:
            # Only reachable on a fail-closed gate
            return f"Module '{module_id}' is not available for this project."

        current_phase = get_phase(state)
        return RESTRICTED_MESSAGE_TEMPLATE.format(
            module_phase=get_phase_display_name(module_phase),
            current_phase=get_phase_display_name(current_phase),
        )

    def get_locked_modules(self, state: Any) -> List[str]:
        """Sorted ids of mapped modules that are locked in the given state."""
        if coerce_state(state) is None:
            return []
        return sorted(
            module_id
            for module_id in self._module_phases
            if not self.can_access_module(state, module_id)
        )

    def with_modules(self, extra_phases: Mapping[str, Phase]) -> "ModuleGate":
        """New gate with extra module mappings layered over this one."""
        merged = dict(self._module_phases)
        merged.update(extra_phases)
        return ModuleGate(
            module_phases=merged,
            utility_modules=self._utility_modules,
            fail_open=self._fail_open,
        )


DEFAULT_MODULE_GATE = ModuleGate()


# -----------------------------------------------------------------------------
# Convenience Functions
# -----------------------------------------------------------------------------

def get_module_phase(module_id: str) -> Optional[Phase]:
    return DEFAULT_MODULE_GATE.get_module_phase(module_id)


def can_access_module(state: Any, module_id: str) -> bool:
    return DEFAULT_MODULE_GATE.can_access_module(state, module_id)


def get_module_restricted_message(state: Any, module_id: str) -> Optional[str]:
    return DEFAULT_MODULE_GATE.get_module_restricted_message(state, module_id)


def get_locked_modules(state: Any) -> List[str]:
    return DEFAULT_MODULE_GATE.get_locked_modules(state)
