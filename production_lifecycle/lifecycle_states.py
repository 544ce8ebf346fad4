"""
Production Lifecycle: State Graph & Phase Map

Defines the lifecycle states a production moves through, the static
transition graph between them, and the projection of each state onto one
of five coarse phases used for access control.

States:
    INTAKE → LEGAL_REVIEW → BUDGET_APPROVAL → GREENLIT → PRE_PRODUCTION →
    PRODUCTION → POST_PRODUCTION → REVIEW → DISTRIBUTION → COMPLETED ⇄ ARCHIVED
    (ON_HOLD can be entered from any active state and resumes to any main state)
    (CANCELLED can be entered from any active state and is terminal)

CONSTRAINTS:
- Legality comes ONLY from VALID_TRANSITIONS, never from state ordering
- Phase is a pure function of state
- Unknown states degrade permissively for visibility, never for transitions
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger("lifecycle_states")


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class LifecycleState(str, Enum):
    """
    Production lifecycle states.

    Values equal the tag names so that a snapshot's stored string
    coerces directly.
    """
    INTAKE = "INTAKE"
    LEGAL_REVIEW = "LEGAL_REVIEW"
    BUDGET_APPROVAL = "BUDGET_APPROVAL"
    GREENLIT = "GREENLIT"
    PRE_PRODUCTION = "PRE_PRODUCTION"
    PRODUCTION = "PRODUCTION"
    POST_PRODUCTION = "POST_PRODUCTION"
    REVIEW = "REVIEW"
    DISTRIBUTION = "DISTRIBUTION"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"

    @classmethod
    def special_states(cls) -> Tuple["LifecycleState", ...]:
        """States that sit outside the main pipeline."""
        return (cls.ON_HOLD, cls.CANCELLED)

    @classmethod
    def terminal_states(cls) -> Tuple["LifecycleState", ...]:
        """States with no way out."""
        return (cls.CANCELLED,)


class Phase(str, Enum):
    """Coarse production phases, declared in pipeline order."""
    DEVELOPMENT = "development"
    PREPRODUCTION = "preproduction"
    PRODUCTION = "production"
    POSTPRODUCTION = "postproduction"
    DELIVERY = "delivery"


# -----------------------------------------------------------------------------
# Static Tables
# -----------------------------------------------------------------------------

PHASE_ORDER: Tuple[Phase, ...] = (
    Phase.DEVELOPMENT,
    Phase.PREPRODUCTION,
    Phase.PRODUCTION,
    Phase.POSTPRODUCTION,
    Phase.DELIVERY,
)

# Main pipeline in display order (ON_HOLD and CANCELLED excluded)
STATE_ORDER: Tuple[LifecycleState, ...] = (
    LifecycleState.INTAKE,
    LifecycleState.LEGAL_REVIEW,
    LifecycleState.BUDGET_APPROVAL,
    LifecycleState.GREENLIT,
    LifecycleState.PRE_PRODUCTION,
    LifecycleState.PRODUCTION,
    LifecycleState.POST_PRODUCTION,
    LifecycleState.REVIEW,
    LifecycleState.DISTRIBUTION,
    LifecycleState.COMPLETED,
    LifecycleState.ARCHIVED,
)

STATE_TO_PHASE: Mapping[LifecycleState, Phase] = MappingProxyType({
    LifecycleState.INTAKE: Phase.DEVELOPMENT,
    LifecycleState.LEGAL_REVIEW: Phase.DEVELOPMENT,
    LifecycleState.BUDGET_APPROVAL: Phase.DEVELOPMENT,
    LifecycleState.GREENLIT: Phase.PREPRODUCTION,
    LifecycleState.PRE_PRODUCTION: Phase.PREPRODUCTION,
    LifecycleState.PRODUCTION: Phase.PRODUCTION,
    LifecycleState.POST_PRODUCTION: Phase.POSTPRODUCTION,
    LifecycleState.REVIEW: Phase.POSTPRODUCTION,
    LifecycleState.DISTRIBUTION: Phase.DELIVERY,
    LifecycleState.COMPLETED: Phase.DELIVERY,
    LifecycleState.ARCHIVED: Phase.DELIVERY,
    # Nominal only - see is_phase_accessible
    LifecycleState.ON_HOLD: Phase.DEVELOPMENT,
    LifecycleState.CANCELLED: Phase.DEVELOPMENT,
})

_SUSPEND_OR_CANCEL = (LifecycleState.ON_HOLD, LifecycleState.CANCELLED)

VALID_TRANSITIONS: Mapping[LifecycleState, Tuple[LifecycleState, ...]] = MappingProxyType({
    LifecycleState.INTAKE: (LifecycleState.LEGAL_REVIEW,) + _SUSPEND_OR_CANCEL,
    LifecycleState.LEGAL_REVIEW: (
        LifecycleState.INTAKE,
        LifecycleState.BUDGET_APPROVAL,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.BUDGET_APPROVAL: (
        LifecycleState.LEGAL_REVIEW,
        LifecycleState.GREENLIT,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.GREENLIT: (LifecycleState.PRE_PRODUCTION,) + _SUSPEND_OR_CANCEL,
    LifecycleState.PRE_PRODUCTION: (
        LifecycleState.GREENLIT,
        LifecycleState.PRODUCTION,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.PRODUCTION: (
        LifecycleState.PRE_PRODUCTION,
        LifecycleState.POST_PRODUCTION,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.POST_PRODUCTION: (
        LifecycleState.PRODUCTION,
        LifecycleState.REVIEW,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.REVIEW: (
        LifecycleState.POST_PRODUCTION,
        LifecycleState.DISTRIBUTION,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.DISTRIBUTION: (
        LifecycleState.REVIEW,
        LifecycleState.COMPLETED,
    ) + _SUSPEND_OR_CANCEL,
    LifecycleState.COMPLETED: (LifecycleState.ARCHIVED, LifecycleState.DISTRIBUTION),
    LifecycleState.ARCHIVED: (LifecycleState.COMPLETED,),  # un-archive
    LifecycleState.ON_HOLD: STATE_ORDER,  # resume to any main state
    LifecycleState.CANCELLED: (),  # Terminal state
})

STATE_DISPLAY_NAMES: Mapping[LifecycleState, str] = MappingProxyType({
    LifecycleState.INTAKE: "Intake",
    LifecycleState.LEGAL_REVIEW: "Legal Review",
    LifecycleState.BUDGET_APPROVAL: "Budget Approval",
    LifecycleState.GREENLIT: "Greenlit",
    LifecycleState.PRE_PRODUCTION: "Pre-Production",
    LifecycleState.PRODUCTION: "Production",
    LifecycleState.POST_PRODUCTION: "Post-Production",
    LifecycleState.REVIEW: "Review",
    LifecycleState.DISTRIBUTION: "Distribution",
    LifecycleState.COMPLETED: "Completed",
    LifecycleState.ARCHIVED: "Archived",
    LifecycleState.ON_HOLD: "On Hold",
    LifecycleState.CANCELLED: "Cancelled",
})

PHASE_DISPLAY_NAMES: Mapping[Phase, str] = MappingProxyType({
    Phase.DEVELOPMENT: "Development",
    Phase.PREPRODUCTION: "Pre-Production",
    Phase.PRODUCTION: "Production",
    Phase.POSTPRODUCTION: "Post-Production",
    Phase.DELIVERY: "Delivery",
})

SUGGESTED_NEXT_ACTIONS: Mapping[LifecycleState, str] = MappingProxyType({
    LifecycleState.INTAKE: "Complete creative brief and submit for legal review",
    LifecycleState.LEGAL_REVIEW: "Review contracts and approve for budget review",
    LifecycleState.BUDGET_APPROVAL: "Finalize budget and get stakeholder sign-off",
    LifecycleState.GREENLIT: "Begin pre-production planning",
    LifecycleState.PRE_PRODUCTION: "Finalize crew, locations, and call sheets",
    LifecycleState.PRODUCTION: "Complete principal photography",
    LifecycleState.POST_PRODUCTION: "Complete rough cut for review",
    LifecycleState.REVIEW: "Get final approval and prepare deliverables",
    LifecycleState.DISTRIBUTION: "Deliver assets and mark project complete",
    LifecycleState.COMPLETED: "Create archive package",
    LifecycleState.ARCHIVED: "Project archived",
    LifecycleState.ON_HOLD: "Review blockers and resume project",
    LifecycleState.CANCELLED: "Project cancelled",
})

DEFAULT_NEXT_ACTION = "Continue with current phase"

# Progress denominator excludes COMPLETED and ARCHIVED
_PROGRESS_STEPS = len(STATE_ORDER) - 2
ON_HOLD_PROGRESS = 50


# -----------------------------------------------------------------------------
# Coercion
# -----------------------------------------------------------------------------

def coerce_state(value: Any) -> Optional[LifecycleState]:
    """Return the LifecycleState for a state or its string, None if unknown."""
    if isinstance(value, LifecycleState):
        return value
    try:
        return LifecycleState(value)
    except ValueError:
        logger.debug(f"Unknown lifecycle state: {value!r}")
        return None


def coerce_phase(value: Any) -> Optional[Phase]:
    """Return the Phase for a phase or its string, None if unknown."""
    if isinstance(value, Phase):
        return value
    try:
        return Phase(value)
    except ValueError:
        logger.debug(f"Unknown phase: {value!r}")
        return None


# -----------------------------------------------------------------------------
# State Graph
# -----------------------------------------------------------------------------

def is_valid_transition(from_state: Any, to_state: Any) -> bool:
    """Check whether from_state -> to_state is a declared edge."""
    source = coerce_state(from_state)
    target = coerce_state(to_state)
    if source is None or target is None:
        return False
    return target in VALID_TRANSITIONS.get(source, ())


def get_valid_next_states(state: Any) -> List[LifecycleState]:
    """Get the declared out-edges of a state (empty for CANCELLED)."""
    current = coerce_state(state)
    if current is None:
        return []
    return list(VALID_TRANSITIONS.get(current, ()))


def get_state_index(state: Any) -> int:
    """
    Stable display position of a main state.

    Returns -1 for ON_HOLD, CANCELLED and unknown values. This ordering is
    for display only; it never decides whether a transition is legal.
    """
    current = coerce_state(state)
    if current is None or current not in STATE_ORDER:
        return -1
    return STATE_ORDER.index(current)


# -----------------------------------------------------------------------------
# Phase Map
# -----------------------------------------------------------------------------

def get_phase(state: Any) -> Optional[Phase]:
    """Get the phase a state belongs to."""
    current = coerce_state(state)
    if current is None:
        return None
    return STATE_TO_PHASE[current]


def get_phase_order_index(phase: Any) -> int:
    """Position of a phase in PHASE_ORDER, -1 if unknown."""
    target = coerce_phase(phase)
    if target is None:
        return -1
    return PHASE_ORDER.index(target)


def get_phase_index(state: Any) -> int:
    """Position of a state's phase in PHASE_ORDER, -1 if unknown."""
    phase = get_phase(state)
    if phase is None:
        return -1
    return PHASE_ORDER.index(phase)


def is_phase_accessible(current_state: Any, target_phase: Any) -> bool:
    """
    Check if a phase is visible from the current lifecycle state.

    ON_HOLD and CANCELLED expose every phase (read-only by convention).
    Otherwise the current phase and every earlier phase are accessible,
    later phases are not. Unknown inputs are treated as accessible.
    """
    current = coerce_state(current_state)
    if current is None or current in LifecycleState.special_states():
        return True

    target_index = get_phase_order_index(target_phase)
    if target_index < 0:
        return True

    return target_index <= get_phase_index(current)


def get_accessible_phases(current_state: Any) -> List[Phase]:
    """Phases visible from the current state, in pipeline order."""
    return [p for p in PHASE_ORDER if is_phase_accessible(current_state, p)]


# -----------------------------------------------------------------------------
# Display Helpers
# -----------------------------------------------------------------------------

def get_state_display_name(state: Any) -> str:
    current = coerce_state(state)
    if current is None:
        return str(state)
    return STATE_DISPLAY_NAMES[current]


def get_phase_display_name(phase: Any) -> str:
    target = coerce_phase(phase)
    if target is None:
        return str(phase)
    return PHASE_DISPLAY_NAMES[target]


def get_project_progress(state: Any) -> int:
    """
    Overall progress percentage for a state.

    CANCELLED is 0, COMPLETED and ARCHIVED are 100, ON_HOLD is an
    indeterminate 50. Other states step evenly through the pipeline.
    """
    current = coerce_state(state)
    if current is None:
        return 0
    if current == LifecycleState.CANCELLED:
        return 0
    if current in (LifecycleState.COMPLETED, LifecycleState.ARCHIVED):
        return 100
    if current == LifecycleState.ON_HOLD:
        return ON_HOLD_PROGRESS

    return round((STATE_ORDER.index(current) + 1) * 100 / _PROGRESS_STEPS)


def get_suggested_next_action(state: Any) -> str:
    current = coerce_state(state)
    if current is None:
        return DEFAULT_NEXT_ACTION
    return SUGGESTED_NEXT_ACTIONS.get(current, DEFAULT_NEXT_ACTION)


def describe_state(state: Any) -> Dict[str, Any]:
    """Serializable summary of a state for callers that render it."""
    current = coerce_state(state)
    phase = get_phase(current) if current is not None else None
    return {
        "state": current.value if current is not None else state,
        "display_name": get_state_display_name(state),
        "phase": phase.value if phase is not None else None,
        "phase_display_name": get_phase_display_name(phase) if phase is not None else None,
        "progress": get_project_progress(state),
        "suggested_next_action": get_suggested_next_action(state),
        "valid_next_states": [s.value for s in get_valid_next_states(state)],
    }
