"""
Production Lifecycle: Transition Requirements

Checks a project snapshot against the named conditions required to enter a
target state. A transition is permitted only when it is a declared edge in
the state graph AND every required condition of the target holds.

Evaluation per requirement type:
- BOOLEAN: field must be truthy
- COUNT: field must be a number greater than zero
- APPROVAL: field must be truthy (labelled separately for the checklist UI)
- DATE: field must be present and not None. The value is NOT parsed and no
  range or chronology check is made.

Optional requirements are informational and never block.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from numbers import Real
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .lifecycle_states import (
    LifecycleState,
    coerce_state,
    get_valid_next_states,
    is_valid_transition,
)

logger = logging.getLogger("transition_requirements")


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class RequirementType(str, Enum):
    """How a requirement's snapshot field is judged."""
    BOOLEAN = "boolean"
    COUNT = "count"
    APPROVAL = "approval"
    DATE = "date"


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class TransitionRequirement:
    """A single typed condition checked before entering a state."""
    field: str
    label: str
    type: RequirementType
    required: bool = True

    def __post_init__(self):
        if not self.field:
            raise ValueError("Requirement field name cannot be empty")
        if not isinstance(self.type, RequirementType):
            raise ValueError(f"Invalid requirement type: {self.type}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "label": self.label,
            "type": self.type.value,
            "required": self.required,
        }


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of checking a snapshot against a target state's requirements."""
    target_state: Optional[LifecycleState]
    can_transition: bool
    missing_requirements: Tuple[TransitionRequirement, ...] = ()

    @property
    def missing_fields(self) -> List[str]:
        return [r.field for r in self.missing_requirements]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_state": self.target_state.value if self.target_state else None,
            "can_transition": self.can_transition,
            "missing_requirements": [r.to_dict() for r in self.missing_requirements],
        }


@dataclass(frozen=True)
class TransitionDecision:
    """
    Combined edge and requirement verdict for one proposed transition.

    Denials are results, not errors. The caller renders `reason` and the
    missing checklist, and persists the transition only when `allowed`.
    """
    from_state: Optional[LifecycleState]
    to_state: Optional[LifecycleState]
    allowed: bool
    reason: str
    missing_requirements: Tuple[TransitionRequirement, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_state": self.from_state.value if self.from_state else None,
            "to_state": self.to_state.value if self.to_state else None,
            "allowed": self.allowed,
            "reason": self.reason,
            "missing_requirements": [r.to_dict() for r in self.missing_requirements],
        }


# -----------------------------------------------------------------------------
# Requirement Table
# -----------------------------------------------------------------------------

TRANSITION_REQUIREMENTS: Mapping[LifecycleState, Tuple[TransitionRequirement, ...]] = MappingProxyType({
    LifecycleState.LEGAL_REVIEW: (
        TransitionRequirement("briefComplete", "Creative brief completed", RequirementType.BOOLEAN),
    ),
    LifecycleState.BUDGET_APPROVAL: (
        TransitionRequirement("legalApproved", "Legal review approved", RequirementType.APPROVAL),
        TransitionRequirement("contractsSigned", "All contracts signed", RequirementType.BOOLEAN),
    ),
    LifecycleState.GREENLIT: (
        TransitionRequirement("budgetApproved", "Budget approved", RequirementType.APPROVAL),
        TransitionRequirement("stakeholderSignoff", "Stakeholder sign-off", RequirementType.APPROVAL),
    ),
    LifecycleState.PRE_PRODUCTION: (
        TransitionRequirement("preProductionStartDate", "Pre-production start date set", RequirementType.DATE),
    ),
    LifecycleState.PRODUCTION: (
        TransitionRequirement("teamAssigned", "Core team assigned (min 1)", RequirementType.COUNT),
        TransitionRequirement("locationsConfirmed", "Locations confirmed", RequirementType.BOOLEAN),
        TransitionRequirement("callSheetsReady", "Call sheets created", RequirementType.BOOLEAN, required=False),
        TransitionRequirement("permitsObtained", "Required permits obtained", RequirementType.BOOLEAN, required=False),
    ),
    LifecycleState.POST_PRODUCTION: (
        TransitionRequirement("principalPhotographyComplete", "Principal photography complete", RequirementType.BOOLEAN),
        TransitionRequirement("mediaIngested", "Media ingested (min 1 asset)", RequirementType.COUNT),
    ),
    LifecycleState.REVIEW: (
        TransitionRequirement("roughCutComplete", "Rough cut complete", RequirementType.BOOLEAN),
    ),
    LifecycleState.DISTRIBUTION: (
        TransitionRequirement("finalApproved", "Final version approved", RequirementType.APPROVAL),
        TransitionRequirement("deliverablesReady", "Deliverables prepared", RequirementType.BOOLEAN),
    ),
    LifecycleState.COMPLETED: (
        TransitionRequirement("assetsDelivered", "All assets delivered", RequirementType.BOOLEAN),
    ),
    LifecycleState.ARCHIVED: (
        TransitionRequirement("archiveComplete", "Archive package complete", RequirementType.BOOLEAN),
    ),
})


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------

def _is_positive_number(value: Any) -> bool:
    # bool is an int subclass; True is not a count
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return False
    # Decimal NaN raises on ordering comparisons
    if isinstance(value, Decimal) and value.is_nan():
        return False
    return value > 0


def is_requirement_satisfied(requirement: TransitionRequirement, snapshot: Mapping[str, Any]) -> bool:
    """Judge a single requirement against a snapshot, ignoring `required`."""
    value = snapshot.get(requirement.field)

    if requirement.type in (RequirementType.BOOLEAN, RequirementType.APPROVAL):
        return bool(value)
    if requirement.type == RequirementType.COUNT:
        return _is_positive_number(value)
    if requirement.type == RequirementType.DATE:
        return value is not None

    return False


def get_transition_requirements(target_state: Any) -> List[TransitionRequirement]:
    """Requirements attached to a target state (empty if none or unknown)."""
    target = coerce_state(target_state)
    if target is None:
        return []
    return list(TRANSITION_REQUIREMENTS.get(target, ()))


def can_transition_to(target_state: Any, snapshot: Mapping[str, Any]) -> TransitionCheck:
    """
    Check every required condition for entering target_state.

    Every failing requirement is reported, in table order, so the caller can
    render a full checklist rather than the first failure.
    """
    target = coerce_state(target_state)
    if target is None:
        # No requirements are attached to an unknown state
        logger.debug(f"No requirements for unknown state {target_state!r}")
        return TransitionCheck(target_state=None, can_transition=True)

    missing = tuple(
        req for req in TRANSITION_REQUIREMENTS.get(target, ())
        if req.required and not is_requirement_satisfied(req, snapshot)
    )

    return TransitionCheck(
        target_state=target,
        can_transition=not missing,
        missing_requirements=missing,
    )


def evaluate_transition(
    current_state: Any,
    target_state: Any,
    snapshot: Mapping[str, Any],
) -> TransitionDecision:
    """
    Decide whether current_state -> target_state may be committed.

    The edge check runs first; requirements of an undeclared edge are not
    evaluated. The caller must pass a freshly read snapshot and guard its
    own write, since two callers can both pass on stale data.
    """
    source = coerce_state(current_state)
    target = coerce_state(target_state)

    if source is None or target is None:
        return TransitionDecision(
            from_state=source,
            to_state=target,
            allowed=False,
            reason=f"Unknown lifecycle state: {current_state if source is None else target_state!r}",
        )

    if not is_valid_transition(source, target):
        valid = [s.value for s in get_valid_next_states(source)]
        logger.debug(f"Rejected undeclared edge {source.value} -> {target.value}")
        return TransitionDecision(
            from_state=source,
            to_state=target,
            allowed=False,
            reason=f"Invalid transition: {source.value} -> {target.value}. Valid targets: {valid}",
        )

    check = can_transition_to(target, snapshot)
    if not check.can_transition:
        labels = ", ".join(r.label for r in check.missing_requirements)
        return TransitionDecision(
            from_state=source,
            to_state=target,
            allowed=False,
            reason=f"Requirements not met for {target.value}: {labels}",
            missing_requirements=check.missing_requirements,
        )

    return TransitionDecision(
        from_state=source,
        to_state=target,
        allowed=True,
        reason=f"Transition {source.value} -> {target.value} allowed",
    )
