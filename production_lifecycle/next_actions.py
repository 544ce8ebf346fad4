"""
Production Lifecycle: Next Actions

Derives a prioritized, role-aware list of next actions for one user from a
project snapshot.

CONSTRAINTS:
- RULE-BASED ONLY: a fixed, ordered tuple of independent rules
- NOT EXCLUSIVE: several rules may fire for the same user
- NO DEDUPLICATION: every fired action is kept
- STABLE ORDER: results are stable-sorted by priority (critical, high, medium)
- ADVISORY-ONLY: actions are suggestions; nothing here changes the project

An empty list is a valid outcome ("all caught up").
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .greenlight_gate import (
    DEFAULT_GREENLIGHT_GATE,
    ApprovalRecord,
    ApprovalRole,
    GreenlightGate,
    GreenlightStatus,
    APPROVAL_ROLE_FIELDS,
    STAKEHOLDER_ROLES,
)
from .lifecycle_states import LifecycleState, coerce_state

logger = logging.getLogger("next_actions")


# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

STATE_FIELD = "lifecycleState"
OWNER_FIELD = "projectOwnerEmail"

# Main states before the greenlight is granted
PRE_GREENLIGHT_STATES: Tuple[LifecycleState, ...] = (
    LifecycleState.INTAKE,
    LifecycleState.LEGAL_REVIEW,
    LifecycleState.BUDGET_APPROVAL,
)

CALL_SHEET_STATES: Tuple[LifecycleState, ...] = (
    LifecycleState.PRE_PRODUCTION,
    LifecycleState.PRODUCTION,
)


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class ActionPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


PRIORITY_ORDER: Dict[ActionPriority, int] = {
    ActionPriority.CRITICAL: 0,
    ActionPriority.HIGH: 1,
    ActionPriority.MEDIUM: 2,
}


class ActionId(str, Enum):
    APPROVE = "approve"
    MONITOR_APPROVALS = "monitor-approvals"
    MOVE_TO_PREPRODUCTION = "move-to-preproduction"
    ASSIGN_STAKEHOLDERS = "assign-stakeholders"
    COMPLETE_GREENLIGHT = "complete-greenlight"
    MANAGE_CALL_SHEETS = "manage-call-sheets"


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class NextAction:
    """One suggested action for the acting user."""
    action_id: ActionId
    title: str
    description: str
    priority: ActionPriority

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_id": self.action_id.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
        }


@dataclass(frozen=True)
class ActorContext:
    """The acting identity and its relationship to the project."""
    email: str
    is_owner: bool
    pending_roles: Tuple[ApprovalRole, ...] = ()

    @property
    def is_pending_approver(self) -> bool:
        return bool(self.pending_roles)


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may read. Built once per evaluation."""
    snapshot: Mapping[str, Any]
    state: Optional[LifecycleState]
    record: ApprovalRecord
    greenlight: GreenlightStatus
    actor: ActorContext

    @property
    def is_pre_greenlight(self) -> bool:
        return self.state in PRE_GREENLIGHT_STATES


@dataclass(frozen=True)
class ActionRule:
    """A named predicate that yields at most one action."""
    rule_id: str
    description: str
    evaluate: Callable[[RuleContext], Optional[NextAction]]


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------

def _your_approval_required(ctx: RuleContext) -> Optional[NextAction]:
    if not ctx.actor.is_pending_approver:
        return None
    labels = ", ".join(APPROVAL_ROLE_FIELDS[r].label for r in ctx.actor.pending_roles)
    return NextAction(
        action_id=ActionId.APPROVE,
        title=f"Your Approval Required ({labels})",
        description="This project is waiting for your approval before it can proceed to Pre-Production",
        priority=ActionPriority.CRITICAL,
    )


def _waiting_on_approvals(ctx: RuleContext) -> Optional[NextAction]:
    if not (ctx.actor.is_owner and ctx.is_pre_greenlight):
        return None
    if ctx.actor.is_pending_approver:
        return None
    pending = len(ctx.greenlight.pending_approvers)
    if pending == 0:
        return None
    # Counted over tracked roles that have a contact
    approved = sum(1 for role in ctx.greenlight.approved_roles if ctx.record.get(role).is_assigned)
    return NextAction(
        action_id=ActionId.MONITOR_APPROVALS,
        title=f"Waiting for {pending} Approvals",
        description=(
            f"{approved}/{approved + pending} stakeholders have approved. "
            "Follow up with pending approvers."
        ),
        priority=ActionPriority.HIGH,
    )


def _ready_to_advance(ctx: RuleContext) -> Optional[NextAction]:
    if not (ctx.actor.is_owner and ctx.is_pre_greenlight):
        return None
    if ctx.greenlight.outstanding_count != 0:
        return None
    return NextAction(
        action_id=ActionId.MOVE_TO_PREPRODUCTION,
        title="Ready to Start Pre-Production",
        description="All approvals complete! Move this project to Pre-Production phase.",
        priority=ActionPriority.HIGH,
    )


def _assign_missing_stakeholders(ctx: RuleContext) -> Optional[NextAction]:
    if not ctx.actor.is_owner:
        return None
    missing = ctx.record.unassigned_roles(STAKEHOLDER_ROLES)
    if not missing:
        return None
    return NextAction(
        action_id=ActionId.ASSIGN_STAKEHOLDERS,
        title="Assign Missing Stakeholders",
        description=f"{len(missing)} stakeholder roles need to be assigned before requesting approvals.",
        priority=ActionPriority.MEDIUM,
    )


def _greenlight_gate_blocking(ctx: RuleContext) -> Optional[NextAction]:
    if not ctx.is_pre_greenlight or ctx.greenlight.all_requirements_met:
        return None
    blockers = ", ".join(ctx.greenlight.blockers())
    return NextAction(
        action_id=ActionId.COMPLETE_GREENLIGHT,
        title="Greenlight Gate BLOCKING",
        description=f"Missing: {blockers}. Project cannot advance until requirements are met.",
        priority=ActionPriority.CRITICAL,
    )


def _manage_call_sheets(ctx: RuleContext) -> Optional[NextAction]:
    if ctx.state not in CALL_SHEET_STATES:
        return None
    return NextAction(
        action_id=ActionId.MANAGE_CALL_SHEETS,
        title="Manage Call Sheets",
        description="Create and manage production call sheets with scenes, cast, and crew scheduling.",
        priority=ActionPriority.MEDIUM,
    )


ACTION_RULES: Tuple[ActionRule, ...] = (
    ActionRule("rule-your-approval", "Actor is an assigned approver who has not approved", _your_approval_required),
    ActionRule("rule-waiting-approvals", "Owner waiting on other approvers", _waiting_on_approvals),
    ActionRule("rule-ready-to-advance", "Owner with every tracked approval in", _ready_to_advance),
    ActionRule("rule-assign-stakeholders", "Owner with unassigned stakeholder roles", _assign_missing_stakeholders),
    ActionRule("rule-greenlight-blocking", "Greenlight gate closed before greenlight", _greenlight_gate_blocking),
    ActionRule("rule-call-sheets", "Standing call sheet action in pre-production and production", _manage_call_sheets),
)


# -----------------------------------------------------------------------------
# Recommender
# -----------------------------------------------------------------------------

def snapshot_state(snapshot: Mapping[str, Any]) -> Optional[LifecycleState]:
    """Lifecycle state stored on a snapshot; INTAKE when absent."""
    value = snapshot.get(STATE_FIELD)
    if value is None:
        return LifecycleState.INTAKE
    return coerce_state(value)


def describe_actor(
    snapshot: Mapping[str, Any],
    email: str,
    gate: GreenlightGate = DEFAULT_GREENLIGHT_GATE,
) -> ActorContext:
    """Derive the actor's ownership and pending approval roles from a snapshot."""
    record = ApprovalRecord.from_snapshot(snapshot)
    owner = snapshot.get(OWNER_FIELD)
    return ActorContext(
        email=email,
        is_owner=bool(email) and owner == email,
        pending_roles=tuple(record.roles_awaiting(email, gate.tracked_roles)),
    )


class NextActionRecommender:
    """Evaluates ACTION_RULES in order and stable-sorts the results."""

    def __init__(
        self,
        gate: GreenlightGate = DEFAULT_GREENLIGHT_GATE,
        rules: Tuple[ActionRule, ...] = ACTION_RULES,
    ):
        self._gate = gate
        self._rules = rules

    def recommend(
        self,
        snapshot: Mapping[str, Any],
        actor_email: str,
        actor: Optional[ActorContext] = None,
    ) -> List[NextAction]:
        if actor is None:
            actor = describe_actor(snapshot, actor_email, self._gate)

        record = ApprovalRecord.from_snapshot(snapshot)
        ctx = RuleContext(
            snapshot=snapshot,
            state=snapshot_state(snapshot),
            record=record,
            greenlight=self._gate.evaluate_record(record),
            actor=actor,
        )

        actions: List[NextAction] = []
        for rule in self._rules:
            action = rule.evaluate(ctx)
            if action is not None:
                actions.append(action)

        # sorted() is stable: equal priorities keep rule order
        ordered = sorted(actions, key=lambda a: PRIORITY_ORDER[a.priority])
        logger.debug(f"{len(ordered)} next actions for {actor.email}")
        return ordered


DEFAULT_RECOMMENDER = NextActionRecommender()


def recommend_next_actions(
    snapshot: Mapping[str, Any],
    actor_email: str,
    actor: Optional[ActorContext] = None,
) -> List[NextAction]:
    return DEFAULT_RECOMMENDER.recommend(snapshot, actor_email, actor)
