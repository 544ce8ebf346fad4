"""
Production Lifecycle: Greenlight Gate

Combines independent stakeholder approvals into one readiness verdict for
advancing a project to GREENLIT, plus a partial-progress view.

The gate is an AND-join over every tracked approval plus the brief:
- It never passes early: every tracked approval must be True AND a brief
  must exist
- It always reports how far along the join is (completed/total, percent)
- Pending approvers are listed only when their contact is known; an
  unassigned role still counts against completion

Each approval flag has exactly one owning role and one legitimate writer,
so concurrent decisions by different roles need no coordination.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import UnknownApprovalRoleError
from .lifecycle_states import LifecycleState

logger = logging.getLogger("greenlight_gate")


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class ApprovalRole(str, Enum):
    """Stakeholder roles that sign off on a greenlight."""
    PRODUCER = "producer"
    LEGAL = "legal"
    FINANCE = "finance"
    EXECUTIVE = "executive"
    CLIENT = "client"


# -----------------------------------------------------------------------------
# Role Field Layout
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ApprovalRoleFields:
    """Snapshot field names owned by one approval role."""
    role: ApprovalRole
    label: str
    contact_field: str
    approved_field: str
    approved_at_field: str
    approved_by_field: str
    comment_field: str


def _role_fields(role: ApprovalRole, label: str, contact_field: str) -> ApprovalRoleFields:
    prefix = f"greenlight{label}"
    return ApprovalRoleFields(
        role=role,
        label=label,
        contact_field=contact_field,
        approved_field=f"{prefix}Approved",
        approved_at_field=f"{prefix}ApprovedAt",
        approved_by_field=f"{prefix}ApprovedBy",
        comment_field=f"{prefix}Comment",
    )


APPROVAL_ROLE_FIELDS: Mapping[ApprovalRole, ApprovalRoleFields] = MappingProxyType({
    ApprovalRole.PRODUCER: _role_fields(ApprovalRole.PRODUCER, "Producer", "producerEmail"),
    ApprovalRole.LEGAL: _role_fields(ApprovalRole.LEGAL, "Legal", "legalContactEmail"),
    ApprovalRole.FINANCE: _role_fields(ApprovalRole.FINANCE, "Finance", "financeContactEmail"),
    ApprovalRole.EXECUTIVE: _role_fields(ApprovalRole.EXECUTIVE, "Executive", "executiveSponsorEmail"),
    ApprovalRole.CLIENT: _role_fields(ApprovalRole.CLIENT, "Client", "clientContactEmail"),
})

# Declaration order of ApprovalRole
DEFAULT_TRACKED_ROLES: Tuple[ApprovalRole, ...] = tuple(ApprovalRole)

# Roles that must have a contact before approvals are requested
STAKEHOLDER_ROLES: Tuple[ApprovalRole, ...] = (
    ApprovalRole.PRODUCER,
    ApprovalRole.LEGAL,
    ApprovalRole.FINANCE,
    ApprovalRole.EXECUTIVE,
)

BRIEF_FIELD = "brief"
GREENLIGHT_COMPLETED_AT_FIELD = "greenlightCompletedAt"
GREENLIGHT_TARGET = LifecycleState.GREENLIT


# -----------------------------------------------------------------------------
# Approval Record
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RoleApproval:
    """One role's approval flag and assigned contact."""
    role: ApprovalRole
    approved: bool
    contact: Optional[str] = None

    @property
    def label(self) -> str:
        return APPROVAL_ROLE_FIELDS[self.role].label

    @property
    def is_assigned(self) -> bool:
        return bool(self.contact)

    @property
    def is_pending(self) -> bool:
        """Assigned to someone who has not approved yet."""
        return self.is_assigned and not self.approved


@dataclass(frozen=True)
class ApprovalRecord:
    """
    Keyed approval state of a project: role -> RoleApproval.

    Built from a snapshot; holds every role so new roles need no call-site
    changes. `approvals` keeps ApprovalRole declaration order.
    """
    approvals: Tuple[RoleApproval, ...]
    brief_complete: bool

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> "ApprovalRecord":
        approvals = tuple(
            RoleApproval(
                role=role,
                # Only an explicit True counts as an approval
                approved=snapshot.get(fields.approved_field) is True,
                contact=snapshot.get(fields.contact_field) or None,
            )
            for role, fields in APPROVAL_ROLE_FIELDS.items()
        )
        return cls(approvals=approvals, brief_complete=bool(snapshot.get(BRIEF_FIELD)))

    def get(self, role: ApprovalRole) -> RoleApproval:
        for approval in self.approvals:
            if approval.role == role:
                return approval
        raise KeyError(role)

    def select(self, roles: Iterable[ApprovalRole]) -> List[RoleApproval]:
        """Approvals for the given roles, in the order given."""
        return [self.get(role) for role in roles]

    def assigned_roles(self) -> List[ApprovalRole]:
        return [a.role for a in self.approvals if a.is_assigned]

    def unassigned_roles(self, roles: Iterable[ApprovalRole] = STAKEHOLDER_ROLES) -> List[ApprovalRole]:
        return [a.role for a in self.select(roles) if not a.is_assigned]

    def roles_awaiting(
        self,
        email: Optional[str],
        roles: Iterable[ApprovalRole] = DEFAULT_TRACKED_ROLES,
    ) -> List[ApprovalRole]:
        """Roles assigned to `email` that have not been approved yet."""
        if not email:
            return []
        return [a.role for a in self.select(roles) if a.contact == email and not a.approved]


# -----------------------------------------------------------------------------
# Gate Result
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class PendingApprover:
    """An assigned stakeholder whose approval is still outstanding."""
    role: ApprovalRole
    label: str
    contact: str

    @property
    def display(self) -> str:
        return f"{self.label} ({self.contact})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "label": self.label,
            "contact": self.contact,
            "display": self.display,
        }


@dataclass(frozen=True)
class GreenlightStatus:
    """
    Readiness verdict plus partial-progress view of the greenlight gate.

    advance_target is GREENLIT only when every requirement is met.
    """
    completed_count: int
    total_count: int
    progress_percentage: float
    brief_complete: bool
    all_requirements_met: bool
    approved_roles: Tuple[ApprovalRole, ...]
    pending_approvers: Tuple[PendingApprover, ...]
    advance_target: Optional[LifecycleState]

    def __post_init__(self):
        if self.total_count <= 0:
            raise ValueError(f"Greenlight total must be positive, got {self.total_count}")
        if not 0 <= self.completed_count <= self.total_count:
            raise ValueError(
                f"Completed count {self.completed_count} outside 0..{self.total_count}"
            )

    @property
    def can_advance(self) -> bool:
        return self.advance_target is not None

    @property
    def outstanding_count(self) -> int:
        return self.total_count - self.completed_count

    def blockers(self) -> List[str]:
        """Human-readable list of what keeps the gate closed."""
        items = []
        if not self.brief_complete:
            items.append("Smart Brief")
        if self.outstanding_count > 0:
            items.append(f"{self.outstanding_count} approvals")
        return items

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed_count": self.completed_count,
            "total_count": self.total_count,
            "progress_percentage": self.progress_percentage,
            "brief_complete": self.brief_complete,
            "all_requirements_met": self.all_requirements_met,
            "approved_roles": [r.value for r in self.approved_roles],
            "pending_approvers": [p.to_dict() for p in self.pending_approvers],
            "advance_target": self.advance_target.value if self.advance_target else None,
            "can_advance": self.can_advance,
        }


# -----------------------------------------------------------------------------
# Greenlight Gate
# -----------------------------------------------------------------------------

class GreenlightGate:
    """
    N-source AND-join over tracked stakeholder approvals.

    The gate holds only its tracked role list; evaluation reads the
    snapshot and keeps no state between calls.
    """

    def __init__(self, tracked_roles: Iterable[ApprovalRole] = DEFAULT_TRACKED_ROLES):
        roles: List[ApprovalRole] = []
        for role in tracked_roles:
            role = ApprovalRole(role)
            if role not in roles:
                roles.append(role)
        if not roles:
            raise ValueError("GreenlightGate requires at least one tracked approval role")
        self._tracked_roles: Tuple[ApprovalRole, ...] = tuple(roles)

    @property
    def tracked_roles(self) -> Tuple[ApprovalRole, ...]:
        return self._tracked_roles

    def _require_tracked(self, role: ApprovalRole) -> ApprovalRole:
        try:
            role = ApprovalRole(role)
        except ValueError:
            raise UnknownApprovalRoleError(role, [r.value for r in self._tracked_roles])
        if role not in self._tracked_roles:
            raise UnknownApprovalRoleError(role, [r.value for r in self._tracked_roles])
        return role

    def evaluate(self, snapshot: Mapping[str, Any]) -> GreenlightStatus:
        """Evaluate the gate against a project snapshot."""
        return self.evaluate_record(ApprovalRecord.from_snapshot(snapshot))

    def evaluate_record(self, record: ApprovalRecord) -> GreenlightStatus:
        tracked = record.select(self._tracked_roles)

        approved = tuple(a.role for a in tracked if a.approved)
        completed = len(approved)
        total = len(tracked)
        all_met = completed == total and record.brief_complete

        pending = tuple(
            PendingApprover(role=a.role, label=a.label, contact=a.contact)
            for a in tracked
            if a.is_pending
        )

        return GreenlightStatus(
            completed_count=completed,
            total_count=total,
            progress_percentage=completed / total * 100,
            brief_complete=record.brief_complete,
            all_requirements_met=all_met,
            approved_roles=approved,
            pending_approvers=pending,
            advance_target=GREENLIGHT_TARGET if all_met else None,
        )

    def build_approval_update(
        self,
        snapshot: Mapping[str, Any],
        role: ApprovalRole,
        approved: bool,
        actor_email: str,
        decided_at: datetime,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Build the field update for one stakeholder decision.

        Nothing is persisted here. The caller supplies the timestamp and
        writes the returned fields. greenlightCompletedAt is included when
        this decision makes every tracked approval True.
        """
        role = self._require_tracked(role)
        fields = APPROVAL_ROLE_FIELDS[role]
        decided_at_iso = decided_at.isoformat()

        update: Dict[str, Any] = {
            fields.approved_field: bool(approved),
            fields.approved_at_field: decided_at_iso,
            fields.approved_by_field: actor_email,
        }
        if comment:
            update[fields.comment_field] = comment

        record = ApprovalRecord.from_snapshot(snapshot)
        will_be_complete = all(
            bool(approved) if a.role == role else a.approved
            for a in record.select(self._tracked_roles)
        )
        if approved and will_be_complete:
            update[GREENLIGHT_COMPLETED_AT_FIELD] = decided_at_iso
            logger.info(f"Greenlight approvals complete after {role.value} decision by {actor_email}")

        return update


DEFAULT_GREENLIGHT_GATE = GreenlightGate()


# -----------------------------------------------------------------------------
# Convenience Functions
# -----------------------------------------------------------------------------

def evaluate_greenlight(
    snapshot: Mapping[str, Any],
    tracked_roles: Optional[Iterable[ApprovalRole]] = None,
) -> GreenlightStatus:
    gate = DEFAULT_GREENLIGHT_GATE if tracked_roles is None else GreenlightGate(tracked_roles)
    return gate.evaluate(snapshot)


def build_approval_update(
    snapshot: Mapping[str, Any],
    role: ApprovalRole,
    approved: bool,
    actor_email: str,
    decided_at: datetime,
    comment: Optional[str] = None,
) -> Dict[str, Any]:
    return DEFAULT_GREENLIGHT_GATE.build_approval_update(
        snapshot, role, approved, actor_email, decided_at, comment
    )
