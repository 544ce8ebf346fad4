"""
Unit Tests for the Greenlight Gate

Test coverage for:
- Completion counts and progress over tracked approvals
- AND-join: all approvals AND brief required, never early
- Pending approver list omits unassigned roles but counts them
- Advance action only when every requirement is met
- Custom tracked role sets
- Approval update builder
"""

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from production_lifecycle.errors import UnknownApprovalRoleError
from production_lifecycle.greenlight_gate import (
    DEFAULT_TRACKED_ROLES,
    GREENLIGHT_COMPLETED_AT_FIELD,
    ApprovalRecord,
    ApprovalRole,
    GreenlightGate,
    GreenlightStatus,
    build_approval_update,
    evaluate_greenlight,
)
from production_lifecycle.lifecycle_states import LifecycleState

from tests.stakeholders import (
    CLIENT_EMAIL,
    EXECUTIVE_EMAIL,
    FINANCE_EMAIL,
    LEGAL_EMAIL,
    PRODUCER_EMAIL,
)


DECIDED_AT = datetime(2026, 10, 19, 14, 30, 0)


# -----------------------------------------------------------------------------
# Test 1: Approval Record
# -----------------------------------------------------------------------------
class TestApprovalRecord:

    def test_from_snapshot_reads_every_role(self, three_of_five_snapshot):
        record = ApprovalRecord.from_snapshot(three_of_five_snapshot)
        assert [a.role for a in record.approvals] == list(ApprovalRole)
        assert record.get(ApprovalRole.LEGAL).approved is True
        assert record.get(ApprovalRole.LEGAL).contact == LEGAL_EMAIL
        assert record.get(ApprovalRole.CLIENT).approved is False
        assert record.brief_complete is True

    def test_only_explicit_true_counts(self):
        record = ApprovalRecord.from_snapshot({"greenlightProducerApproved": "yes"})
        assert record.get(ApprovalRole.PRODUCER).approved is False

    def test_empty_snapshot(self, unassigned_snapshot):
        record = ApprovalRecord.from_snapshot(unassigned_snapshot)
        assert record.assigned_roles() == []
        assert record.brief_complete is False
        assert record.unassigned_roles() == [
            ApprovalRole.PRODUCER,
            ApprovalRole.LEGAL,
            ApprovalRole.FINANCE,
            ApprovalRole.EXECUTIVE,
        ]

    def test_roles_awaiting(self, assigned_snapshot):
        snapshot = dict(assigned_snapshot, legalContactEmail=PRODUCER_EMAIL)
        record = ApprovalRecord.from_snapshot(snapshot)
        assert record.roles_awaiting(PRODUCER_EMAIL) == [ApprovalRole.PRODUCER, ApprovalRole.LEGAL]
        assert record.roles_awaiting(None) == []
        assert record.roles_awaiting("nobody@studio.test") == []

    def test_record_is_frozen(self, assigned_snapshot):
        record = ApprovalRecord.from_snapshot(assigned_snapshot)
        with pytest.raises(FrozenInstanceError):
            record.brief_complete = False


# -----------------------------------------------------------------------------
# Test 2: Gate Evaluation
# -----------------------------------------------------------------------------
class TestGreenlightEvaluation:

    def test_three_of_five(self, three_of_five_snapshot):
        status = evaluate_greenlight(three_of_five_snapshot)
        assert status.completed_count == 3
        assert status.total_count == 5
        assert status.progress_percentage == 60
        assert status.all_requirements_met is False
        assert status.can_advance is False
        assert status.advance_target is None

    def test_five_of_five_with_brief(self, fully_approved_snapshot):
        status = evaluate_greenlight(fully_approved_snapshot)
        assert status.completed_count == 5
        assert status.progress_percentage == 100
        assert status.all_requirements_met is True
        assert status.can_advance is True
        assert status.advance_target == LifecycleState.GREENLIT
        assert status.pending_approvers == ()

    def test_all_approvals_without_brief_stays_closed(self, fully_approved_snapshot):
        snapshot = dict(fully_approved_snapshot)
        del snapshot["brief"]
        status = evaluate_greenlight(snapshot)
        assert status.completed_count == 5
        assert status.all_requirements_met is False
        assert status.advance_target is None
        assert status.blockers() == ["Smart Brief"]

    def test_never_passes_early(self, fully_approved_snapshot):
        for role in ("Producer", "Legal", "Finance", "Executive", "Client"):
            snapshot = dict(fully_approved_snapshot)
            snapshot[f"greenlight{role}Approved"] = False
            status = evaluate_greenlight(snapshot)
            assert status.completed_count == 4
            assert status.all_requirements_met is False

    def test_pending_approvers_in_role_order(self, three_of_five_snapshot):
        status = evaluate_greenlight(three_of_five_snapshot)
        assert [p.display for p in status.pending_approvers] == [
            f"Executive ({EXECUTIVE_EMAIL})",
            f"Client ({CLIENT_EMAIL})",
        ]

    def test_unassigned_roles_omitted_from_pending_but_counted(self, three_of_five_snapshot):
        snapshot = dict(three_of_five_snapshot)
        del snapshot["clientContactEmail"]
        status = evaluate_greenlight(snapshot)
        assert [p.role for p in status.pending_approvers] == [ApprovalRole.EXECUTIVE]
        assert status.total_count == 5
        assert status.completed_count == 3
        assert status.outstanding_count == 2

    def test_nothing_assigned(self, unassigned_snapshot):
        status = evaluate_greenlight(unassigned_snapshot)
        assert status.completed_count == 0
        assert status.progress_percentage == 0
        assert status.pending_approvers == ()
        assert status.blockers() == ["Smart Brief", "5 approvals"]

    def test_approved_roles(self, three_of_five_snapshot):
        status = evaluate_greenlight(three_of_five_snapshot)
        assert status.approved_roles == (
            ApprovalRole.PRODUCER,
            ApprovalRole.LEGAL,
            ApprovalRole.FINANCE,
        )

    def test_to_dict(self, three_of_five_snapshot):
        data = evaluate_greenlight(three_of_five_snapshot).to_dict()
        assert data["completed_count"] == 3
        assert data["progress_percentage"] == 60
        assert data["can_advance"] is False
        assert data["advance_target"] is None
        assert data["pending_approvers"][0] == {
            "role": "executive",
            "label": "Executive",
            "contact": EXECUTIVE_EMAIL,
            "display": f"Executive ({EXECUTIVE_EMAIL})",
        }

    def test_repeated_evaluation_is_identical(self, three_of_five_snapshot):
        gate = GreenlightGate()
        assert gate.evaluate(three_of_five_snapshot) == gate.evaluate(three_of_five_snapshot)

    def test_status_validation(self):
        with pytest.raises(ValueError):
            GreenlightStatus(
                completed_count=6, total_count=5, progress_percentage=120.0,
                brief_complete=True, all_requirements_met=False,
                approved_roles=(), pending_approvers=(), advance_target=None,
            )


# -----------------------------------------------------------------------------
# Test 3: Tracked Roles
# -----------------------------------------------------------------------------
class TestTrackedRoles:

    def test_default_tracks_all_five(self):
        assert GreenlightGate().tracked_roles == DEFAULT_TRACKED_ROLES
        assert len(DEFAULT_TRACKED_ROLES) == 5

    def test_four_role_gate_ignores_client(self, fully_approved_snapshot):
        snapshot = dict(fully_approved_snapshot, greenlightClientApproved=False)
        gate = GreenlightGate([
            ApprovalRole.PRODUCER,
            ApprovalRole.LEGAL,
            ApprovalRole.FINANCE,
            ApprovalRole.EXECUTIVE,
        ])
        status = gate.evaluate(snapshot)
        assert status.total_count == 4
        assert status.all_requirements_met is True

    def test_roles_accept_strings_and_dedupe(self):
        gate = GreenlightGate(["legal", "legal", "finance"])
        assert gate.tracked_roles == (ApprovalRole.LEGAL, ApprovalRole.FINANCE)

    def test_empty_role_set_rejected(self):
        with pytest.raises(ValueError):
            GreenlightGate([])

    def test_unknown_role_string_rejected(self):
        with pytest.raises(ValueError):
            GreenlightGate(["director"])


# -----------------------------------------------------------------------------
# Test 4: Approval Updates
# -----------------------------------------------------------------------------
class TestApprovalUpdate:

    def test_update_fields(self, assigned_snapshot):
        update = build_approval_update(
            assigned_snapshot, ApprovalRole.FINANCE, True, FINANCE_EMAIL, DECIDED_AT,
            comment="Within budget",
        )
        assert update == {
            "greenlightFinanceApproved": True,
            "greenlightFinanceApprovedAt": "2026-10-19T14:30:00",
            "greenlightFinanceApprovedBy": FINANCE_EMAIL,
            "greenlightFinanceComment": "Within budget",
        }

    def test_last_approval_marks_greenlight_complete(self, fully_approved_snapshot):
        snapshot = dict(fully_approved_snapshot, greenlightClientApproved=False)
        update = build_approval_update(snapshot, "client", True, CLIENT_EMAIL, DECIDED_AT)
        assert update[GREENLIGHT_COMPLETED_AT_FIELD] == "2026-10-19T14:30:00"
        assert "greenlightClientComment" not in update

    def test_rejection_never_completes(self, fully_approved_snapshot):
        update = build_approval_update(
            fully_approved_snapshot, ApprovalRole.LEGAL, False, LEGAL_EMAIL, DECIDED_AT,
        )
        assert update["greenlightLegalApproved"] is False
        assert GREENLIGHT_COMPLETED_AT_FIELD not in update

    def test_partial_approval_does_not_complete(self, assigned_snapshot):
        update = build_approval_update(
            assigned_snapshot, ApprovalRole.PRODUCER, True, PRODUCER_EMAIL, DECIDED_AT,
        )
        assert GREENLIGHT_COMPLETED_AT_FIELD not in update

    def test_untracked_role_rejected(self, assigned_snapshot):
        gate = GreenlightGate(["producer"])
        with pytest.raises(UnknownApprovalRoleError) as exc_info:
            gate.build_approval_update(
                assigned_snapshot, ApprovalRole.CLIENT, True, CLIENT_EMAIL, DECIDED_AT,
            )
        assert exc_info.value.code == "APPROVAL_ROLE_NOT_TRACKED"
        assert exc_info.value.to_dict()["details"]["tracked_roles"] == ["producer"]

    def test_snapshot_not_mutated(self, assigned_snapshot):
        before = dict(assigned_snapshot)
        build_approval_update(assigned_snapshot, "legal", True, LEGAL_EMAIL, DECIDED_AT)
        assert assigned_snapshot == before
