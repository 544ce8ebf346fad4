"""
Pytest configuration for production lifecycle tests.

This module provides:
1. Project snapshot fixtures at common points of the lifecycle
2. Identities come from tests/stakeholders.py
"""

import pytest

from tests.stakeholders import (
    CLIENT_EMAIL,
    EXECUTIVE_EMAIL,
    FINANCE_EMAIL,
    LEGAL_EMAIL,
    OWNER_EMAIL,
    PRODUCER_EMAIL,
)


# -----------------------------------------------------------------------------
# Snapshot Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def assigned_snapshot():
    """INTAKE project with every stakeholder assigned, nothing approved."""
    return {
        "lifecycleState": "INTAKE",
        "projectOwnerEmail": OWNER_EMAIL,
        "brief": {"summary": "30s spot for spring launch"},
        "producerEmail": PRODUCER_EMAIL,
        "legalContactEmail": LEGAL_EMAIL,
        "financeContactEmail": FINANCE_EMAIL,
        "executiveSponsorEmail": EXECUTIVE_EMAIL,
        "clientContactEmail": CLIENT_EMAIL,
        "greenlightProducerApproved": False,
        "greenlightLegalApproved": False,
        "greenlightFinanceApproved": False,
        "greenlightExecutiveApproved": False,
        "greenlightClientApproved": False,
    }


@pytest.fixture
def three_of_five_snapshot(assigned_snapshot):
    """Producer, legal and finance approved; executive and client pending."""
    snapshot = dict(assigned_snapshot)
    snapshot.update({
        "greenlightProducerApproved": True,
        "greenlightLegalApproved": True,
        "greenlightFinanceApproved": True,
    })
    return snapshot


@pytest.fixture
def fully_approved_snapshot(assigned_snapshot):
    """Every approval in and a brief on file."""
    snapshot = dict(assigned_snapshot)
    snapshot.update({
        "lifecycleState": "BUDGET_APPROVAL",
        "greenlightProducerApproved": True,
        "greenlightLegalApproved": True,
        "greenlightFinanceApproved": True,
        "greenlightExecutiveApproved": True,
        "greenlightClientApproved": True,
    })
    return snapshot


@pytest.fixture
def unassigned_snapshot():
    """Fresh INTAKE project: owner only, no stakeholders, no brief."""
    return {
        "lifecycleState": "INTAKE",
        "projectOwnerEmail": OWNER_EMAIL,
    }
