"""
Shared identities for production lifecycle tests.

One address per stakeholder role, plus the project owner and an
unrelated user.
"""

OWNER_EMAIL = "owner@studio.test"
PRODUCER_EMAIL = "producer@studio.test"
LEGAL_EMAIL = "legal@studio.test"
FINANCE_EMAIL = "finance@studio.test"
EXECUTIVE_EMAIL = "exec@studio.test"
CLIENT_EMAIL = "client@brand.test"
OUTSIDER_EMAIL = "someone@elsewhere.test"
