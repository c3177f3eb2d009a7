# This project was developed with assistance from AI tools.
"""
Demo fixture data for TrustPool.

All fixture data is defined as Python dicts so enums can be referenced directly.
The MSME directory holds the UDYAM IDs that resolve to a registered mobile
number at sign-in; sandbox accounts stand in for a hosted checkout.

Simulated for demonstration purposes -- not real business or payment data.
"""

import hashlib
import json
from decimal import Decimal

from db.enums import SandboxAccountStatus, UserRole

# ---------------------------------------------------------------------------
# Registered MSME directory
# ---------------------------------------------------------------------------
# Users pick borrower or lender themselves after first sign-in.

MSME_DIRECTORY = [
    {
        "udyam_id": "UDYAM-PB-20-0001234",
        "phone_number": "+91-9000000001",
        "name": "Punjab Fabrics Ltd",
        "role": UserRole.UNASSIGNED,
    },
    {
        "udyam_id": "UDYAM-KA-19-0005678",
        "phone_number": "+91-9000000002",
        "name": "Karnataka Tech Solutions",
        "role": UserRole.UNASSIGNED,
    },
    {
        "udyam_id": "UDYAM-MH-21-0009012",
        "phone_number": "+91-9000000003",
        "name": "Maharashtra Agri-Hub",
        "role": UserRole.UNASSIGNED,
    },
]


# ---------------------------------------------------------------------------
# Sandbox checkout accounts
# ---------------------------------------------------------------------------
# Passwords are hashed when written; the plaintext here is the published
# demo login shown on the checkout screen.

SANDBOX_ACCOUNTS = [
    {
        "email": "testbuyer1@sandbox.com",
        "password": "123456",
        "user_id": "buyer_1",
        "name": "Test Buyer 1",
        "status": SandboxAccountStatus.ACTIVE,
        "balance": Decimal("50000"),
    },
    {
        "email": "lender@sandbox.com",
        "password": "demo123",
        "user_id": "lender_1",
        "name": "Sandbox Lender",
        "status": SandboxAccountStatus.ACTIVE,
        "balance": Decimal("100000"),
    },
    {
        "email": "blocked@sandbox.com",
        "password": "password123",
        "user_id": "blocked_1",
        "name": "Blocked User",
        "status": SandboxAccountStatus.BLOCKED,
        "balance": Decimal("0"),
    },
]


# ---------------------------------------------------------------------------
# Config hash -- deterministic hash of fixture content for manifest comparison
# ---------------------------------------------------------------------------


def compute_config_hash() -> str:
    """Compute a SHA-256 hash of the fixture data for idempotency checks."""
    content = json.dumps(
        {
            "user_count": len(MSME_DIRECTORY),
            "sandbox_count": len(SANDBOX_ACCOUNTS),
            "udyam_ids": [u["udyam_id"] for u in MSME_DIRECTORY],
            "sandbox_emails": [a["email"] for a in SANDBOX_ACCOUNTS],
        },
        sort_keys=True,
    )
    return hashlib.sha256(content.encode()).hexdigest()
