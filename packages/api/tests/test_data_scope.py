# This project was developed with assistance from AI tools.
"""Unit tests for data scope construction (core.auth.build_data_scope).

Borrowers see their own pools, lenders and admins browse the full registry,
and unassigned users see nothing until they pick a role.
"""

from db.enums import UserRole

from src.core.auth import build_data_scope


def test_borrower_scope_own_data_only():
    """Borrowers get own_data_only=True with their UDYAM ID."""
    scope = build_data_scope(UserRole.BORROWER, "UDYAM-PB-20-0001234")
    assert scope.own_data_only is True
    assert scope.user_id == "UDYAM-PB-20-0001234"
    assert scope.full_registry is False


def test_lender_scope_full_registry():
    """Lenders browse every pool but keep their id for pledge filtering."""
    scope = build_data_scope(UserRole.LENDER, "UDYAM-KA-19-0005678")
    assert scope.full_registry is True
    assert scope.own_data_only is False
    assert scope.user_id == "UDYAM-KA-19-0005678"


def test_admin_scope_full_registry():
    scope = build_data_scope(UserRole.ADMIN, "admin-123")
    assert scope.full_registry is True
    assert scope.own_data_only is False


def test_unassigned_scope_minimal_access():
    """Unassigned users get no registry visibility."""
    scope = build_data_scope(UserRole.UNASSIGNED, "UDYAM-DL-22-0004321")
    assert scope.own_data_only is False
    assert scope.full_registry is False
