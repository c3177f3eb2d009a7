# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

These are used by both the middleware layer (HTTP request auth) and the
registry WebSocket feed.  Keeping them separate from ``middleware/auth.py``
avoids pulling FastAPI/Starlette imports into code that runs outside the
request lifecycle.
"""

from db.enums import UserRole

from ..schemas.auth import DataScope


def build_data_scope(role: UserRole, user_id: str) -> DataScope:
    """Build data scope rules based on the user's role."""
    if role == UserRole.BORROWER:
        return DataScope(own_data_only=True, user_id=user_id)
    if role == UserRole.LENDER:
        # Lenders browse the whole registry; pledges are filtered by user_id
        return DataScope(full_registry=True, user_id=user_id)
    if role == UserRole.ADMIN:
        return DataScope(full_registry=True)
    # unassigned -- may only pick a role
    return DataScope(user_id=user_id)
