# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class DataScope(BaseModel):
    """Data visibility rules injected by RBAC middleware."""

    own_data_only: bool = False
    user_id: str | None = None
    full_registry: bool = False


class UserContext(BaseModel):
    """Injected by auth middleware into every authenticated request.

    ``user_id`` is the caller's UDYAM ID, the key every registry record uses.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    data_scope: DataScope = Field(default_factory=DataScope)


class TokenPayload(BaseModel):
    """Decoded JWT token claims from Keycloak."""

    sub: str
    udyam_id: str = ""
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)

    @property
    def identity(self) -> str:
        """UDYAM ID claim, falling back to username and subject."""
        return self.udyam_id or self.preferred_username or self.sub
