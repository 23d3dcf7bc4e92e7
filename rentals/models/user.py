"""User, identity and principal models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    """Roles a lister can have."""
    AGENT = "agent"
    OWNER = "owner"


class ProfileRole(str, Enum):
    """Roles a stored user profile can have. System is never stored."""
    AGENT = "agent"
    OWNER = "owner"
    ADMIN = "admin"


class PrincipalRole(str, Enum):
    """Roles an acting identity can have."""
    AGENT = "agent"
    OWNER = "owner"
    ADMIN = "admin"
    SYSTEM = "system"


class AuthUser(BaseModel):
    """Authenticated identity as reported by the identity provider."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uid: str = Field(..., min_length=1, description="Identity provider user ID")
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email_verified: bool = False


class UserProfile(BaseModel):
    """Stored user profile (users table)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uid: str = Field(..., min_length=1, description="Same ID as the auth user")
    email: str = Field(..., description="Email address")
    display_name: Optional[str] = Field(None, description="Full name")
    photo_url: Optional[str] = None
    role: ProfileRole = Field(default=ProfileRole.OWNER, description="agent, owner or admin")
    phone: Optional[str] = Field(None, description="Phone number")
    company: Optional[str] = Field(None, description="Company name (agents)")
    bio: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Principal(BaseModel):
    """The identity a mutating call acts on behalf of."""
    id: str = Field(..., min_length=1)
    role: PrincipalRole
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    reason: Optional[str] = Field(None, description="Audit reason for system principals")

    @model_validator(mode="after")
    def _system_needs_reason(self) -> "Principal":
        if self.role == PrincipalRole.SYSTEM and not (self.reason or "").strip():
            raise ValueError("system principals require an audit reason")
        return self

    @classmethod
    def system(cls, reason: str) -> "Principal":
        """Principal for unauthenticated maintenance work. Always audit-logged."""
        return cls(id="system", role=PrincipalRole.SYSTEM, display_name="System", reason=reason)

    @property
    def is_admin(self) -> bool:
        return self.role == PrincipalRole.ADMIN

    @property
    def is_system(self) -> bool:
        return self.role == PrincipalRole.SYSTEM
