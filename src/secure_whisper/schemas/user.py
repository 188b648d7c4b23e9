"""User-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class UserOut(BaseModel):
    """Public profile returned to the account owner."""

    id: int
    username: str
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    username: str = Field(..., min_length=1, max_length=150, description="Unique username")
    email: str | None = Field(None, max_length=320, description="Optional unique email address")
    password: str = Field(..., min_length=1, description="Plaintext password, hashed server side")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        """Reject usernames that are blank after trimming."""
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def blank_email_is_none(cls, v: str | None) -> str | None:
        """Treat an empty email as no email at all."""
        if v is None:
            return None
        return v.strip() or None


class LoginRequest(BaseModel):
    """Schema for login submissions; either identifier field may be used."""

    username_or_email: str | None = Field(None, alias="usernameOrEmail")
    username: str | None = None
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        """Ensure a username or email was supplied."""
        if not (self.username_or_email or self.username):
            raise ValueError("username/email and password required")
        return self

    @property
    def identifier(self) -> str:
        """Return whichever identifier the client sent."""
        return self.username_or_email or self.username or ""


class AuthResponse(BaseModel):
    """Response for registration and login."""

    user: UserOut
    token: str = Field(..., description="Signed session token for the Authorization header")


class MeResponse(BaseModel):
    """Identity asserted by the caller's token."""

    user: UserOut
