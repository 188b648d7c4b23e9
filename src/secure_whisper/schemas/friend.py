"""Friendship Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AddFriendRequest(BaseModel):
    """Schema for adding a friend by username or email."""

    identifier: str | None = Field(None, description="Username or email of the new friend")
    username: str | None = Field(None, description="Accepted in place of identifier")

    @model_validator(mode="after")
    def require_identifier(self) -> "AddFriendRequest":
        """Ensure one of the identifier fields was supplied."""
        if not ((self.identifier or "").strip() or (self.username or "").strip()):
            raise ValueError("username or email required")
        return self

    @property
    def target(self) -> str:
        """Return whichever identifier the client sent."""
        return (self.identifier or self.username or "").strip()


class FriendSummary(BaseModel):
    """Public profile of a friend."""

    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class FriendResponse(BaseModel):
    """Envelope for a newly added friend."""

    friend: FriendSummary


class FriendListResponse(BaseModel):
    """Envelope for the caller's friends."""

    friends: list[FriendSummary]
