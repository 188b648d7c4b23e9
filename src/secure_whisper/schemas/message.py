"""Chat message Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for posting a message to a chat."""

    chat_id: str = Field(..., alias="chatId", min_length=1, description="Canonical chat id")
    content: str = Field(..., min_length=1, description="Plaintext body; encrypted before storage")

    model_config = ConfigDict(populate_by_name=True)


class ClearChatRequest(BaseModel):
    """Schema for removing every message of a chat."""

    chat_id: str = Field(..., alias="chatId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class MessageOut(BaseModel):
    """Decrypted message as returned to participants."""

    id: int
    chat_id: str
    sender_id: int
    content: str
    created_at: str = Field(..., description="ISO-8601 UTC timestamp; informational only")


class MessageResponse(BaseModel):
    """Envelope for a single message."""

    message: MessageOut


class MessageListResponse(BaseModel):
    """Envelope for chat history in ascending order."""

    messages: list[MessageOut]


class ClearChatResponse(BaseModel):
    """Result of clearing a chat."""

    deleted: int
