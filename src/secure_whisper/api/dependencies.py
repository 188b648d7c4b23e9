"""Shared API dependencies wiring services to the request scope."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from secure_whisper.core.errors import AuthError, NotFoundError
from secure_whisper.core.settings import settings
from secure_whisper.db.session import get_db
from secure_whisper.repositories.storage import SqlAlchemyStorage, Storage
from secure_whisper.services.chat_id import is_participant
from secure_whisper.services.codec import MessageCodec
from secure_whisper.services.friends import FriendshipService
from secure_whisper.services.hub import FanoutHub
from secure_whisper.services.identity import Identity, IdentityService, SessionTokens
from secure_whisper.services.message_store import MessageStore
from secure_whisper.services.revocation import get_revocation_list

# HTTP Bearer scheme; errors are raised by get_current_identity so they map to 401
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_storage(db: SessionDep) -> Storage:
    """Return the storage backend bound to the request's session."""
    return SqlAlchemyStorage(db)


@lru_cache(maxsize=1)
def get_codec() -> MessageCodec:
    """Return the process-wide message codec built from the configured key."""
    return MessageCodec(settings.encryption_key_bytes)


def get_hub(request: Request) -> FanoutHub:
    """Return the application's fan-out hub."""
    hub: FanoutHub = request.app.state.hub
    return hub


StorageDep = Annotated[Storage, Depends(get_storage)]
CodecDep = Annotated[MessageCodec, Depends(get_codec)]
HubDep = Annotated[FanoutHub, Depends(get_hub)]


@lru_cache(maxsize=1)
def get_session_tokens() -> SessionTokens:
    """Return the token issuer built from the configured signing secret."""
    return SessionTokens(
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
        ttl_minutes=settings.access_token_expire_minutes,
        revocations=get_revocation_list(),
    )


SessionTokensDep = Annotated[SessionTokens, Depends(get_session_tokens)]


def get_identity_service(storage: StorageDep, tokens: SessionTokensDep) -> IdentityService:
    """Return the identity service for this request."""
    return IdentityService(storage, tokens, bcrypt_rounds=settings.bcrypt_rounds)


IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]


def get_friendship_service(storage: StorageDep) -> FriendshipService:
    """Return the friendship service for this request."""
    return FriendshipService(storage)


def get_message_store(storage: StorageDep, codec: CodecDep, hub: HubDep) -> MessageStore:
    """Return a message store that publishes to the application's hub."""
    return MessageStore(storage, codec, publisher=hub)


FriendshipServiceDep = Annotated[FriendshipService, Depends(get_friendship_service)]
MessageStoreDep = Annotated[MessageStore, Depends(get_message_store)]


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    tokens: SessionTokensDep,
) -> Identity:
    """Get the authenticated caller from the Bearer token.

    Raises:
        AuthError: If the header is absent or the token does not verify.
    """
    if credentials is None:
        raise AuthError("Missing token")
    return tokens.verify(credentials.credentials)


# Type alias for current identity dependency
CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]


def ensure_participant(chat_id: str, identity: Identity) -> None:
    """Reject callers who are not one of the chat's two parties.

    Raises:
        NotFoundError: If membership is enforced and the caller is not a party.
    """
    if settings.enforce_chat_membership and not is_participant(chat_id, identity.id):
        raise NotFoundError("Chat not found")
