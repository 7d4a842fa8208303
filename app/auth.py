"""Verification of event-scoped access tokens.

Tokens are issued elsewhere; this service only verifies them and checks the
participant they name still belongs to the token's event.
"""

import os
from typing import Optional
from uuid import UUID

from dotenv import load_dotenv
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import AuthenticationError
from app.models.api.base import CamelModel
from app.repositories.participant_repository import ParticipantRepository

load_dotenv()

JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_COOKIE = "accessToken"
USER_ROLE = "user"

bearer_scheme = HTTPBearer(auto_error=False)


class TokenPayload(CamelModel):
    id: str
    role: Optional[str] = None
    event_id: Optional[str] = None
    event_user_id: Optional[str] = None


class EventIdentity(BaseModel):
    """Authenticated caller: an event participant acting within one event."""

    participant_id: UUID
    event_id: UUID
    user_id: str


def decode_access_token(token: str) -> TokenPayload:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        raise AuthenticationError("Unauthorized: Invalid token")


async def authenticate_token(db: AsyncSession, token: Optional[str]) -> EventIdentity:
    """Verify a token and the participant it names.

    Shared by the REST dependency and the socket handshake.
    """
    if not token:
        raise AuthenticationError("Token must be provided")

    payload = decode_access_token(token)
    if payload.role != USER_ROLE:
        raise AuthenticationError("Unauthorized: Invalid token")
    if not payload.event_id or not payload.event_user_id:
        raise AuthenticationError("Unauthorized: Event context required")

    try:
        participant_id = UUID(payload.event_user_id)
        event_id = UUID(payload.event_id)
    except ValueError:
        raise AuthenticationError("Unauthorized: Invalid token")

    participant = await ParticipantRepository(db).get_by_id(participant_id)
    if not participant:
        raise AuthenticationError("Unauthorized: Event user not found")
    if participant.event_id != event_id:
        raise AuthenticationError("Unauthorized: Event mismatch")

    return EventIdentity(
        participant_id=participant_id, event_id=event_id, user_id=payload.id
    )


async def get_current_participant(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> EventIdentity:
    """Dependency resolving the caller from the cookie or a bearer token."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token and credentials:
        token = credentials.credentials
    return await authenticate_token(db, token)
