"""Socket.IO server shared by the chat gateway and the REST fan-out."""

import os
from typing import List, Union
from uuid import UUID

import socketio
from dotenv import load_dotenv

load_dotenv()

NAMESPACE = "/requirements"


def _cors_origins() -> Union[str, List[str]]:
    raw = os.getenv("SOCKETIO_CORS_ORIGINS", "*").strip()
    if raw == "*":
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=_cors_origins(),
    logger=False,
    engineio_logger=False,
)


def user_channel(participant_id: UUID) -> str:
    """Personal room every authenticated socket of a participant joins."""
    return f"user:{participant_id}"


def chat_room(chat_id: UUID) -> str:
    return f"chat:{chat_id}"
