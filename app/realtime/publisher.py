from abc import ABC, abstractmethod
from typing import Any, Dict

import socketio

from app.realtime.server import NAMESPACE


class BasePublisher(ABC):
    """Abstract base class for pushing events to connected clients."""

    @abstractmethod
    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        """Push an event to every socket in a channel."""


class SocketIOPublisher(BasePublisher):
    """Publishes to rooms of the requirements namespace."""

    def __init__(self, server: socketio.AsyncServer, namespace: str = NAMESPACE):
        self.server = server
        self.namespace = namespace

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        await self.server.emit(event, payload, room=channel, namespace=self.namespace)
