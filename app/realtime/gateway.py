"""Socket.IO handlers for the requirements chat namespace.

Each event opens its own database session and runs the same services as the
REST routers. Joining a chat room is only a subscription: every send and
mark-as-read re-checks membership against the chat row.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import parse_qs
from uuid import UUID

import socketio
from socketio.exceptions import ConnectionRefusedError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import cookie_parser

from app.auth import ACCESS_TOKEN_COOKIE, authenticate_token
from app.clients.notification_client import BaseNotificationClient
from app.exceptions import AuthenticationError, ChatServiceError, ValidationError
from app.realtime.publisher import BasePublisher
from app.realtime.server import NAMESPACE, chat_room, user_channel
from app.repositories.chat_repository import ChatRepository
from app.services.chat_access import get_chat_for_member, parse_id
from app.services.chat_fanout_service import ChatFanoutService
from app.services.mark_chat_read_service import MarkChatReadService
from app.services.send_message_service import SendMessageService

logger = logging.getLogger(__name__)


def extract_token(environ: Dict[str, Any], auth: Any = None) -> Optional[str]:
    """Find the access token in the handshake auth, cookie or query string."""
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    cookie_header = environ.get("HTTP_COOKIE")
    if cookie_header:
        # Same parser Starlette applies to request.cookies on the REST side
        cookie_token = cookie_parser(cookie_header).get(ACCESS_TOKEN_COOKIE)
        if cookie_token:
            return cookie_token

    query_string = environ.get("QUERY_STRING", "")
    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")
    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    return None


def _field(data: Any, name: str) -> Any:
    if not isinstance(data, dict):
        raise ValidationError("Invalid payload")
    return data.get(name)


class RequirementsChatGateway:
    """Authenticated chat events on the ``/requirements`` namespace."""

    def __init__(
        self,
        server: socketio.AsyncServer,
        session_factory: async_sessionmaker,
        publisher: BasePublisher,
        notifier: BaseNotificationClient,
    ):
        self.server = server
        self.session_factory = session_factory
        self.publisher = publisher
        self.notifier = notifier

    def register(self) -> None:
        self.server.on("connect", self.connect, namespace=NAMESPACE)
        self.server.on("disconnect", self.disconnect, namespace=NAMESPACE)
        self.server.on("join-chat", self.join_chat, namespace=NAMESPACE)
        self.server.on("leave-chat", self.leave_chat, namespace=NAMESPACE)
        self.server.on("send-message", self.send_message, namespace=NAMESPACE)
        self.server.on("mark-as-read", self.mark_as_read, namespace=NAMESPACE)

    @property
    def fanout(self) -> ChatFanoutService:
        return ChatFanoutService(self.publisher, self.notifier)

    async def connect(
        self, sid: str, environ: Dict[str, Any], auth: Any = None
    ) -> None:
        token = extract_token(environ, auth)
        async with self.session_factory() as db:
            try:
                identity = await authenticate_token(db, token)
            except AuthenticationError as e:
                logger.warning("Refused socket %s: %s", sid, e.message)
                raise ConnectionRefusedError(e.message)

        await self.server.save_session(
            sid,
            {
                "participant_id": str(identity.participant_id),
                "event_id": str(identity.event_id),
            },
            namespace=NAMESPACE,
        )
        await self.server.enter_room(
            sid, user_channel(identity.participant_id), namespace=NAMESPACE
        )
        logger.info("Participant %s connected as %s", identity.participant_id, sid)

    async def disconnect(self, sid: str, *args: Any) -> None:
        logger.info("Socket %s disconnected", sid)

    async def join_chat(self, sid: str, data: Any) -> None:
        async def action() -> None:
            participant_id = await self._participant_id(sid)
            chat_id = parse_id(_field(data, "chatId"), "chatId")
            async with self.session_factory() as db:
                await get_chat_for_member(ChatRepository(db), chat_id, participant_id)
            await self.server.enter_room(sid, chat_room(chat_id), namespace=NAMESPACE)
            logger.info("Participant %s joined chat %s", participant_id, chat_id)
            await self._emit(sid, "chat-joined", {"chatId": str(chat_id)})

        await self._handle(sid, "Failed to join chat", action)

    async def leave_chat(self, sid: str, data: Any) -> None:
        async def action() -> None:
            chat_id = parse_id(_field(data, "chatId"), "chatId")
            await self.server.leave_room(sid, chat_room(chat_id), namespace=NAMESPACE)
            await self._emit(sid, "chat-left", {"chatId": str(chat_id)})

        await self._handle(sid, "Failed to leave chat", action)

    async def send_message(self, sid: str, data: Any) -> None:
        async def action() -> None:
            participant_id = await self._participant_id(sid)
            async with self.session_factory() as db:
                result = await SendMessageService(db).send_message(
                    participant_id, _field(data, "chatId"), _field(data, "message")
                )
            await self.fanout.message_sent(result.chat, result.message)
            await self._emit(
                sid,
                "message-sent",
                {"chatId": str(result.chat.id), "messageId": str(result.message.id)},
            )

        await self._handle(sid, "Failed to send message", action)

    async def mark_as_read(self, sid: str, data: Any) -> None:
        async def action() -> None:
            participant_id = await self._participant_id(sid)
            async with self.session_factory() as db:
                chat = await MarkChatReadService(db).mark_as_read(
                    participant_id, _field(data, "chatId")
                )
            await self.fanout.chat_read(chat)
            await self._emit(sid, "marked-as-read", {"chatId": str(chat.id)})

        await self._handle(sid, "Failed to mark messages as read", action)

    async def _participant_id(self, sid: str) -> UUID:
        session = await self.server.get_session(sid, namespace=NAMESPACE)
        if not session or "participant_id" not in session:
            raise AuthenticationError("Not authenticated")
        return UUID(session["participant_id"])

    async def _handle(
        self, sid: str, failure: str, action: Callable[[], Awaitable[None]]
    ) -> None:
        """Run a handler, reporting failures to the socket without closing it."""
        try:
            await action()
        except ChatServiceError as e:
            await self._emit(sid, "error", {"message": e.message})
        except Exception:
            logger.exception("Socket %s: %s", sid, failure)
            await self._emit(sid, "error", {"message": failure})

    async def _emit(self, sid: str, event: str, payload: Dict[str, Any]) -> None:
        await self.server.emit(event, payload, to=sid, namespace=NAMESPACE)


def build_gateway(
    server: socketio.AsyncServer,
    session_factory: "async_sessionmaker[AsyncSession]",
    publisher: BasePublisher,
    notifier: BaseNotificationClient,
) -> RequirementsChatGateway:
    gateway = RequirementsChatGateway(server, session_factory, publisher, notifier)
    gateway.register()
    return gateway
