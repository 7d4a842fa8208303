from fastapi import Request

from app.services.chat_fanout_service import ChatFanoutService


def get_fanout(request: Request) -> ChatFanoutService:
    """Fan-out bound to the publisher and notifier held on the app state."""
    return ChatFanoutService(
        request.app.state.publisher, request.app.state.notifier
    )
