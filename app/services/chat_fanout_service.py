from app.clients.notification_client import (
    BID_RECEIVED,
    MESSAGE_RECEIVED,
    BaseNotificationClient,
)
from app.models.api.chats import ChatResponse, SubmitBidResponse, UnreadCountUpdate
from app.models.api.messages import ChatMessageResponse
from app.realtime.publisher import BasePublisher
from app.realtime.server import user_channel

NEW_MESSAGE = "new-message"
UNREAD_COUNT_UPDATED = "unread-count-updated"


class ChatFanoutService:
    """Pushes committed chat changes to both members' personal channels."""

    def __init__(self, publisher: BasePublisher, notifier: BaseNotificationClient):
        self.publisher = publisher
        self.notifier = notifier

    async def publish_new_message(
        self, chat: ChatResponse, message: ChatMessageResponse
    ) -> None:
        """Send the message to each member with their own ``isOwnMessage``."""
        for member_id in chat.members:
            view = message.model_copy(
                update={"is_own_message": message.sender_id == member_id}
            )
            await self.publisher.publish(
                user_channel(member_id),
                NEW_MESSAGE,
                {
                    "chatId": str(chat.id),
                    "message": view.model_dump(mode="json", by_alias=True),
                },
            )

    async def publish_unread_counts(self, chat: ChatResponse) -> None:
        payload = UnreadCountUpdate.from_chat(chat).model_dump(
            mode="json", by_alias=True
        )
        for member_id in chat.members:
            await self.publisher.publish(
                user_channel(member_id), UNREAD_COUNT_UPDATED, payload
            )

    async def bid_submitted(self, result: SubmitBidResponse) -> None:
        chat = result.chat
        await self.publish_new_message(chat, result.first_message)
        await self.publish_unread_counts(chat)
        await self.notifier.notify(
            chat.posted_by,
            BID_RECEIVED,
            {
                "chatId": str(chat.id),
                "requirementId": str(chat.requirement_id),
                "bidderId": str(chat.bidder_id),
                "bidderName": result.first_message.sender.name,
            },
        )

    async def message_sent(
        self, chat: ChatResponse, message: ChatMessageResponse
    ) -> None:
        await self.publish_new_message(chat, message)
        await self.publish_unread_counts(chat)
        recipient_id = (
            chat.bidder_id if message.sender_id == chat.posted_by else chat.posted_by
        )
        await self.notifier.notify(
            recipient_id,
            MESSAGE_RECEIVED,
            {
                "chatId": str(chat.id),
                "messageId": str(message.id),
                "senderId": str(message.sender_id),
                "senderName": message.sender.name,
            },
        )

    async def chat_read(self, chat: ChatResponse) -> None:
        await self.publish_unread_counts(chat)
