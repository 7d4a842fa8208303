import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

NOTIFICATION_SERVICE_URL = os.getenv("NOTIFICATION_SERVICE_URL")
NOTIFICATION_SERVICE_API_KEY = os.getenv("NOTIFICATION_SERVICE_API_KEY", "")

BID_RECEIVED = "bid_received"
MESSAGE_RECEIVED = "message_received"


class BaseNotificationClient(ABC):
    """Abstract base class for notification delivery."""

    @abstractmethod
    async def notify(
        self, recipient_id: UUID, event_type: str, data: Dict[str, Any]
    ) -> None:
        """Deliver one notification to a participant.

        Delivery failures are logged, never raised: the chat mutation that
        triggered the notification has already committed.
        """

    async def aclose(self) -> None:
        """Release any held resources."""


class NullNotificationClient(BaseNotificationClient):
    """Logs notifications instead of delivering them."""

    async def notify(
        self, recipient_id: UUID, event_type: str, data: Dict[str, Any]
    ) -> None:
        logger.info("Notification %s for %s: %s", event_type, recipient_id, data)


class HttpNotificationClient(BaseNotificationClient):
    """Notification service client using httpx."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=5.0)

    async def notify(
        self, recipient_id: UUID, event_type: str, data: Dict[str, Any]
    ) -> None:
        """Post a notification to the notification service."""
        payload = {
            "recipientId": str(recipient_id),
            "type": event_type,
            "data": data,
        }

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/notifications", json=payload, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "Failed to deliver %s notification to %s: %s",
                event_type,
                recipient_id,
                e,
            )
            return

        logger.info("Delivered %s notification to %s", event_type, recipient_id)

    async def aclose(self) -> None:
        await self.client.aclose()


def build_notification_client() -> BaseNotificationClient:
    """Pick the client from the environment."""
    if NOTIFICATION_SERVICE_URL:
        return HttpNotificationClient(
            base_url=NOTIFICATION_SERVICE_URL, api_key=NOTIFICATION_SERVICE_API_KEY
        )
    return NullNotificationClient()
