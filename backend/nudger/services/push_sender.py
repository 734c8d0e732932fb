"""Push notification sender service using an Expo-style push gateway."""
import logging
from typing import Optional

import httpx

from ..models import Notification

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://exp.host/--/api/v2/push/send"


def build_payload(notification: Notification) -> dict:
    """Build the gateway JSON body for a notification.

    The sound key is only present for vibrating notifications.
    """
    payload = {"to": notification.token}
    if notification.vibrate:
        payload["sound"] = "default"
    payload["title"] = notification.title
    payload["body"] = notification.body
    payload["data"] = {"extra": "info"}
    return payload


class PushDispatcher:
    """Service for sending push notifications, best effort.

    Every call has a hard timeout; errors are logged and never raised.
    """

    def __init__(
        self,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.gateway_url = gateway_url
        self.timeout = timeout
        self._transport = transport

    async def send(self, notification: Notification) -> bool:
        """Send a push notification to a single device.

        Args:
            notification: Destination token, title, body and vibrate flag

        Returns:
            True if the gateway accepted the notification
        """
        payload = build_payload(notification)
        token_hint = notification.token[:16]

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.gateway_url,
                    json=payload,
                    headers={
                        "Accept": "application/json",
                        "Content-Type": "application/json",
                    },
                )
            if response.status_code < 400:
                logger.info(f"Push notification sent to {token_hint}...: {notification.title}")
                return True
            else:
                logger.warning(
                    f"Push gateway returned {response.status_code} "
                    f"(token: {token_hint}...)"
                )
                return False
        except httpx.TimeoutException:
            logger.error(f"Push notification timed out after {self.timeout}s (token: {token_hint}...)")
            return False
        except Exception as e:
            logger.error(f"Failed to send push notification: {e}")
            return False
