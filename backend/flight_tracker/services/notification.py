from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Optional, List, Dict
import uuid
import logging
import httpx
from flight_tracker.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    """A fully formatted alert, ready for delivery."""
    title: str
    body: str
    category: str  # "FLIGHT_ALERT" or "DEPARTURE_REMINDER"
    correlation_id: str  # watchlist entry id
    priority: str = "default"
    tags: List[str] = field(default_factory=list)


@dataclass
class Notification:
    """Notification record."""
    id: str
    title: str
    message: str
    category: str
    correlation_id: str
    priority: str
    timestamp: datetime
    tags: List[str]
    sent_to_ntfy: bool = False


class NotificationHistory:
    """In-memory notification history."""

    def __init__(self, max_notifications: int = 100):
        self._notifications: List[Notification] = []
        self._max_notifications = max_notifications

    def add(self, notification: Notification):
        self._notifications.append(notification)
        if len(self._notifications) > self._max_notifications:
            self._notifications.pop(0)

    def get_recent(self, limit: int = 50) -> List[Dict]:
        recent = self._notifications[-limit:] if limit else self._notifications
        return [asdict(n) for n in reversed(recent)]

    def clear(self):
        self._notifications.clear()

    def __len__(self) -> int:
        return len(self._notifications)


class NtfyNotifier:
    """
    Push notifications via ntfy.

    Delivery is fire-and-forget: send() reports whether ntfy accepted the
    message but never raises, and nothing retries a failed delivery.
    """

    # Priority mapping to ntfy priorities (1=min, 5=max)
    PRIORITY_MAP = {
        "min": "1",
        "low": "2",
        "default": "3",
        "high": "4",
        "urgent": "5",
    }

    def __init__(
        self,
        ntfy_url: Optional[str] = None,
        ntfy_topic: Optional[str] = None,
        enabled: Optional[bool] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.ntfy_url = (ntfy_url or settings.ntfy_url).rstrip("/")
        self.ntfy_topic = ntfy_topic or settings.ntfy_topic
        self.enabled = settings.notifications_enabled if enabled is None else enabled
        self.history = NotificationHistory()
        self._http_client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient()
            self._owns_client = True
        return self._http_client

    async def close(self):
        # injected clients belong to the caller
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _send_to_ntfy(self, message: NotificationMessage) -> bool:
        """Send notification to ntfy server."""
        try:
            client = await self._get_client()
            url = f"{self.ntfy_url}/{self.ntfy_topic}"

            # Titles carry emoji; header values must go out as raw bytes
            headers = {
                "Title": message.title.encode("utf-8"),
                "Priority": self.PRIORITY_MAP.get(message.priority, "3"),
                "X-Correlation-ID": message.correlation_id,
            }

            if message.tags:
                headers["Tags"] = ",".join(message.tags)

            response = await client.post(
                url,
                content=message.body.encode("utf-8"),
                headers=headers,
            )

            if response.status_code == 200:
                logger.info(f"Notification sent: {message.title}")
                return True
            else:
                logger.error(f"ntfy returned {response.status_code}: {response.text}")
                return False

        except httpx.ConnectError as e:
            logger.warning(f"Could not connect to ntfy server at {self.ntfy_url}: {e}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Failed to send notification: {e}")
            return False

    async def send(self, message: NotificationMessage) -> bool:
        if self.enabled:
            sent = await self._send_to_ntfy(message)
        else:
            logger.debug(f"Notifications disabled, not sending: {message.title}")
            sent = False

        self.history.add(
            Notification(
                id=str(uuid.uuid4()),
                title=message.title,
                message=message.body,
                category=message.category,
                correlation_id=message.correlation_id,
                priority=message.priority,
                timestamp=datetime.now(timezone.utc),
                tags=list(message.tags),
                sent_to_ntfy=sent,
            )
        )
        return sent

    def get_notifications(self, limit: int = 50) -> List[Dict]:
        """Get recent notifications, newest first."""
        return self.history.get_recent(limit)

    def clear_notifications(self):
        self.history.clear()

    def get_notification_url(self) -> str:
        """Get ntfy subscription URL."""
        return f"{self.ntfy_url}/{self.ntfy_topic}"
