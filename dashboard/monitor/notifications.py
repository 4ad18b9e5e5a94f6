"""
Notifications raised by the alert monitor, their display text, and the
bounded newest-first store that holds them.
"""

import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel

from dashboard.config import settings

NotificationType = Literal["high_confidence", "spike", "verified", "platform"]
Priority = Literal["low", "medium", "high", "critical"]


class Notification(BaseModel):
    id: str
    type: NotificationType
    title: str
    message: str
    timestamp: str
    read: bool = False
    priority: Priority
    data: Optional[Any] = None


def generate_notification_id() -> str:
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"notif_{int(time.time() * 1000)}_{suffix}"


def format_alert_message(kind: str, data: dict) -> dict:
    """Title, message and priority for a notification of the given type."""
    if kind == "high_confidence":
        floor = data.get("minConfidence", 0.9) * 100
        return {
            "title": "🚨 High-confidence detection",
            "message": f"Found {data.get('count') or 1} high-confidence deepfakes (confidence ≥ {floor:.0f}%)",
            "priority": "critical",
        }
    if kind == "spike":
        return {
            "title": "📈 Detection volume spike",
            "message": f"{data['todayCount']} detections today, {data['percentIncrease']}% above average",
            "priority": "high",
        }
    if kind == "verified":
        return {
            "title": "✅ Newly verified content",
            "message": f"Found {data.get('count') or 1} newly verified deepfakes",
            "priority": "medium",
        }
    if kind == "platform":
        platform = data.get("platform")
        return {
            "title": f"📱 {platform} platform alert",
            "message": f"{data.get('count') or 1} new detections on {platform}",
            "priority": "medium",
        }
    return {
        "title": "🔔 New notification",
        "message": "The system detected a new anomaly",
        "priority": "low",
    }


def build_notification(kind: NotificationType, info: dict, data: Any = None) -> Notification:
    text = format_alert_message(kind, info)
    return Notification(
        id=generate_notification_id(),
        type=kind,
        title=text["title"],
        message=text["message"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        priority=text["priority"],
        data=data,
    )


@dataclass(frozen=True)
class DeliveryPlan:
    """How a notification should be surfaced beyond the notification list."""
    browser: bool
    require_interaction: bool
    sound: Optional[str]
    toast: bool


def delivery_plan(notification: Notification, enable_browser: bool, enable_sound: bool) -> DeliveryPlan:
    sound = None
    if enable_sound:
        sound = {"critical": "alert", "high": "warning"}.get(notification.priority, "info")
    return DeliveryPlan(
        browser=enable_browser,
        require_interaction=notification.priority == "critical",
        sound=sound,
        toast=notification.priority in ("critical", "high"),
    )


class NotificationStore:
    """Newest-first list that keeps at most `retention` entries."""

    def __init__(self, items: Optional[list[Notification]] = None, retention: int = None):
        self.retention = retention or settings.notification_retention
        self._items: list[Notification] = list(items or [])[: self.retention]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def add(self, notification: Notification) -> None:
        self._items.insert(0, notification)
        del self._items[self.retention:]

    def mark_as_read(self, notification_id: str) -> bool:
        for i, n in enumerate(self._items):
            if n.id == notification_id:
                self._items[i] = n.model_copy(update={"read": True})
                return True
        return False

    def mark_all_as_read(self) -> None:
        self._items = [n.model_copy(update={"read": True}) for n in self._items]

    def clear(self) -> None:
        self._items = []
