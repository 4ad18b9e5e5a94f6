"""
Client-held monitoring state: alert settings, notifications and the alert
watermark, bundled in one explicitly passed session object.

Lifecycle: `MonitorSession.load()` at start, `save()` after every change.
A missing or unreadable state file yields a fresh session.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from dashboard.config import settings
from dashboard.monitor.notifications import Notification, NotificationStore

logger = logging.getLogger(__name__)


class AlertSettings(BaseModel):
    enabled: bool = True
    min_confidence: int = Field(90, ge=0, le=100, description="Percent")
    check_interval: int = Field(5, ge=1, le=60, description="Minutes between polls")
    platforms: list[str] = Field(default_factory=list)
    verified_only: bool = False
    enable_sound: bool = True
    enable_browser_notifications: bool = True
    spike_detection: bool = True
    spike_threshold: int = Field(50, ge=0, description="Minimum percent increase to notify")


class _SessionState(BaseModel):
    settings: AlertSettings = Field(default_factory=AlertSettings)
    notifications: list[Notification] = Field(default_factory=list)
    last_check_time: Optional[str] = None


class MonitorSession:
    def __init__(
        self,
        alert_settings: Optional[AlertSettings] = None,
        notifications: Optional[list[Notification]] = None,
        last_check_time: Optional[str] = None,
        path: Optional[Path] = None,
    ):
        self.settings = alert_settings or AlertSettings()
        self.notifications = NotificationStore(notifications)
        self.last_check_time = last_check_time
        self.path = Path(path) if path else None

    @classmethod
    def load(cls, path=None) -> "MonitorSession":
        path = Path(path or settings.monitor_state_path)
        if not path.exists():
            return cls(path=path)
        try:
            state = _SessionState.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"[MONITOR] Failed to load session from {path}: {e}")
            return cls(path=path)
        return cls(
            alert_settings=state.settings,
            notifications=state.notifications,
            last_check_time=state.last_check_time,
            path=path,
        )

    def save(self) -> None:
        if self.path is None:
            return
        state = _SessionState(
            settings=self.settings,
            notifications=self.notifications.items,
            last_check_time=self.last_check_time,
        )
        try:
            self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"[MONITOR] Failed to save session to {self.path}: {e}")

    # ------------------------------------------------------------------ #
    # Mutations (each one persists)                                       #
    # ------------------------------------------------------------------ #
    def update_settings(self, **changes) -> AlertSettings:
        """Validates the merged settings; raises pydantic.ValidationError on bad input."""
        self.settings = AlertSettings.model_validate({**self.settings.model_dump(), **changes})
        self.save()
        return self.settings

    def add_notification(self, notification: Notification) -> None:
        self.notifications.add(notification)
        self.save()

    def mark_as_read(self, notification_id: str) -> bool:
        changed = self.notifications.mark_as_read(notification_id)
        if changed:
            self.save()
        return changed

    def mark_all_as_read(self) -> None:
        self.notifications.mark_all_as_read()
        self.save()

    def clear_notifications(self) -> None:
        self.notifications.clear()
        self.save()

    def advance_watermark(self, check_time: str) -> None:
        self.last_check_time = check_time
        self.save()
