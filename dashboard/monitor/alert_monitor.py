"""
Alert monitor: polls /api/alerts/check on a fixed interval and turns the
responses into notifications on a MonitorSession.

A failed poll is logged and counts as "no alerts this cycle"; the watermark
only moves after a successful check.
"""

import asyncio
import logging
from typing import Callable, Optional

from dashboard.config import settings
from dashboard.integrations import http_client as http_module
from dashboard.monitor.notifications import Notification, build_notification
from dashboard.monitor.session import MonitorSession

logger = logging.getLogger(__name__)


class AlertCheckError(Exception):
    """The alert endpoint answered with a non-200 status."""


class AlertMonitor:
    def __init__(
        self,
        session: MonitorSession,
        base_url: str = None,
        on_notification: Optional[Callable[[Notification], None]] = None,
    ):
        self.session = session
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.on_notification = on_notification
        self._task: Optional[asyncio.Task] = None

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done()

    def build_params(self) -> dict:
        alert_settings = self.session.settings
        params = {"minConfidence": str(alert_settings.min_confidence / 100)}
        if self.session.last_check_time:
            params["lastCheckTime"] = self.session.last_check_time
        if alert_settings.platforms:
            params["platforms"] = ",".join(alert_settings.platforms)
        if alert_settings.verified_only:
            params["verifiedOnly"] = "true"
        return params

    async def fetch(self, params: dict) -> dict:
        async with http_module.request_session() as sess:
            async with sess.get(f"{self.base_url}/alerts/check", params=params) as response:
                if response.status != 200:
                    raise AlertCheckError(f"Failed to check alerts (HTTP {response.status})")
                return await response.json()

    def _notify(self, notification: Notification) -> None:
        self.session.add_notification(notification)
        if self.on_notification:
            self.on_notification(notification)

    async def check_alerts(self) -> list[Notification]:
        """One poll cycle. Returns the notifications it raised."""
        alert_settings = self.session.settings
        if not alert_settings.enabled:
            return []

        try:
            data = await self.fetch(self.build_params())
            check_time = data["checkTime"]
        except Exception as e:
            logger.error(f"[MONITOR] Alert check failed: {e}")
            return []

        raised = []
        total = data.get("totalAlerts", 0)
        if total > 0:
            raised.append(build_notification(
                "high_confidence",
                {"count": total, "minConfidence": alert_settings.min_confidence / 100},
                data={"alerts": data.get("alerts", [])},
            ))

        spike = data.get("spikeInfo")
        if alert_settings.spike_detection and data.get("spikeDetected") and spike:
            # Second gate on top of the server's fixed 1.5x trigger
            if spike["percentIncrease"] >= alert_settings.spike_threshold:
                raised.append(build_notification("spike", spike, data=spike))

        for notification in raised:
            self._notify(notification)

        self.session.advance_watermark(check_time)
        return raised

    async def _run(self) -> None:
        interval = self.session.settings.check_interval * 60
        while True:
            try:
                await self.check_alerts()
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"[MONITOR] Error in polling loop: {e}")
                await asyncio.sleep(interval)

    def start(self) -> bool:
        """Starts polling (first check fires immediately). Must run inside an event loop."""
        if not self.session.settings.enabled:
            return False
        if self.is_monitoring:
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"[MONITOR] Alert monitoring started, checking every {self.session.settings.check_interval} min")
        return True

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("[MONITOR] Alert monitoring stopped")
