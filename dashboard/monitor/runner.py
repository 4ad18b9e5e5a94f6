"""
Headless alert monitor: loads the saved session, polls until interrupted and
logs each notification as it arrives.

    python -m dashboard.monitor.runner
"""

import asyncio
import logging

from dotenv import load_dotenv

from dashboard.integrations import http_client
from dashboard.monitor.alert_monitor import AlertMonitor
from dashboard.monitor.notifications import Notification, delivery_plan
from dashboard.monitor.session import MonitorSession

logger = logging.getLogger(__name__)


def log_notification(session: MonitorSession, notification: Notification) -> None:
    plan = delivery_plan(
        notification,
        enable_browser=session.settings.enable_browser_notifications,
        enable_sound=session.settings.enable_sound,
    )
    level = logging.WARNING if plan.toast else logging.INFO
    logger.log(level, f"[NOTIFY] {notification.title}: {notification.message}")


async def run(state_path: str = None) -> None:
    session = MonitorSession.load(state_path)
    monitor = AlertMonitor(session, on_notification=lambda n: log_notification(session, n))

    await http_client.initialize()
    try:
        if not monitor.start():
            logger.info("[MONITOR] Alerts are disabled in the saved settings, nothing to do")
            return
        await asyncio.Event().wait()
    finally:
        await monitor.stop()
        await http_client.close()


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
