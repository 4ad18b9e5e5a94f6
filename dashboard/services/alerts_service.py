"""
Spike & Alert Evaluator.

`check_alerts` returns the detections above a confidence floor that are newer
than the caller's watermark, together with a volume-spike verdict over the
trailing week. Delivery is at-least-once: the only deduplication is the
watermark comparison itself, so a caller that fails to keep the returned
`checkTime` will see the same detections again.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from dashboard.core.errors import backend_errors
from dashboard.core.query_composer import QueryComposer
from dashboard.core.spike_detector import (
    MAX_ALERTS,
    default_watermark,
    evaluate_spike,
    window_start,
)
from dashboard.models import Detection, utcnow
from dashboard.schemas.alerts import AlertDetection
from dashboard.schemas.filters import AlertCheckQuery

logger = logging.getLogger(__name__)


def daily_counts(db: Session, now: datetime) -> list[int]:
    """Detections per UTC day over the trailing window, most recent day first."""
    day = func.date(Detection.detected_date)
    stmt = (
        select(day.label("day"), func.count(Detection.id).label("count"))
        .where(Detection.detected_date >= window_start(now))
        .group_by(day)
        .order_by(day.desc())
    )
    return [r.count for r in db.execute(stmt).all()]


def check_alerts(db: Session, q: AlertCheckQuery, now: Optional[datetime] = None) -> dict:
    # Captured before querying so rows landing mid-check are picked up next time
    now = now or utcnow()
    watermark = q.last_check_time or default_watermark(now)
    composer = QueryComposer.for_alerts(q, watermark)

    with backend_errors("checking alerts"):
        rows = db.execute(composer.select(limit=MAX_ALERTS)).scalars().all()
        counts = daily_counts(db, now)

    alerts = [AlertDetection.model_validate(r) for r in rows]
    spike = evaluate_spike(counts)

    if alerts or spike:
        logger.info(
            f"[ALERTS] {len(alerts)} new detections >= {q.min_confidence} since {watermark.isoformat()}"
            f" | spike={'yes' if spike else 'no'}"
        )

    return {
        "alerts": alerts,
        "totalAlerts": len(alerts),
        "spikeDetected": spike is not None,
        "spikeInfo": spike.as_payload() if spike else None,
        "checkTime": now.isoformat() + "Z",
    }
