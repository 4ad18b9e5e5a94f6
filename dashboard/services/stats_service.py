"""
Statistics Aggregator: detections grouped by calendar day or by source
platform, plus range summaries and the recent-activity monitor.

Averages are returned at full precision; rounding happens at presentation
or export time.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from dashboard.core.errors import backend_errors
from dashboard.core.query_composer import QueryComposer
from dashboard.models import DailyStat, Detection, utcnow
from dashboard.schemas.stats import (
    DailyStatOut,
    DayStat,
    PlatformCount,
    PlatformStat,
    RecentSummary,
    SummaryStat,
)

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.9
TOP_PLATFORMS = 5

_day = func.date(Detection.detected_date)
_photos = func.count(case((Detection.media_type == "photo", 1)))
_videos = func.count(case((Detection.media_type == "video", 1)))
_verified = func.count(case((Detection.is_verified.is_(True), 1)))


def as_date(value) -> date:
    """DATE() comes back as a date on most backends and as text on SQLite."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _as_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def daily_rollups(db: Session, start: datetime, end: datetime) -> list[DailyStatOut]:
    """Rows of the externally maintained `detection_stats` table."""
    stmt = (
        select(DailyStat)
        .where(DailyStat.date.between(start.date(), end.date()))
        .order_by(DailyStat.date.asc())
    )
    with backend_errors("fetching daily rollups"):
        rows = db.execute(stmt).scalars().all()
    return [DailyStatOut.model_validate(r) for r in rows]


def temporal_stats(db: Session, start: datetime, end: datetime) -> list[DayStat]:
    """Per-day counts and average confidence, ascending by day."""
    composer = QueryComposer.for_range(start, end)
    stmt = composer.select(
        _day.label("day"),
        _photos.label("photos_count"),
        _videos.label("videos_count"),
        func.avg(Detection.confidence_score).label("avg_confidence"),
        func.count(Detection.id).label("total_count"),
        _verified.label("verified_count"),
        order_by=None,
    ).group_by(_day).order_by(_day.asc())

    with backend_errors("fetching temporal stats"):
        rows = db.execute(stmt).all()

    return [
        DayStat(
            date=as_date(r.day),
            photos_count=r.photos_count,
            videos_count=r.videos_count,
            avg_confidence=_as_float(r.avg_confidence),
            total_count=r.total_count,
            verified_count=r.verified_count,
        )
        for r in rows
    ]


def platform_stats(db: Session, start: datetime, end: datetime) -> list[PlatformStat]:
    """
    Per-platform breakdown, largest first. Rows without a platform form
    their own group, sorted after named platforms on equal totals.
    """
    total = func.count(Detection.id)
    composer = QueryComposer.for_range(start, end)
    stmt = composer.select(
        Detection.source_platform,
        total.label("total_count"),
        _photos.label("photos_count"),
        _videos.label("videos_count"),
        func.avg(Detection.confidence_score).label("avg_confidence"),
        func.max(Detection.confidence_score).label("max_confidence"),
        _verified.label("verified_count"),
        order_by=None,
    ).group_by(Detection.source_platform).order_by(
        total.desc(),
        Detection.source_platform.is_(None),
        Detection.source_platform.asc(),
    )

    with backend_errors("fetching platform stats"):
        rows = db.execute(stmt).all()

    return [
        PlatformStat(
            source_platform=r.source_platform,
            total_count=r.total_count,
            photos_count=r.photos_count,
            videos_count=r.videos_count,
            avg_confidence=_as_float(r.avg_confidence),
            max_confidence=_as_float(r.max_confidence),
            verified_count=r.verified_count,
        )
        for r in rows
    ]


def summary_stats(db: Session, start: datetime, end: datetime) -> SummaryStat:
    composer = QueryComposer.for_range(start, end)
    stmt = composer.select(
        func.count(Detection.id).label("total_deepfakes"),
        _photos.label("total_photos"),
        _videos.label("total_videos"),
        func.avg(Detection.confidence_score).label("avg_confidence"),
        func.max(Detection.confidence_score).label("max_confidence"),
        func.min(Detection.confidence_score).label("min_confidence"),
        _verified.label("verified_count"),
        func.count(Detection.source_platform.distinct()).label("platforms_count"),
        order_by=None,
    )

    with backend_errors("fetching summary stats"):
        r = db.execute(stmt).one()

    return SummaryStat(
        total_deepfakes=r.total_deepfakes,
        total_photos=r.total_photos,
        total_videos=r.total_videos,
        avg_confidence=_as_float(r.avg_confidence),
        max_confidence=_as_float(r.max_confidence),
        min_confidence=_as_float(r.min_confidence),
        verified_count=r.verified_count,
        platforms_count=r.platforms_count,
    )


def recent_activity(db: Session, hours: int, now: Optional[datetime] = None) -> dict:
    """Rollup of the last `hours` hours plus the busiest platforms."""
    now = now or utcnow()
    composer = QueryComposer().detected_since(now - timedelta(hours=hours))

    summary_stmt = composer.select(
        func.count(Detection.id).label("total_count"),
        _photos.label("photo_count"),
        _videos.label("video_count"),
        func.avg(Detection.confidence_score).label("avg_confidence"),
        func.max(Detection.confidence_score).label("max_confidence"),
        func.count(case((Detection.confidence_score >= HIGH_CONFIDENCE, 1))).label("high_confidence_count"),
        order_by=None,
    )
    count = func.count(Detection.id)
    platforms_stmt = composer.select(
        Detection.source_platform,
        count.label("count"),
        order_by=None,
    ).group_by(Detection.source_platform).order_by(
        count.desc(),
        Detection.source_platform.is_(None),
        Detection.source_platform.asc(),
    ).limit(TOP_PLATFORMS)

    with backend_errors("fetching monitoring data"):
        s = db.execute(summary_stmt).one()
        platforms = db.execute(platforms_stmt).all()

    return {
        "period": f"Last {hours} hours",
        "summary": RecentSummary(
            total_count=s.total_count,
            photo_count=s.photo_count,
            video_count=s.video_count,
            avg_confidence=_as_float(s.avg_confidence),
            max_confidence=_as_float(s.max_confidence),
            high_confidence_count=s.high_confidence_count,
        ),
        "platforms": [PlatformCount(source_platform=p.source_platform, count=p.count) for p in platforms],
        "timestamp": now.isoformat() + "Z",
    }
