"""
Export operations: detections, daily stats and platform stats as CSV or
JSON attachments.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from dashboard.config import settings
from dashboard.core.errors import backend_errors
from dashboard.core.export_format import (
    DETECTION_COLUMNS,
    PLATFORM_COLUMNS,
    STATS_COLUMNS,
    normalize_records,
    to_csv,
    to_json,
)
from dashboard.core.query_composer import QueryComposer
from dashboard.models import utcnow
from dashboard.schemas.filters import DetectionExportQuery, StatsExportQuery
from dashboard.services import stats_service

logger = logging.getLogger(__name__)

MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}


@dataclass
class ExportFile:
    content: str
    media_type: str
    filename: str
    truncated: bool = False


def _period(start: datetime, end: datetime) -> dict:
    return {"startDate": start.date().isoformat(), "endDate": end.date().isoformat()}


def _render(kind: str, fmt: str, records: list[dict], columns: list[str],
            start: datetime, end: datetime, extra: dict) -> ExportFile:
    filename = f"{kind}_{start.date().isoformat()}_{end.date().isoformat()}.{fmt}"
    if fmt == "csv":
        content = to_csv(records, columns)
    else:
        content = to_json({
            "exportDate": utcnow().isoformat() + "Z",
            "period": _period(start, end),
            **extra,
            "data": records,
        })
    logger.info(f"[EXPORT] {filename}: {len(records)} rows")
    return ExportFile(content=content, media_type=MEDIA_TYPES[fmt], filename=filename,
                      truncated=extra.get("truncated", False))


def export_detections(db: Session, q: DetectionExportQuery) -> ExportFile:
    composer = QueryComposer.for_export(q)

    cap = settings.export_max_rows

    with backend_errors("exporting detections"):
        # One row past the cap tells a full export from a cut one
        rows = db.execute(composer.select(limit=cap + 1 if cap else None)).scalars().all()

    truncated = bool(cap) and len(rows) > cap
    if truncated:
        rows = rows[:cap]
        logger.warning(f"[EXPORT] Detection export truncated at {cap} rows (export_max_rows)")

    records = normalize_records(
        ({c: getattr(r, c) for c in DETECTION_COLUMNS} for r in rows),
        DETECTION_COLUMNS,
    )
    return _render(
        "deepfakes", q.format, records, DETECTION_COLUMNS, q.start_date, q.end_date,
        {
            "filters": {"mediaType": q.media_type, "minConfidence": q.min_confidence},
            "totalRecords": len(records),
            "truncated": truncated,
        },
    )


def export_stats(db: Session, q: StatsExportQuery) -> ExportFile:
    days = stats_service.temporal_stats(db, q.start_date, q.end_date)
    records = normalize_records((d.model_dump() for d in days), STATS_COLUMNS)
    return _render(
        "stats", q.format, records, STATS_COLUMNS, q.start_date, q.end_date,
        {"totalDays": len(records)},
    )


def export_platforms(db: Session, q: StatsExportQuery) -> ExportFile:
    platforms = stats_service.platform_stats(db, q.start_date, q.end_date)
    records = normalize_records((p.model_dump() for p in platforms), PLATFORM_COLUMNS)
    return _render(
        "platforms", q.format, records, PLATFORM_COLUMNS, q.start_date, q.end_date,
        {"totalPlatforms": len(records)},
    )
