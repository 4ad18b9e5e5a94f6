"""
Export routes. Each returns a file attachment named
`<kind>_<startDate>_<endDate>.<csv|json>`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from dashboard.core.errors import parse_query
from dashboard.core.rate_limiter import enforce_rate_limit
from dashboard.integrations.database import get_session
from dashboard.schemas.filters import DetectionExportQuery, StatsExportQuery
from dashboard.services import export_service
from dashboard.services.export_service import ExportFile

router = APIRouter(prefix="/api/export", tags=["Export"], dependencies=[Depends(enforce_rate_limit)])


def _attachment(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": f"attachment; filename={export.filename}",
            "X-Export-Truncated": "true" if export.truncated else "false",
        },
    )


def _stats_query(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    format: Optional[str] = Query(None),
) -> StatsExportQuery:
    return parse_query(StatsExportQuery, start_date=start_date, end_date=end_date, format=format)


def _detection_query(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    format: Optional[str] = Query(None),
    media_type: Optional[str] = Query(None, alias="mediaType"),
    min_confidence: Optional[float] = Query(None, alias="minConfidence"),
) -> DetectionExportQuery:
    return parse_query(
        DetectionExportQuery,
        start_date=start_date, end_date=end_date, format=format,
        media_type=media_type, min_confidence=min_confidence,
    )


@router.get("/deepfakes")
def export_deepfakes(q: DetectionExportQuery = Depends(_detection_query), db: Session = Depends(get_session)):
    return _attachment(export_service.export_detections(db, q))


@router.get("/stats")
def export_stats(q: StatsExportQuery = Depends(_stats_query), db: Session = Depends(get_session)):
    return _attachment(export_service.export_stats(db, q))


@router.get("/platforms")
def export_platforms(q: StatsExportQuery = Depends(_stats_query), db: Session = Depends(get_session)):
    return _attachment(export_service.export_platforms(db, q))
