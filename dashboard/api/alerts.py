"""
Alert polling route: new high-confidence detections since a watermark plus
the daily-volume spike verdict.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dashboard.core.errors import parse_query
from dashboard.core.rate_limiter import enforce_rate_limit
from dashboard.integrations.database import get_session
from dashboard.schemas.alerts import AlertCheckResponse
from dashboard.schemas.filters import AlertCheckQuery
from dashboard.services import alerts_service

router = APIRouter(prefix="/api", tags=["Alerts"], dependencies=[Depends(enforce_rate_limit)])


def _alert_query(
    min_confidence: Optional[float] = Query(None, alias="minConfidence"),
    last_check_time: Optional[str] = Query(None, alias="lastCheckTime"),
    platforms: Optional[str] = Query(None, description="Comma-separated platform names"),
    verified_only: Optional[bool] = Query(None, alias="verifiedOnly"),
) -> AlertCheckQuery:
    return parse_query(
        AlertCheckQuery,
        min_confidence=min_confidence, last_check_time=last_check_time,
        platforms=platforms, verified_only=verified_only,
    )


@router.get("/alerts/check", response_model=AlertCheckResponse)
def check_alerts(q: AlertCheckQuery = Depends(_alert_query), db: Session = Depends(get_session)):
    """
    Callers should store the returned `checkTime` and send it back as
    `lastCheckTime` on the next poll.
    """
    return alerts_service.check_alerts(db, q)
