"""
Statistics routes: daily series, range summary, per-platform breakdown and
recent-activity monitoring.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dashboard.core.errors import parse_query
from dashboard.core.rate_limiter import enforce_rate_limit
from dashboard.integrations.database import get_session
from dashboard.schemas.filters import DateRangeQuery, MonitoringQuery
from dashboard.schemas.stats import (
    MonitoringResponse,
    PlatformStatsResponse,
    StatsResponse,
    SummaryResponse,
)
from dashboard.services import stats_service

router = APIRouter(prefix="/api", tags=["Statistics"], dependencies=[Depends(enforce_rate_limit)])


def _date_range(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
) -> DateRangeQuery:
    return parse_query(DateRangeQuery, start_date=start_date, end_date=end_date)


@router.get("/stats", response_model=StatsResponse)
def stats(period: DateRangeQuery = Depends(_date_range), db: Session = Depends(get_session)):
    """Materialized daily rollups alongside live per-day aggregates."""
    return {
        "historical_stats": stats_service.daily_rollups(db, period.start_date, period.end_date),
        "realtime_stats": stats_service.temporal_stats(db, period.start_date, period.end_date),
    }


@router.get("/stats/summary", response_model=SummaryResponse)
def summary(period: DateRangeQuery = Depends(_date_range), db: Session = Depends(get_session)):
    return {
        "summary": stats_service.summary_stats(db, period.start_date, period.end_date),
        "period": {"startDate": period.start_date, "endDate": period.end_date},
    }


@router.get("/platforms", response_model=PlatformStatsResponse)
def platforms(period: DateRangeQuery = Depends(_date_range), db: Session = Depends(get_session)):
    return {
        "platforms": stats_service.platform_stats(db, period.start_date, period.end_date),
        "period": {"startDate": period.start_date, "endDate": period.end_date},
    }


def _monitoring_query(hours: Optional[int] = Query(None)) -> MonitoringQuery:
    return parse_query(MonitoringQuery, hours=hours)


@router.get("/monitoring/recent", response_model=MonitoringResponse)
def monitoring_recent(q: MonitoringQuery = Depends(_monitoring_query), db: Session = Depends(get_session)):
    return stats_service.recent_activity(db, q.hours)
