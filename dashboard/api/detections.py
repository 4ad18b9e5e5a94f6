"""
Detection browsing routes: filtered list, rankings, keyword search and the
platform list.

Query models are built by dependencies declared ahead of the session, so a
malformed request is rejected before any database work.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dashboard.core.errors import parse_query
from dashboard.core.rate_limiter import enforce_rate_limit
from dashboard.integrations.database import get_session
from dashboard.schemas.detections import (
    DetectionPage,
    PlatformListResponse,
    RankingResponse,
    SearchResponse,
)
from dashboard.schemas.filters import DetectionListQuery, RankingQuery, SearchQuery
from dashboard.services import detections_service

router = APIRouter(prefix="/api", tags=["Detections"], dependencies=[Depends(enforce_rate_limit)])


def _list_query(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    media_type: Optional[str] = Query(None, alias="mediaType"),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    min_confidence: Optional[float] = Query(None, alias="minConfidence"),
    platform: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
) -> DetectionListQuery:
    return parse_query(
        DetectionListQuery,
        start_date=start_date, end_date=end_date, media_type=media_type,
        limit=limit, offset=offset, min_confidence=min_confidence,
        platform=platform, verified=verified,
    )


def _ranking_query(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    media_type: Optional[str] = Query(None, alias="mediaType"),
    limit: Optional[int] = Query(None),
) -> RankingQuery:
    return parse_query(
        RankingQuery,
        start_date=start_date, end_date=end_date, media_type=media_type, limit=limit,
    )


def _search_query(
    query: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    media_type: Optional[str] = Query(None, alias="mediaType"),
    min_confidence: Optional[float] = Query(None, alias="minConfidence"),
    platform: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    limit: Optional[int] = Query(None),
) -> SearchQuery:
    return parse_query(
        SearchQuery,
        query=query, start_date=start_date, end_date=end_date, media_type=media_type,
        min_confidence=min_confidence, platform=platform, verified=verified, limit=limit,
    )


@router.get("/deepfakes", response_model=DetectionPage)
def list_deepfakes(q: DetectionListQuery = Depends(_list_query), db: Session = Depends(get_session)):
    """Newest-first page of detections with pagination totals."""
    return detections_service.list_detections(db, q)


@router.get("/rankings", response_model=RankingResponse)
def rankings(q: RankingQuery = Depends(_ranking_query), db: Session = Depends(get_session)):
    return detections_service.get_rankings(db, q)


@router.get("/search", response_model=SearchResponse)
def search(q: SearchQuery = Depends(_search_query), db: Session = Depends(get_session)):
    """Keyword match on title, description and tags, highest confidence first."""
    return detections_service.search_detections(db, q)


@router.get("/platforms/list", response_model=PlatformListResponse)
def platform_list(db: Session = Depends(get_session)):
    return {"platforms": detections_service.list_platforms(db)}
