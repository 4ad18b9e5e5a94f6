"""
Detection read operations: filtered listing, confidence rankings, keyword
search and the distinct platform list.

Each function takes the request's session and an already-validated filter
model; predicates come from the QueryComposer.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from dashboard.core.errors import backend_errors
from dashboard.core.query_composer import HIGHEST_CONFIDENCE_FIRST, QueryComposer
from dashboard.models import Detection
from dashboard.schemas.detections import DetectionOut, RankedDetection
from dashboard.schemas.filters import DetectionListQuery, RankingQuery, SearchQuery

logger = logging.getLogger(__name__)


def list_detections(db: Session, q: DetectionListQuery) -> dict:
    """
    One page of detections, newest first, with a total counted over the
    identical predicate set.

    The page and the count are two statements; under concurrent writes they
    may observe different snapshots.
    """
    composer = QueryComposer.for_list(q)

    with backend_errors("fetching detections"):
        rows = db.execute(composer.select(limit=q.limit, offset=q.offset)).scalars().all()
        total = db.execute(composer.count()).scalar_one()

    return {
        "data": [DetectionOut.model_validate(r) for r in rows],
        "pagination": {
            "total": total,
            "limit": q.limit,
            "offset": q.offset,
            "hasMore": q.offset + q.limit < total,
        },
    }


def get_rankings(db: Session, q: RankingQuery) -> dict:
    """Top detections by confidence with a contiguous 1-based rank."""
    composer = QueryComposer.for_ranking(q)

    with backend_errors("fetching rankings"):
        rows = db.execute(
            composer.select(order_by=HIGHEST_CONFIDENCE_FIRST, limit=q.limit)
        ).scalars().all()

    rankings = [
        RankedDetection(rank=i, **DetectionOut.model_validate(r).model_dump())
        for i, r in enumerate(rows, start=1)
    ]
    return {
        "rankings": rankings,
        "period": {"startDate": q.start_date, "endDate": q.end_date},
        "mediaType": q.media_type,
    }


def search_detections(db: Session, q: SearchQuery) -> dict:
    composer = QueryComposer.for_search(q)

    with backend_errors("searching detections"):
        rows = db.execute(
            composer.select(order_by=HIGHEST_CONFIDENCE_FIRST, limit=q.limit)
        ).scalars().all()

    results = [DetectionOut.model_validate(r) for r in rows]
    logger.info(f"[SEARCH] '{q.query}' matched {len(results)} detections")
    return {"results": results, "query": q.query, "total": len(results)}


def list_platforms(db: Session) -> list[str]:
    """Distinct non-null platform names, ascending."""
    stmt = (
        select(Detection.source_platform)
        .where(Detection.source_platform.is_not(None))
        .distinct()
        .order_by(Detection.source_platform.asc())
    )
    with backend_errors("fetching platform list"):
        return list(db.execute(stmt).scalars().all())
