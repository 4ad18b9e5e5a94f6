"""
Query Composer: turns validated filter models into SQLAlchemy predicates.

Every filter value becomes a bound parameter; nothing user-supplied is ever
rendered into SQL text. A composer holds one ordered predicate list and
derives both the page query and its pagination count from it, so the two
can never disagree about which rows match.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import String, and_, cast, func, select, true
from sqlalchemy.dialects import sqlite
from sqlalchemy.sql import ColumnElement, Select

from dashboard.models import Detection
from dashboard.schemas.filters import (
    AlertCheckQuery,
    DetectionExportQuery,
    DetectionListQuery,
    RankingQuery,
    SearchQuery,
)

# detected_date DESC, confidence DESC; id keeps ties stable between executions
NEWEST_FIRST = (
    Detection.detected_date.desc(),
    Detection.confidence_score.desc(),
    Detection.id.desc(),
)
HIGHEST_CONFIDENCE_FIRST = (
    Detection.confidence_score.desc(),
    Detection.detected_date.desc(),
    Detection.id.desc(),
)

# Positional rendering used to count placeholders against bound values
_PARITY_DIALECT = sqlite.dialect()


class ParameterParityError(AssertionError):
    """A compiled statement's placeholders and bound values disagree."""


def assert_parameter_parity(stmt) -> None:
    compiled = stmt.compile(
        dialect=_PARITY_DIALECT, compile_kwargs={"render_postcompile": True}
    )
    placeholders = compiled.string.count("?")
    values = len(compiled.positiontup or ())
    if placeholders != values:
        raise ParameterParityError(
            f"{placeholders} placeholders but {values} bound values"
        )


class QueryComposer:
    """Accumulates predicates over `deepfake_media`."""

    def __init__(self):
        self._clauses: list[ColumnElement] = []

    # ------------------------------------------------------------------ #
    # Predicates                                                          #
    # ------------------------------------------------------------------ #
    def detected_between(self, start: Optional[datetime], end: Optional[datetime]) -> "QueryComposer":
        if start is not None and end is not None:
            self._clauses.append(Detection.detected_date.between(start, end))
        return self

    def detected_after(self, watermark: datetime) -> "QueryComposer":
        self._clauses.append(Detection.detected_date > watermark)
        return self

    def detected_since(self, since: datetime) -> "QueryComposer":
        self._clauses.append(Detection.detected_date >= since)
        return self

    def media_type(self, media_type: str) -> "QueryComposer":
        if media_type and media_type != "all":
            self._clauses.append(Detection.media_type == media_type)
        return self

    def min_confidence(self, floor: float) -> "QueryComposer":
        self._clauses.append(Detection.confidence_score >= floor)
        return self

    def platform(self, platform: Optional[str]) -> "QueryComposer":
        if platform:
            self._clauses.append(Detection.source_platform == platform)
        return self

    def platforms_in(self, platforms: Iterable[str]) -> "QueryComposer":
        platforms = list(platforms)
        if platforms:
            self._clauses.append(Detection.source_platform.in_(platforms))
        return self

    def verified(self, verified: Optional[bool]) -> "QueryComposer":
        if verified is not None:
            self._clauses.append(Detection.is_verified.is_(verified))
        return self

    def keyword(self, text: str) -> "QueryComposer":
        """Case-insensitive substring match on title, description or tags."""
        needle = text.lower()
        self._clauses.append(
            func.lower(func.coalesce(Detection.title, "")).contains(needle, autoescape=True)
            | func.lower(func.coalesce(Detection.description, "")).contains(needle, autoescape=True)
            | func.lower(func.coalesce(cast(Detection.tags, String), "")).contains(needle, autoescape=True)
        )
        return self

    # ------------------------------------------------------------------ #
    # Compilation                                                         #
    # ------------------------------------------------------------------ #
    @property
    def clauses(self) -> tuple:
        """Introspection: the accumulated predicates, in the order they were added."""
        return tuple(self._clauses)

    def criteria(self) -> ColumnElement:
        return and_(*self._clauses) if self._clauses else true()

    def select(self, *entities, order_by=NEWEST_FIRST, limit: int = None, offset: int = None) -> Select:
        stmt = select(*(entities or (Detection,))).where(self.criteria())
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        assert_parameter_parity(stmt)
        return stmt

    def count(self) -> Select:
        stmt = select(func.count(Detection.id)).where(self.criteria())
        assert_parameter_parity(stmt)
        return stmt

    def bound_params(self) -> dict:
        """
        Introspection: bound values of the predicate set alone, keyed by bind
        name. Page and count statements compiled from this composer carry
        exactly these values (plus LIMIT/OFFSET on the page).
        """
        return dict(select(Detection.id).where(self.criteria()).compile().params)

    # ------------------------------------------------------------------ #
    # Builders per operation                                              #
    # ------------------------------------------------------------------ #
    @classmethod
    def for_list(cls, q: DetectionListQuery) -> "QueryComposer":
        return (
            cls()
            .detected_between(q.start_date, q.end_date)
            .min_confidence(q.min_confidence)
            .media_type(q.media_type)
            .platform(q.platform)
            .verified(q.verified)
        )

    @classmethod
    def for_ranking(cls, q: RankingQuery) -> "QueryComposer":
        return cls().detected_between(q.start_date, q.end_date).media_type(q.media_type)

    @classmethod
    def for_search(cls, q: SearchQuery) -> "QueryComposer":
        return (
            cls()
            .keyword(q.query)
            .min_confidence(q.min_confidence)
            .detected_between(q.start_date, q.end_date)
            .media_type(q.media_type)
            .platform(q.platform)
            .verified(q.verified)
        )

    @classmethod
    def for_export(cls, q: DetectionExportQuery) -> "QueryComposer":
        return (
            cls()
            .detected_between(q.start_date, q.end_date)
            .min_confidence(q.min_confidence)
            .media_type(q.media_type)
        )

    @classmethod
    def for_alerts(cls, q: AlertCheckQuery, watermark: datetime) -> "QueryComposer":
        composer = cls().min_confidence(q.min_confidence).detected_after(watermark)
        composer.platforms_in(q.platforms)
        if q.verified_only:
            composer.verified(True)
        return composer

    @classmethod
    def for_range(cls, start: datetime, end: datetime) -> "QueryComposer":
        return cls().detected_between(start, end)
