"""
Pure unit tests for dashboard/core/query_composer.py.

Statements are compiled, never executed, except where noted.
"""

from datetime import datetime

import pytest
from sqlalchemy import literal_column, select, text

from dashboard.core.query_composer import (
    ParameterParityError,
    QueryComposer,
    assert_parameter_parity,
)
from dashboard.models import Detection
from dashboard.schemas.filters import AlertCheckQuery, DetectionListQuery, SearchQuery
from tests.conftest import make_detection

START = datetime(2024, 1, 1)


def _sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"render_postcompile": True}))


# ---------------------------------------------------------------------------
# Predicate assembly
# ---------------------------------------------------------------------------


def test_empty_composer_matches_everything():
    composer = QueryComposer()
    assert composer.clauses == ()
    assert composer.bound_params() == {}


def test_media_type_all_adds_no_predicate():
    composer = QueryComposer().media_type("all")
    assert composer.clauses == ()


def test_optional_filters_skipped_when_absent():
    composer = QueryComposer().platform(None).verified(None).detected_between(START, None)
    assert composer.clauses == ()


def test_verified_false_is_a_real_filter():
    composer = QueryComposer().verified(False)
    assert len(composer.clauses) == 1


def test_list_query_binds_every_value():
    q = DetectionListQuery(
        startDate="2024-01-01", endDate="2024-01-31",
        mediaType="video", minConfidence=0.75, platform="TikTok", verified=True,
    )
    params = QueryComposer.for_list(q).bound_params()
    values = list(params.values())

    assert 0.75 in values
    assert "video" in values
    assert "TikTok" in values
    assert q.start_date in values
    assert q.end_date in values


def test_user_text_never_rendered_into_sql():
    hostile = "'; DROP TABLE deepfake_media; --"
    q = SearchQuery(query=hostile, platform=hostile)
    stmt = QueryComposer.for_search(q).select()

    assert "DROP TABLE" not in _sql(stmt)


def test_alert_platforms_use_in_clause():
    q = AlertCheckQuery(platforms="Twitter, TikTok,")
    composer = QueryComposer.for_alerts(q, datetime(2024, 1, 1))
    stmt = composer.select()

    assert q.platforms == ["Twitter", "TikTok"]
    assert " IN " in _sql(stmt)


def test_alert_verified_only_adds_predicate():
    base = QueryComposer.for_alerts(AlertCheckQuery(), datetime(2024, 1, 1))
    verified = QueryComposer.for_alerts(AlertCheckQuery(verifiedOnly=True), datetime(2024, 1, 1))
    assert len(verified.clauses) == len(base.clauses) + 1


# ---------------------------------------------------------------------------
# Parameter parity
# ---------------------------------------------------------------------------


def test_select_and_count_pass_parity():
    q = DetectionListQuery(startDate="2024-01-01", endDate="2024-01-31", platform="X", limit=5, offset=10)
    composer = QueryComposer.for_list(q)
    composer.select(limit=q.limit, offset=q.offset)
    composer.count()


def test_parity_violation_detected():
    # A literal "?" in raw SQL text looks like a placeholder with no value
    stmt = select(Detection.id).where(text("title = '?'"))
    with pytest.raises(ParameterParityError):
        assert_parameter_parity(stmt)


def test_parity_ok_for_plain_literal():
    assert_parameter_parity(select(literal_column("1")))


# ---------------------------------------------------------------------------
# Executed against SQLite
# ---------------------------------------------------------------------------


def test_page_and_count_agree(db):
    for i, score in enumerate([0.5, 0.55, 0.6, 0.65, 0.7, 0.75, 0.8]):
        make_detection(db, confidence_score=score, detected_date=datetime(2024, 1, 10 + i))
    q = DetectionListQuery(startDate="2024-01-01", endDate="2024-01-31", minConfidence=0.6, limit=2)
    composer = QueryComposer.for_list(q)

    page = db.execute(composer.select(limit=None)).scalars().all()
    total = db.execute(composer.count()).scalar_one()

    assert total == len(page) == 5


def test_keyword_is_case_insensitive_and_matches_tags(db):
    make_detection(db, title="Fake Senator Speech", tags=["politics"])
    make_detection(db, title="Cat video", description="Nothing here", tags=["Election"])
    make_detection(db, title="Unrelated")

    senator = db.execute(QueryComposer().keyword("senator").select()).scalars().all()
    election = db.execute(QueryComposer().keyword("election").select()).scalars().all()

    assert [d.title for d in senator] == ["Fake Senator Speech"]
    assert [d.title for d in election] == ["Cat video"]


def test_keyword_wildcards_are_literal(db):
    make_detection(db, title="100% fake")
    make_detection(db, title="100 fake")

    rows = db.execute(QueryComposer().keyword("100%").select()).scalars().all()
    assert [d.title for d in rows] == ["100% fake"]


def test_page_and_count_share_the_predicate_params():
    q = DetectionListQuery(
        startDate="2024-01-01", endDate="2024-01-31",
        mediaType="photo", minConfidence=0.5, platform="Twitter", limit=5, offset=10,
    )
    composer = QueryComposer.for_list(q)
    predicate_values = sorted(map(repr, composer.bound_params().values()))

    page = composer.select(limit=q.limit, offset=q.offset).compile().params
    count = composer.count().compile().params

    assert sorted(map(repr, count.values())) == predicate_values
    page_values = sorted(map(repr, page.values()))
    for value in predicate_values:
        assert value in page_values
    assert len(page) == len(predicate_values) + 2
