"""
Request filter models.

Every read operation validates its query string into one of these models
before touching the database. Field aliases are the public (camelCase)
query parameter names.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

MediaTypeFilter = Literal["photo", "video", "all"]
ExportFormat = Literal["csv", "json"]

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_utc_naive(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; convert aware values onto that clock."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_bound(value, end_of_day: bool):
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)
    if isinstance(value, str):
        value = value.strip()
        if _DATE_ONLY_RE.match(value):
            day = date.fromisoformat(value)
            return datetime.combine(day, time.max if end_of_day else time.min)
    return value


class _FilterModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


class DateRangeQuery(_FilterModel):
    """Inclusive `detected_date` bounds; a date-only end covers its whole day."""

    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start(cls, v):
        return _parse_bound(v, end_of_day=False)

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end(cls, v):
        return _parse_bound(v, end_of_day=True)

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_tz(cls, v):
        return to_utc_naive(v) if v is not None else v

    @field_validator("end_date")
    @classmethod
    def _check_order(cls, v, info: ValidationInfo):
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("must be on or after startDate")
        return v


class DetectionListQuery(DateRangeQuery):
    media_type: MediaTypeFilter = Field("all", alias="mediaType")
    limit: int = Field(100, ge=1, le=1000)
    offset: int = Field(0, ge=0)
    min_confidence: float = Field(0.0, ge=0.0, le=1.0, alias="minConfidence")
    platform: Optional[str] = None
    verified: Optional[bool] = None


class RankingQuery(DateRangeQuery):
    media_type: MediaTypeFilter = Field("all", alias="mediaType")
    limit: int = Field(10, ge=1, le=50)


class SearchQuery(DateRangeQuery):
    """Keyword search; the date range is optional and applied only when complete."""

    query: str = Field(min_length=1)
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    media_type: MediaTypeFilter = Field("all", alias="mediaType")
    min_confidence: float = Field(0.0, ge=0.0, le=1.0, alias="minConfidence")
    platform: Optional[str] = None
    verified: Optional[bool] = None
    limit: int = Field(50, ge=1, le=100)

    @field_validator("query")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v.strip()


class DetectionExportQuery(DateRangeQuery):
    format: ExportFormat = "csv"
    media_type: MediaTypeFilter = Field("all", alias="mediaType")
    min_confidence: float = Field(0.0, ge=0.0, le=1.0, alias="minConfidence")


class StatsExportQuery(DateRangeQuery):
    format: ExportFormat = "csv"


class AlertCheckQuery(_FilterModel):
    min_confidence: float = Field(0.9, ge=0.0, le=1.0, alias="minConfidence")
    last_check_time: Optional[datetime] = Field(None, alias="lastCheckTime")
    platforms: list[str] = Field(default_factory=list)
    verified_only: bool = Field(False, alias="verifiedOnly")

    @field_validator("last_check_time")
    @classmethod
    def _normalize_tz(cls, v):
        return to_utc_naive(v) if v is not None else v

    @field_validator("platforms", mode="before")
    @classmethod
    def _split_platforms(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v


class MonitoringQuery(_FilterModel):
    hours: int = Field(24, ge=1, le=168)


def validation_message(exc: ValidationError, model: type[BaseModel]) -> str:
    """First error as `<param>: <message>`, using the public parameter name."""
    err = exc.errors()[0]
    loc = [str(part) for part in err.get("loc", ())]
    names = []
    for part in loc:
        field = model.model_fields.get(part)
        names.append(field.alias if field is not None and field.alias else part)
    msg = err.get("msg", "Invalid value")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{'.'.join(names)}: {msg}" if names else msg
