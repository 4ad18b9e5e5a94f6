from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class DetectionOut(BaseModel):
    """One row of `deepfake_media` as returned by list, search and export."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    media_type: str
    media_url: str
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    confidence_score: float
    detection_method: Optional[str] = None
    source_platform: Optional[str] = None
    upload_date: Optional[datetime] = None
    detected_date: datetime
    file_size_mb: Optional[float] = None
    duration_seconds: Optional[int] = None
    resolution: Optional[str] = None
    is_verified: bool = False
    tags: Optional[list[str]] = None
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("extra_metadata", "metadata")
    )


class RankedDetection(DetectionOut):
    rank: int


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool


class DetectionPage(BaseModel):
    data: list[DetectionOut]
    pagination: Pagination


class Period(BaseModel):
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None


class RankingResponse(BaseModel):
    rankings: list[RankedDetection]
    period: Period
    mediaType: str


class SearchResponse(BaseModel):
    results: list[DetectionOut]
    query: str
    total: int


class PlatformListResponse(BaseModel):
    platforms: list[str]
