from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict

from dashboard.schemas.detections import Period


class DailyStatOut(BaseModel):
    """Materialized daily rollup (read-only)."""
    model_config = ConfigDict(from_attributes=True)

    date: date
    deepfake_photos_count: int
    deepfake_videos_count: int
    total_analyzed_photos: int
    total_analyzed_videos: int
    avg_confidence_score: Optional[float] = None


class DayStat(BaseModel):
    """Detections grouped by calendar day."""
    date: date
    photos_count: int
    videos_count: int
    avg_confidence: Optional[float] = None
    total_count: int
    verified_count: int


class PlatformStat(BaseModel):
    """Detections grouped by source platform; None is its own group."""
    source_platform: Optional[str] = None
    total_count: int
    photos_count: int
    videos_count: int
    avg_confidence: Optional[float] = None
    max_confidence: Optional[float] = None
    verified_count: int


class SummaryStat(BaseModel):
    total_deepfakes: int
    total_photos: int
    total_videos: int
    avg_confidence: Optional[float] = None
    max_confidence: Optional[float] = None
    min_confidence: Optional[float] = None
    verified_count: int
    platforms_count: int


class RecentSummary(BaseModel):
    total_count: int
    photo_count: int
    video_count: int
    avg_confidence: Optional[float] = None
    max_confidence: Optional[float] = None
    high_confidence_count: int


class PlatformCount(BaseModel):
    source_platform: Optional[str] = None
    count: int


class StatsResponse(BaseModel):
    historical_stats: list[DailyStatOut]
    realtime_stats: list[DayStat]


class PlatformStatsResponse(BaseModel):
    platforms: list[PlatformStat]
    period: Period


class SummaryResponse(BaseModel):
    summary: SummaryStat
    period: Period


class MonitoringResponse(BaseModel):
    period: str
    summary: RecentSummary
    platforms: list[PlatformCount]
    timestamp: str
