from dashboard.schemas.alerts import AlertCheckResponse, AlertDetection, SpikeInfo
from dashboard.schemas.detections import (
    DetectionOut,
    DetectionPage,
    PlatformListResponse,
    RankedDetection,
    RankingResponse,
    SearchResponse,
)
from dashboard.schemas.filters import (
    AlertCheckQuery,
    DateRangeQuery,
    DetectionExportQuery,
    DetectionListQuery,
    MonitoringQuery,
    RankingQuery,
    SearchQuery,
    StatsExportQuery,
)
from dashboard.schemas.stats import DayStat, PlatformStat, SummaryStat

__all__ = [
    "AlertCheckResponse",
    "AlertDetection",
    "SpikeInfo",
    "DetectionOut",
    "DetectionPage",
    "PlatformListResponse",
    "RankedDetection",
    "RankingResponse",
    "SearchResponse",
    "AlertCheckQuery",
    "DateRangeQuery",
    "DetectionExportQuery",
    "DetectionListQuery",
    "MonitoringQuery",
    "RankingQuery",
    "SearchQuery",
    "StatsExportQuery",
    "DayStat",
    "PlatformStat",
    "SummaryStat",
]
