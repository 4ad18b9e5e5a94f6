from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AlertDetection(BaseModel):
    """Trimmed detection row carried in alert-check responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    media_type: str
    media_url: str
    title: Optional[str] = None
    confidence_score: float
    source_platform: Optional[str] = None
    detected_date: datetime
    is_verified: bool = False


class SpikeInfo(BaseModel):
    todayCount: int
    avgCount: int
    percentIncrease: int


class AlertCheckResponse(BaseModel):
    alerts: list[AlertDetection]
    totalAlerts: int
    spikeDetected: bool
    spikeInfo: Optional[SpikeInfo] = None
    checkTime: str
