"""SQLAlchemy models for the deepfake detection store"""
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, the convention for every stored timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

MEDIA_TYPES = ("photo", "video")


class Detection(Base):
    """A media item flagged as synthetically manipulated"""
    __tablename__ = "deepfake_media"
    __table_args__ = (
        CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 1",
            name="ck_confidence_score_range",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    media_type = Column(Enum(*MEDIA_TYPES, name="media_type"), nullable=False, index=True)
    media_url = Column(String(2048), nullable=False)
    thumbnail_url = Column(String(2048), nullable=True)
    title = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)

    # 0.0000 to 1.0000
    confidence_score = Column(Numeric(5, 4, asdecimal=False), nullable=False, index=True)
    detection_method = Column(String(100), nullable=True)
    source_platform = Column(String(100), nullable=True, index=True)

    upload_date = Column(DateTime, nullable=True)
    detected_date = Column(DateTime, nullable=False, default=utcnow, index=True)

    file_size_mb = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    duration_seconds = Column(Integer, nullable=True)  # videos only
    resolution = Column(String(20), nullable=True)  # e.g. "1920x1080"

    # Set by manual review outside this system
    is_verified = Column(Boolean, nullable=False, default=False, index=True)

    tags = Column(JSON, nullable=True)
    # `metadata` is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Detection(id={self.id}, type={self.media_type}, score={self.confidence_score})>"


class DailyStat(Base):
    """Daily rollup written by the external batch job; read-only here"""
    __tablename__ = "detection_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    deepfake_photos_count = Column(Integer, nullable=False, default=0)
    deepfake_videos_count = Column(Integer, nullable=False, default=0)
    total_analyzed_photos = Column(Integer, nullable=False, default=0)
    total_analyzed_videos = Column(Integer, nullable=False, default=0)
    avg_confidence_score = Column(Numeric(5, 4, asdecimal=False), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
