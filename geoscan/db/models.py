from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from geoscan.db.base import Base


class VisibilityMetricsRecord(Base):
    """Stored VisibilityMetrics snapshot for one tracked brand."""

    __tablename__ = "visibility_metrics"

    brand_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # compare-and-swap token

    # Denormalized headline numbers for dashboards; payload is authoritative
    geo_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    brand_mentions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    competitor_mentions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overall_presence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # VisibilityMetrics.to_dict(): history + daily_metrics
    payload: Mapped[dict] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
