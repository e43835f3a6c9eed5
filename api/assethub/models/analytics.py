"""Usage tracking models."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from assethub.database import Base


class AssetAnalytics(Base):
    """Daily view/download counters per asset."""

    __tablename__ = "asset_analytics"
    __table_args__ = (UniqueConstraint("asset_id", "date", name="uq_asset_analytics_asset_date"),)

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    views = Column(Integer, default=0, nullable=False)
    downloads = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<AssetAnalytics(asset_id={self.asset_id}, date={self.date})>"


class Download(Base):
    """Record of a signed download URL handed to a user."""

    __tablename__ = "downloads"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    purpose = Column(String(255), nullable=True)
    project_name = Column(String(255), nullable=True)
    usage_notes = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Download(id={self.id}, asset_id={self.asset_id}, user_id={self.user_id})>"
