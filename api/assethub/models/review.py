"""Review model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from assethub.database import Base


class Review(Base):
    """Approval record for an asset."""

    __tablename__ = "reviews"
    __table_args__ = (
        # At most one PENDING review per asset
        Index(
            "uq_reviews_pending_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    submitted_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    # Status: PENDING, APPROVED, REJECTED, NEEDS_REVISION, CANCELLED
    comments = Column(Text, nullable=True)
    decided_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    asset = relationship("Asset", back_populates="reviews")
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    submitted_by = relationship("User", foreign_keys=[submitted_by_id])

    def __repr__(self):
        return f"<Review(id={self.id}, asset_id={self.asset_id}, status={self.status})>"
