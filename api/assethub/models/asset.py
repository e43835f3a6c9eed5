"""Asset and variant models."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from assethub.database import Base


class Asset(Base):
    """Stored media object and its lifecycle state."""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    type = Column(String(20), nullable=False, index=True)
    # Type: IMAGE, VIDEO, DOCUMENT, AUDIO, MODEL_3D, DESIGN, OTHER
    file_key = Column(String(1000), nullable=False, unique=True)
    filename = Column(String(500), nullable=False)
    original_filename = Column(String(500), nullable=False)
    mime_type = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    format = Column(String(50), nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    duration = Column(Float, nullable=True)
    processing_status = Column(String(20), nullable=False, default="PENDING", index=True)
    # Status: PENDING, PROCESSING, COMPLETED, FAILED, NEEDS_REVISION
    processing_error = Column(Text, nullable=True)
    thumbnail_key = Column(String(1000), nullable=True)
    preview_key = Column(String(1000), nullable=True)
    ready_for_publishing = Column(Boolean, default=False, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False, index=True)
    archived_at = Column(DateTime, nullable=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    upload_batch_id = Column(String(64), nullable=True, index=True)
    download_count = Column(Integer, default=0, nullable=False)
    metadata_json = Column(Text, nullable=True)  # tags, keywords, custom fields
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="assets")
    uploaded_by = relationship("User")
    variants = relationship(
        "AssetVariant",
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="AssetVariant.id",
    )
    reviews = relationship("Review", back_populates="asset", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Asset(id={self.id}, type={self.type}, status={self.processing_status})>"


class AssetVariant(Base):
    """Derived rendition of an asset, keyed by (asset, variant type)."""

    __tablename__ = "asset_variants"
    __table_args__ = (UniqueConstraint("asset_id", "variant_type", name="uq_asset_variants_asset_type"),)

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_type = Column(String(20), nullable=False)
    # Type: THUMBNAIL, PREVIEW, WEB_OPTIMIZED, MOBILE
    file_key = Column(String(1000), nullable=False)
    mime_type = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    asset = relationship("Asset", back_populates="variants")

    def __repr__(self):
        return f"<AssetVariant(asset_id={self.asset_id}, type={self.variant_type})>"
