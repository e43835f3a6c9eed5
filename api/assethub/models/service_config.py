"""Persisted service configuration models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from assethub.database import Base


class ServiceConfig(Base):
    """Tenant configuration for an external service (storage, email)."""

    __tablename__ = "service_configs"
    __table_args__ = (UniqueConstraint("tenant_id", "kind", name="uq_service_configs_tenant_kind"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # 'storage', 'email'
    provider = Column(String(50), nullable=False)  # 's3', 'local', 'smtp', 'ses'
    base_path = Column(String(500), nullable=False, default="")
    options_json = Column(Text, nullable=True)  # non-secret settings
    credentials_encrypted = Column(Text, nullable=True)  # Fernet-encrypted JSON
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="service_configs")

    def __repr__(self):
        return f"<ServiceConfig(id={self.id}, tenant_id={self.tenant_id}, kind={self.kind}, provider={self.provider})>"


class ConfigAuditLog(Base):
    """Who changed which configuration, and when."""

    __tablename__ = "config_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(String(20), nullable=False)  # create, update, delete
    kind = Column(String(20), nullable=False)
    changed_fields = Column(Text, nullable=True)  # JSON list of field names, never values
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ConfigAuditLog(id={self.id}, kind={self.kind}, action={self.action})>"
