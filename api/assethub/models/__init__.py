"""SQLAlchemy models."""

from assethub.database import Base
from assethub.models.tenant import Tenant
from assethub.models.user import User
from assethub.models.asset import Asset, AssetVariant
from assethub.models.review import Review
from assethub.models.activity import Activity, Notification
from assethub.models.analytics import AssetAnalytics, Download
from assethub.models.service_config import ConfigAuditLog, ServiceConfig

__all__ = [
    "Base",
    "Tenant",
    "User",
    "Asset",
    "AssetVariant",
    "Review",
    "Activity",
    "Notification",
    "AssetAnalytics",
    "Download",
    "ServiceConfig",
    "ConfigAuditLog",
]
