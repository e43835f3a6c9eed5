"""Role based permissions."""


class Role:
    """User role values."""

    ADMIN = "ADMIN"
    CONTENT_MANAGER = "CONTENT_MANAGER"
    REVIEWER = "REVIEWER"
    CREATIVE = "CREATIVE"
    USER = "USER"

    REVIEW_CAPABLE = (REVIEWER, CONTENT_MANAGER, ADMIN)


class Permission:
    """Permission names."""

    ALL = "*"
    ASSET_CREATE = "asset.create"
    ASSET_READ = "asset.read"
    ASSET_UPDATE = "asset.update"
    ASSET_ARCHIVE = "asset.archive"
    ASSET_DOWNLOAD = "asset.download"
    ASSET_REVIEW = "asset.review"
    ASSET_REPROCESS = "asset.reprocess"
    REVIEW_MANAGE = "review.manage"
    ANALYTICS_READ = "analytics.read"
    CONFIG_MANAGE = "config.manage"


ROLE_PERMISSIONS = {
    Role.ADMIN: {Permission.ALL},
    Role.CONTENT_MANAGER: {
        Permission.ASSET_CREATE,
        Permission.ASSET_READ,
        Permission.ASSET_UPDATE,
        Permission.ASSET_ARCHIVE,
        Permission.ASSET_DOWNLOAD,
        Permission.ASSET_REVIEW,
        Permission.ASSET_REPROCESS,
        Permission.REVIEW_MANAGE,
        Permission.ANALYTICS_READ,
    },
    Role.REVIEWER: {
        Permission.ASSET_READ,
        Permission.ASSET_DOWNLOAD,
        Permission.ASSET_REVIEW,
        Permission.ANALYTICS_READ,
    },
    Role.CREATIVE: {
        Permission.ASSET_CREATE,
        Permission.ASSET_READ,
        Permission.ASSET_DOWNLOAD,
    },
    Role.USER: {
        Permission.ASSET_READ,
        Permission.ASSET_DOWNLOAD,
    },
}


def has_permission(role: str, permission: str) -> bool:
    granted = ROLE_PERMISSIONS.get(role, set())
    return Permission.ALL in granted or permission in granted
