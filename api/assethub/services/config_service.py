"""Persisted service configuration with an audit trail."""

import json
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from assethub.encryption import decrypt_credentials, encrypt_credentials
from assethub.errors import NotFoundError, ValidationError
from assethub.models.service_config import ConfigAuditLog, ServiceConfig
from assethub.models.user import User
from assethub.schemas.events import ConfigUpdated
from assethub.schemas.service_config import (
    ConfigAuditEntry,
    ConfigKind,
    ServiceConfigResponse,
    ServiceConfigUpdate,
)
from assethub.services.activity_service import ActivitySink, activity_sink
from assethub.storage.base import StorageConfigurationError
from assethub.storage.factory import get_storage_driver_from_config

logger = logging.getLogger(__name__)


def _check_kind(kind: str) -> None:
    if kind not in ConfigKind.PROVIDERS:
        raise NotFoundError(f"Unknown configuration kind: {kind}")


def get_config(db: Session, tenant_id: int, kind: str) -> ServiceConfig:
    _check_kind(kind)
    config = (
        db.query(ServiceConfig)
        .filter(ServiceConfig.tenant_id == tenant_id, ServiceConfig.kind == kind)
        .first()
    )
    if not config:
        raise NotFoundError(f"No {kind} configuration for this tenant")
    return config


def credential_fields(config: ServiceConfig) -> List[str]:
    if not config.credentials_encrypted:
        return []
    try:
        return sorted(decrypt_credentials(config.credentials_encrypted).keys())
    except ValueError:
        logger.error(f"Stored credentials for config {config.id} cannot be decrypted")
        return []


def to_response(config: ServiceConfig) -> ServiceConfigResponse:
    """Render a config without any secret values."""
    return ServiceConfigResponse(
        id=config.id,
        tenant_id=config.tenant_id,
        kind=config.kind,
        provider=config.provider,
        base_path=config.base_path,
        options=json.loads(config.options_json) if config.options_json else {},
        has_credentials=bool(config.credentials_encrypted),
        credential_fields=credential_fields(config),
        created_at=config.created_at,
        updated_at=config.updated_at,
    )


def _validate_storage(data: ServiceConfigUpdate, credentials: Optional[dict]) -> None:
    merged = dict(data.options)
    merged.update(credentials or {})
    try:
        get_storage_driver_from_config(data.provider, data.base_path, merged)
    except StorageConfigurationError as e:
        raise ValidationError(str(e))


def _audit(
    db: Session,
    tenant_id: int,
    actor: User,
    kind: str,
    action: str,
    changed: List[str],
    sink: ActivitySink,
) -> None:
    db.add(
        ConfigAuditLog(
            tenant_id=tenant_id,
            actor_id=actor.id,
            action=action,
            kind=kind,
            changed_fields=json.dumps(changed),
        )
    )
    sink.log(
        db,
        ConfigUpdated(tenant_id=tenant_id, user_id=actor.id, kind=kind, action=action, changed_fields=changed),
    )


def upsert_config(
    db: Session,
    tenant_id: int,
    kind: str,
    data: ServiceConfigUpdate,
    actor: User,
    sink: ActivitySink = activity_sink,
) -> ServiceConfig:
    """
    Create or replace the tenant's configuration for ``kind``.

    Credentials are encrypted before they reach the database. Omitting
    ``credentials`` keeps the stored ones.

    Raises:
        ValidationError: If the provider is unknown or the storage config is unusable
    """
    _check_kind(kind)
    providers = ConfigKind.PROVIDERS[kind]
    if data.provider not in providers:
        raise ValidationError(f"Invalid provider. Must be one of: {', '.join(providers)}")

    config = (
        db.query(ServiceConfig)
        .filter(ServiceConfig.tenant_id == tenant_id, ServiceConfig.kind == kind)
        .first()
    )
    action = "update" if config else "create"

    credentials = data.credentials
    if credentials is None and config is not None and config.credentials_encrypted:
        try:
            credentials = decrypt_credentials(config.credentials_encrypted)
        except ValueError:
            raise ValidationError("Stored credentials cannot be decrypted; submit them again")

    if kind == ConfigKind.STORAGE:
        _validate_storage(data, credentials)

    options_json = json.dumps(data.options, sort_keys=True)
    changed = []
    if config is None:
        config = ServiceConfig(tenant_id=tenant_id, kind=kind)
        db.add(config)
        changed = ["provider", "base_path", "options"]
    else:
        if config.provider != data.provider:
            changed.append("provider")
        if config.base_path != data.base_path:
            changed.append("base_path")
        if (config.options_json or "{}") != options_json:
            changed.append("options")

    if data.credentials is not None:
        changed.append("credentials")
        config.credentials_encrypted = encrypt_credentials(data.credentials) if data.credentials else None

    config.provider = data.provider
    config.base_path = data.base_path
    config.options_json = options_json

    try:
        db.flush()
        _audit(db, tenant_id, actor, kind, action, changed, sink)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(config)
    logger.info(f"User {actor.id} {action}d {kind} config for tenant {tenant_id}: {changed}")
    return config


def delete_config(
    db: Session, tenant_id: int, kind: str, actor: User, sink: ActivitySink = activity_sink
) -> None:
    config = get_config(db, tenant_id, kind)
    try:
        db.delete(config)
        _audit(db, tenant_id, actor, kind, "delete", [], sink)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"User {actor.id} deleted {kind} config for tenant {tenant_id}")


def list_audit(db: Session, tenant_id: int, kind: Optional[str] = None, limit: int = 100) -> List[ConfigAuditEntry]:
    query = db.query(ConfigAuditLog).filter(ConfigAuditLog.tenant_id == tenant_id)
    if kind:
        query = query.filter(ConfigAuditLog.kind == kind)
    entries = query.order_by(ConfigAuditLog.created_at.desc(), ConfigAuditLog.id.desc()).limit(limit).all()
    return [
        ConfigAuditEntry(
            id=entry.id,
            actor_id=entry.actor_id,
            action=entry.action,
            kind=entry.kind,
            changed_fields=json.loads(entry.changed_fields) if entry.changed_fields else [],
            created_at=entry.created_at,
        )
        for entry in entries
    ]
