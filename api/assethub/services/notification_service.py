"""Notification inbox operations."""

from datetime import datetime
from typing import List, Tuple

from sqlalchemy.orm import Session

from assethub.errors import NotFoundError
from assethub.models.activity import Notification


def list_notifications(
    db: Session, user_id: int, unread_only: bool = False, limit: int = 50
) -> Tuple[List[Notification], int]:
    """Recipient's notifications, newest first, plus the unread count."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    unread_count = query.filter(Notification.is_read.is_(False)).count()

    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    items = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return items, unread_count


def mark_read(db: Session, notification_id: int, user_id: int) -> Notification:
    """Mark one notification read. Only its recipient may do so.

    Raises:
        NotFoundError: If the notification does not exist or belongs to someone else
    """
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotFoundError(f"Notification {notification_id} not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)

    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    )
    db.commit()
    return updated
