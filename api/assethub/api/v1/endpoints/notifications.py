"""Notification endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from assethub.api.deps import get_current_user, get_db
from assethub.models.user import User
from assethub.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from assethub.services import notification_service

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, unread_count = notification_service.list_notifications(db, user.id, unread_only, limit)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        unread_count=unread_count,
    )


@router.post("/mark-all-read", response_model=MarkAllReadResponse)
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return MarkAllReadResponse(updated=notification_service.mark_all_read(db, user.id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a notification read. Only its recipient can."""
    return NotificationResponse.model_validate(
        notification_service.mark_read(db, notification_id, user.id)
    )
