"""Activity log and notification fan-out."""

import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from assethub.models.activity import Activity, Notification
from assethub.models.asset import Asset
from assethub.schemas.events import ActivityEvent, ActivityType
from assethub.schemas.notification import NotificationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationTemplate:
    notification_type: str
    recipient: str  # "uploader" or "reviewer"
    title: str
    message: str  # formatted with the event's fields


NOTIFICATION_TEMPLATES: Dict[str, NotificationTemplate] = {
    ActivityType.ASSET_SUBMITTED_FOR_REVIEW: NotificationTemplate(
        NotificationType.REVIEW_ASSIGNED,
        "reviewer",
        "New review assigned",
        'You have been assigned to review "{asset_title}".',
    ),
    ActivityType.ASSET_APPROVED: NotificationTemplate(
        NotificationType.REVIEW_COMPLETED,
        "uploader",
        "Asset approved",
        'Your asset "{asset_title}" has been approved.',
    ),
    ActivityType.ASSET_REJECTED: NotificationTemplate(
        NotificationType.REVIEW_COMPLETED,
        "uploader",
        "Asset rejected",
        'Your asset "{asset_title}" has been rejected: {comments}',
    ),
    ActivityType.CHANGES_REQUESTED: NotificationTemplate(
        NotificationType.REVIEW_CHANGES_REQUESTED,
        "uploader",
        "Changes requested",
        'Changes were requested for "{asset_title}": {comments}',
    ),
    ActivityType.ASSET_PROCESSING_FAILED: NotificationTemplate(
        NotificationType.PROCESSING_FAILED,
        "uploader",
        "Processing failed",
        'We could not process "{asset_title}": {error}',
    ),
}


class ActivitySink:
    """Append-only activity log with a fixed notification fan-out.

    ``log`` only adds rows to the session; the caller owns the
    transaction, so an activity and its notification commit or roll back
    together with the state change that produced them.
    """

    def __init__(self, templates: Optional[Dict[str, NotificationTemplate]] = None):
        self.templates = NOTIFICATION_TEMPLATES if templates is None else templates

    def log(self, db: Session, event: ActivityEvent) -> Activity:
        activity = Activity(
            tenant_id=event.tenant_id,
            type=event.type,
            description=event.describe(),
            user_id=event.user_id,
            asset_id=event.asset_id,
            metadata_json=json.dumps(event.payload()),
        )
        db.add(activity)
        db.flush()

        template = self.templates.get(event.type)
        if template is not None:
            self._notify(db, activity, event, template)

        return activity

    def _notify(
        self,
        db: Session,
        activity: Activity,
        event: ActivityEvent,
        template: NotificationTemplate,
    ) -> Notification:
        recipient_id = self._resolve_recipient(db, event, template.recipient)
        notification = Notification(
            tenant_id=event.tenant_id,
            user_id=recipient_id,
            activity_id=activity.id,
            type=template.notification_type,
            title=template.title,
            message=template.message.format(**event.model_dump()),
            asset_id=event.asset_id,
        )
        db.add(notification)
        logger.debug(f"Queued {template.notification_type} notification for user {recipient_id}")
        return notification

    @staticmethod
    def _resolve_recipient(db: Session, event: ActivityEvent, recipient: str) -> int:
        if recipient == "reviewer":
            return event.reviewer_id
        asset = db.get(Asset, event.asset_id)
        return asset.uploaded_by_id


activity_sink = ActivitySink()


def list_asset_activity(db: Session, asset_id: int, limit: int = 50) -> List[Activity]:
    return (
        db.query(Activity)
        .filter(Activity.asset_id == asset_id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
        .all()
    )


def count_activity(db: Session, asset_id: int, activity_type: str) -> int:
    return (
        db.query(Activity)
        .filter(Activity.asset_id == asset_id, Activity.type == activity_type)
        .count()
    )
