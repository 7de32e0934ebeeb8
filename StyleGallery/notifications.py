# notifications.py
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from db import get_db
from errors import NotFound, ok
from models import Notification, User

# --- Module-level Configuration ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationType(str, Enum):
    DESIGN_LIKED = "design_liked"
    DESIGN_COMMENTED = "design_commented"
    DESIGN_SHARED = "design_shared"
    NEW_FOLLOWER = "new_follower"


# ===================================================================
# Pydantic Schemas
# ===================================================================

class NotificationEvent(BaseModel):
    """A notification to deliver to `user_id`."""
    user_id: str
    type: NotificationType
    title: str
    message: str
    related_id: Optional[str] = None
    related_model: Optional[str] = None
    action_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    related_id: Optional[str]
    related_model: Optional[str]
    action_url: Optional[str]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @classmethod
    def from_record(cls, n: Notification) -> "NotificationOut":
        # The column is `extra`; `metadata` is reserved on declarative models
        return cls(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            related_id=n.related_id,
            related_model=n.related_model,
            action_url=n.action_url,
            metadata=n.extra or {},
            is_read=n.is_read,
            created_at=n.created_at,
        )


# ===================================================================
# Emitter
# ===================================================================

class NotificationEmitter:
    """
    Writes notification records for the social engine.

    Delivery is fire-and-forget: `emit` never raises. It runs after the
    triggering write has committed, so rolling back a failed notification
    leaves the like/comment/share/follow in place.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def emit(self, event: NotificationEvent) -> bool:
        try:
            self.session.add(
                Notification(
                    user_id=event.user_id,
                    type=event.type.value,
                    title=event.title,
                    message=event.message,
                    related_id=event.related_id,
                    related_model=event.related_model,
                    action_url=event.action_url,
                    extra=event.metadata,
                )
            )
            await self.session.commit()
        except Exception as e:
            logger.error(f"Notification '{event.type.value}' for user {event.user_id} failed: {e}")
            try:
                await self.session.rollback()
            except Exception:
                logger.exception("Rollback after failed notification also failed")
            return False

        logger.info(f"🔔 Notification '{event.type.value}' sent to user {event.user_id}")
        return True


# ===================================================================
# API Endpoints
# ===================================================================

@router.get("", summary="List the current user's notifications")
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first, with the number of unread notifications."""
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    notifications = result.scalars().all()

    unread = await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False),
        )
    )
    return ok({
        "notifications": [
            NotificationOut.from_record(n).model_dump(by_alias=True, mode="json")
            for n in notifications
        ],
        "unreadCount": unread.scalar_one(),
    })


@router.patch("/read-all", summary="Mark every notification as read")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return ok({"updated": result.rowcount}, message="Notifications marked as read")


@router.patch("/{notification_id}/read", summary="Mark one notification as read")
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = await db.get(Notification, notification_id)
    # Someone else's notification looks the same as a missing one
    if notification is None or notification.user_id != current_user.id:
        raise NotFound("Notification not found")
    notification.is_read = True
    await db.commit()
    return ok(NotificationOut.from_record(notification), message="Notification marked as read")
