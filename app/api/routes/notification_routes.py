"""
Notification Routes

GET /notifications - List my notifications
PATCH /notifications/{id}/read - Mark one as read
"""

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_current_user
from app.core.errors import NotFoundError
from app.services.notification_service import NotificationService
from app.utils.helpers import parse_object_id, pagination_meta
from app.schemas.schemas import NotificationResponse, NotificationListResponse, MessageResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    user: dict = Depends(get_current_user)
):
    """Get notifications for the current user, newest first."""
    docs, total, unread = NotificationService().list_for_user(
        user["user_id"], unread_only=unread_only, page=page, limit=limit
    )
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=str(d["_id"]), type=d["type"], title=d["title"], message=d["message"],
                priority=d["priority"], read=d["read"], metadata=d.get("metadata", {}),
                created_at=d["created_at"], read_at=d.get("read_at")
            ) for d in docs
        ],
        pagination=pagination_meta(total, page, limit),
        unread_count=unread,
    )


@router.patch("/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(notification_id: str, user: dict = Depends(get_current_user)):
    """Mark a notification as read."""
    nid = parse_object_id(notification_id, label="notification ID")
    if not NotificationService().mark_read(nid, user["user_id"]):
        raise NotFoundError("Notification not found", code="NOT_001")
    return MessageResponse(message="Notification marked as read")
