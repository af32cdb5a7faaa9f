"""
Notification Service - user-facing messages about application activity.

Two kinds are produced:
- new_application: to the recruiter when a student applies
- application_status: to the student when a recruiter reviews/rejects

notify_* functions are meant to run as FastAPI background tasks after the
state change is committed. They never raise: a failed notification is logged
and dropped, the application change stands.
"""

import logging
from datetime import timedelta
from typing import Optional, List, Tuple

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection

from app.core.config import get_settings
from app.db.mongodb import get_collection, COLLECTIONS
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)


NEW_APPLICATION = "new_application"
APPLICATION_STATUS = "application_status"

TEMPLATES = {
    NEW_APPLICATION: {
        "title": lambda d: "New Application Received",
        "message": lambda d: f"New application received for {d['job_title']} from {d['applicant_name']}",
        "priority": "high",
    },
    APPLICATION_STATUS: {
        "title": lambda d: f"Application Update: {d['job_title']}",
        "message": lambda d: f"Your application for {d['job_title']} has been {d['status']}",
        "priority": "high",
    },
}


class NotificationService:
    """Handles the notifications collection."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["notifications"])

    def create(self, user_id: ObjectId, kind: str, data: dict, metadata: Optional[dict] = None) -> str:
        """
        Render a template and store the notification.

        Returns:
            MongoDB ObjectId as string
        """
        if kind not in TEMPLATES:
            raise ValueError(f"Unknown notification type: {kind}")
        template = TEMPLATES[kind]
        now = utcnow()
        doc = {
            "user_id": user_id,
            "type": kind,
            "title": template["title"](data),
            "message": template["message"](data),
            "priority": template["priority"],
            "read": False,
            "read_at": None,
            "metadata": metadata or {},
            "created_at": now,
            "expires_at": now + timedelta(days=get_settings().notification_ttl_days),
        }
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def list_for_user(
        self,
        user_id: ObjectId,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[dict], int, int]:
        """
        Returns:
            (notifications for this page, total matching, unread count)
        """
        query = {"user_id": user_id}
        if unread_only:
            query["read"] = False
        total = self.collection.count_documents(query)
        unread = self.collection.count_documents({"user_id": user_id, "read": False})
        cursor = (
            self.collection.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total, unread

    def mark_read(self, notification_id: ObjectId, user_id: ObjectId) -> bool:
        """Mark one of the user's notifications read. False if it isn't theirs or doesn't exist."""
        result = self.collection.update_one(
            {"_id": notification_id, "user_id": user_id},
            {"$set": {"read": True, "read_at": utcnow()}}
        )
        return result.matched_count > 0


# ============================================================
# FIRE-AND-FORGET HELPERS (background tasks)
# ============================================================

def notify_new_application(recruiter_id: ObjectId, job_title: str, applicant_name: str, metadata: dict):
    """Tell the recruiter someone applied. Swallows and logs any failure."""
    try:
        NotificationService().create(
            recruiter_id,
            NEW_APPLICATION,
            {"job_title": job_title, "applicant_name": applicant_name},
            metadata,
        )
    except Exception:
        logger.exception(
            f"Failed to create new-application notification recruiter={recruiter_id} "
            f"application={metadata.get('application_id')}"
        )


def notify_status_change(student_id: ObjectId, job_title: str, status: str, metadata: dict):
    """Tell the student their application moved. Swallows and logs any failure."""
    try:
        NotificationService().create(
            student_id,
            APPLICATION_STATUS,
            {"job_title": job_title, "status": status},
            metadata,
        )
    except Exception:
        logger.exception(
            f"Failed to create status notification student={student_id} "
            f"application={metadata.get('application_id')}"
        )
