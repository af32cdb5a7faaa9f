"""
MongoDB Service - CRUD for the collaborator collections (users, jobs).

Applications live in application_service.py, notifications in
notification_service.py.
"""

import logging
from datetime import timedelta
from typing import Optional, List, Dict, Iterable

from bson import ObjectId
from pymongo.collection import Collection

from app.db.mongodb import get_collection, COLLECTIONS
from app.services.storage_service import get_resume_storage
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)


# ============================================================
# USERS COLLECTION
# Provisioned by the auth service; we only read them here
# ============================================================

class UserService:
    """Read access to users (students, recruiters, admins)."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["users"])

    def get_by_id(self, user_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": user_id})

    def get_many(self, user_ids: Iterable[ObjectId]) -> Dict[str, dict]:
        """Fetch several users at once, keyed by string id (used to populate lists)."""
        ids = list({uid for uid in user_ids})
        if not ids:
            return {}
        cursor = self.collection.find({"_id": {"$in": ids}}, {"name": 1, "email": 1, "role": 1})
        return {str(doc["_id"]): doc for doc in cursor}


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobService:
    """
    Handles job posting storage.
    Jobs are the parent of applications: deleting one removes its applications.
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"])
        self.applications: Collection = get_collection(COLLECTIONS["applications"])

    def insert(self, data: dict, created_by: ObjectId, ttl_days: int) -> dict:
        """
        Insert a new active job.

        Args:
            data: validated JobCreate fields
            created_by: recruiter user id
            ttl_days: default lifetime when data has no expires_at
        """
        now = utcnow()
        doc = {
            **data,
            "created_by": created_by,
            "status": "active",
            "expires_at": data.get("expires_at") or now + timedelta(days=ttl_days),
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_by_id(self, job_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": job_id})

    def get_many(self, job_ids: Iterable[ObjectId]) -> Dict[str, dict]:
        ids = list({jid for jid in job_ids})
        if not ids:
            return {}
        cursor = self.collection.find({"_id": {"$in": ids}}, {"title": 1, "role": 1, "created_by": 1, "status": 1})
        return {str(doc["_id"]): doc for doc in cursor}

    def ids_created_by(self, recruiter_id: ObjectId) -> List[ObjectId]:
        """All job ids owned by a recruiter."""
        return [doc["_id"] for doc in self.collection.find({"created_by": recruiter_id}, {"_id": 1})]

    def delete_with_applications(self, job_ids: List[ObjectId]) -> Dict[str, int]:
        """
        Delete jobs and cascade to their applications and stored resumes.
        Applications go first so a crash in between never leaves orphans.
        Resume files are removed last, best effort.
        """
        if not job_ids:
            return {"jobs": 0, "applications": 0}
        resume_urls = [
            doc["resume"]["url"]
            for doc in self.applications.find({"job_id": {"$in": job_ids}}, {"resume.url": 1})
            if doc.get("resume", {}).get("url")
        ]
        apps = self.applications.delete_many({"job_id": {"$in": job_ids}})
        jobs = self.collection.delete_many({"_id": {"$in": job_ids}})

        storage = get_resume_storage()
        for url in resume_urls:
            storage.delete(url)

        return {"jobs": jobs.deleted_count, "applications": apps.deleted_count}

    def purge_older_than(self, days: int) -> Dict[str, int]:
        """Retention: remove jobs created more than `days` ago, with their applications."""
        threshold = utcnow() - timedelta(days=days)
        old_ids = [doc["_id"] for doc in self.collection.find({"created_at": {"$lt": threshold}}, {"_id": 1})]
        logger.info(f"Found {len(old_ids)} jobs older than {days} days")
        return self.delete_with_applications(old_ids)
