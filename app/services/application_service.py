"""
Application Service - storage and queries for the applications collection.

The lifecycle rules live in app.models.application; this class only persists
what they produce. A status change is one update_one with $set + $push, so it
is atomic per document. There is no version check: two concurrent updates on
the same application resolve last-write-wins.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Tuple

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from app.core.errors import DuplicateError
from app.db.mongodb import get_collection, COLLECTIONS
from app.models.application import ApplicationStatus
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def empty_status_counts() -> Dict[str, int]:
    counts = {s.value: 0 for s in ApplicationStatus}
    counts["total"] = 0
    return counts


class ApplicationService:
    """Handles application documents."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["applications"])

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    def insert(
        self,
        job_id: ObjectId,
        student_id: ObjectId,
        resume: dict,
        cover_letter: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> dict:
        """
        Insert a new pending application.

        status_history starts empty: pending is the implicit initial state.

        Raises:
            DuplicateError: the (job_id, student_id) unique index rejected it
        """
        now = utcnow()
        doc = {
            "job_id": job_id,
            "student_id": student_id,
            "status": ApplicationStatus.pending.value,
            "resume": resume,
            "cover_letter": cover_letter,
            "status_history": [],
            "withdrawal_reason": None,
            "reviewed_at": None,
            "rejected_at": None,
            "withdrawn_at": None,
            "metadata": metadata or {"source": "web"},
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.warning(f"Duplicate application blocked by unique index job={job_id} student={student_id}")
            raise DuplicateError()
        doc["_id"] = result.inserted_id
        return doc

    def record_transition(self, application_id: ObjectId, update: dict) -> bool:
        """Apply an update built by Application.transition_update()."""
        result = self.collection.update_one({"_id": application_id}, update)
        return result.modified_count > 0

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    def get_by_id(self, application_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": application_id})

    def find_for(self, job_id: ObjectId, student_id: ObjectId) -> Optional[dict]:
        """The application a student made to a job, if any."""
        return self.collection.find_one({"job_id": job_id, "student_id": student_id})

    def paginate(
        self,
        query: dict,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None
    ) -> Tuple[List[dict], int]:
        """
        Paginated listing, newest first.

        Returns:
            (documents for this page, total matching documents)
        """
        query = dict(query)
        if status:
            query["status"] = status
        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total

    def status_counts(self, query: dict) -> Dict[str, int]:
        """Count applications per status bucket, plus a total."""
        counts = empty_status_counts()
        pipeline = [
            {"$match": query},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]
        for row in self.collection.aggregate(pipeline):
            counts[row["_id"]] = row["count"]
            counts["total"] += row["count"]
        return counts

    def analytics(
        self,
        job_ids: List[ObjectId],
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> dict:
        """
        Per-status totals and a per-day breakdown for a set of jobs.

        Returns:
            {"summary": {"total": n, "pending": n, ...},
             "breakdown": {"pending": [{"date": "2026-01-31", "count": n}, ...], ...}}
        """
        match: dict = {"job_id": {"$in": job_ids}}
        if date_from or date_to:
            match["created_at"] = {}
            if date_from:
                match["created_at"]["$gte"] = date_from
            if date_to:
                match["created_at"]["$lte"] = date_to

        pipeline = [
            {"$match": match},
            {"$group": {
                "_id": {
                    "status": "$status",
                    "year": {"$year": "$created_at"},
                    "month": {"$month": "$created_at"},
                    "day": {"$dayOfMonth": "$created_at"},
                },
                "count": {"$sum": 1},
            }},
        ]

        summary = empty_status_counts()
        breakdown: Dict[str, List[dict]] = {}
        for row in self.collection.aggregate(pipeline):
            key = row["_id"]
            day = f"{key['year']:04d}-{key['month']:02d}-{key['day']:02d}"
            summary[key["status"]] += row["count"]
            summary["total"] += row["count"]
            breakdown.setdefault(key["status"], []).append({"date": day, "count": row["count"]})

        for days in breakdown.values():
            days.sort(key=lambda d: d["date"])

        return {"summary": summary, "breakdown": breakdown}
