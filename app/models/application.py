"""
Application entity and its status lifecycle.

    pending ──► reviewed   (recruiter)
       │  ───► rejected   (recruiter)
       └────► withdrawn  (owning student)

Nothing leaves reviewed / rejected / withdrawn. A new application has an empty
status_history: pending is implicit, only transitions are recorded.

The model is pure (no database access). Routes load a document, call
withdraw() / set_status(), then hand the returned history entry to
ApplicationService.record_transition() which persists it in one update.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Set

from bson import ObjectId
from pydantic import BaseModel, Field

from app.core.errors import InvalidTransitionError
from app.utils.helpers import utcnow


# Stamped on transitions nobody clicked a button for (e.g. an expiry sweep)
SYSTEM_ACTOR_ID = "000000000000000000000000"

DEFAULT_WITHDRAWAL_REASON = "Withdrawn by student"


class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    rejected = "rejected"
    withdrawn = "withdrawn"


# Statuses a recruiter may set through the status-update route
RECRUITER_STATUSES = {ApplicationStatus.reviewed, ApplicationStatus.rejected}

ALLOWED_TRANSITIONS: Dict[ApplicationStatus, Set[ApplicationStatus]] = {
    ApplicationStatus.pending: {
        ApplicationStatus.reviewed,
        ApplicationStatus.rejected,
        ApplicationStatus.withdrawn,
    },
    ApplicationStatus.reviewed: set(),
    ApplicationStatus.rejected: set(),
    ApplicationStatus.withdrawn: set(),
}

# Which timestamp field a transition into a status stamps
TRANSITION_TIMESTAMPS = {
    ApplicationStatus.reviewed: "reviewed_at",
    ApplicationStatus.rejected: "rejected_at",
    ApplicationStatus.withdrawn: "withdrawn_at",
}


class StatusHistoryEntry(BaseModel):
    status: ApplicationStatus
    timestamp: datetime
    updated_by: str
    reason: Optional[str] = None


class ResumeInfo(BaseModel):
    url: str
    filename: str
    size: int


class SubmissionMetadata(BaseModel):
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    source: str = "web"


class Application(BaseModel):
    id: Optional[str] = None
    job_id: str
    student_id: str
    status: ApplicationStatus = ApplicationStatus.pending
    resume: ResumeInfo
    cover_letter: Optional[str] = Field(None, max_length=2000)
    status_history: List[StatusHistoryEntry] = []
    withdrawal_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    metadata: SubmissionMetadata = Field(default_factory=SubmissionMetadata)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # ------------------------------------------------------------
    # Lifecycle rules
    # ------------------------------------------------------------

    def can_withdraw(self) -> bool:
        return self.status == ApplicationStatus.pending

    def can_transition_to(self, new_status: ApplicationStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def set_status(
        self,
        new_status: ApplicationStatus,
        actor_id: str,
        reason: Optional[str] = None
    ) -> Optional[StatusHistoryEntry]:
        """
        Move to new_status and append a history entry.

        Returns the appended entry, or None when the application is already in
        new_status (nothing changes, no duplicate audit entry).

        Raises:
            InvalidTransitionError: the current status has no edge to new_status
            ValueError: actor_id missing
        """
        new_status = ApplicationStatus(new_status)
        if new_status == self.status:
            return None
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot move application from '{self.status.value}' to '{new_status.value}'",
                currentStatus=self.status.value,
            )
        return self._transition(new_status, actor_id, reason)

    def withdraw(self, actor_id: str, reason: Optional[str] = None) -> StatusHistoryEntry:
        """
        Withdraw a pending application.

        Raises:
            InvalidTransitionError: status is not pending
        """
        if not self.can_withdraw():
            raise InvalidTransitionError(
                "Cannot withdraw application at this stage",
                currentStatus=self.status.value,
            )
        reason = reason or DEFAULT_WITHDRAWAL_REASON
        entry = self._transition(ApplicationStatus.withdrawn, actor_id, reason)
        self.withdrawal_reason = reason
        return entry

    def _transition(self, new_status: ApplicationStatus, actor_id: str, reason: Optional[str]) -> StatusHistoryEntry:
        if not actor_id:
            raise ValueError("A status transition needs an actor id (use SYSTEM_ACTOR_ID for system changes)")

        now = utcnow()
        entry = StatusHistoryEntry(status=new_status, timestamp=now, updated_by=actor_id, reason=reason)
        self.status = new_status
        self.status_history.append(entry)
        setattr(self, TRANSITION_TIMESTAMPS[new_status], now)
        self.updated_at = now
        return entry

    # ------------------------------------------------------------
    # Mongo document <-> model
    # ------------------------------------------------------------

    @classmethod
    def from_doc(cls, doc: dict) -> "Application":
        """Build from a raw Mongo document (ObjectIds become strings)."""
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        data["job_id"] = str(data["job_id"])
        data["student_id"] = str(data["student_id"])
        data["status_history"] = [
            {**h, "updated_by": str(h["updated_by"])} for h in data.get("status_history", [])
        ]
        return cls(**data)

    def transition_update(self, entry: StatusHistoryEntry) -> dict:
        """Mongo update for the transition that produced `entry`: $set the fields, $push the entry."""
        field = TRANSITION_TIMESTAMPS[entry.status]
        fields = {
            "status": self.status.value,
            field: getattr(self, field),
            "updated_at": self.updated_at,
        }
        if entry.status == ApplicationStatus.withdrawn:
            fields["withdrawal_reason"] = self.withdrawal_reason
        history = {**entry.model_dump(), "status": entry.status.value, "updated_by": ObjectId(entry.updated_by)}
        return {"$set": fields, "$push": {"status_history": history}}
