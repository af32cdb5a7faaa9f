"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from app.models.application import ApplicationStatus


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    recruiter = "recruiter"
    admin = "admin"


class JobType(str, Enum):
    internship = "internship"
    full_time = "full-time"
    part_time = "part-time"
    contract = "contract"


class JobStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    expired = "expired"


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=100)
    role: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=20, max_length=2000)
    location: str = Field(..., min_length=1)
    salary: float = Field(..., ge=0)
    skills: List[str] = Field(..., min_length=1, max_length=20)
    job_type: JobType = JobType.internship
    is_remote: bool = False
    expires_at: Optional[datetime] = None
    application_deadline: Optional[datetime] = None

    @model_validator(mode="after")
    def deadline_before_expiry(self):
        if self.application_deadline and self.expires_at and self.application_deadline > self.expires_at:
            raise ValueError("Application deadline must be before or equal to job expiration date")
        return self

class JobResponse(BaseModel):
    id: str
    title: str
    role: str
    description: str
    location: str
    salary: float
    skills: List[str] = []
    job_type: str
    is_remote: bool
    status: str
    expires_at: Optional[datetime] = None
    application_deadline: Optional[datetime] = None
    created_by: str
    created_at: datetime

class JobSummary(BaseModel):
    id: str
    title: str
    role: Optional[str] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationStatusUpdate(BaseModel):
    # Plain str so an unknown value gets our APP_003 error instead of a 422
    status: str
    reason: Optional[str] = None

class WithdrawRequest(BaseModel):
    reason: Optional[str] = None

class StatusHistoryResponse(BaseModel):
    status: ApplicationStatus
    timestamp: datetime
    updated_by: str
    reason: Optional[str] = None

class ResumeResponse(BaseModel):
    url: str
    filename: str
    size: int

class ApplicationResponse(BaseModel):
    id: str
    job_id: str
    job_title: Optional[str] = None
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    status: ApplicationStatus
    resume: ResumeResponse
    cover_letter: Optional[str] = None
    status_history: List[StatusHistoryResponse] = []
    withdrawal_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

class ApplicationActionResponse(BaseModel):
    success: bool = True
    message: str
    application: ApplicationResponse

class SubmittedApplication(BaseModel):
    id: str
    status: ApplicationStatus
    submitted_at: datetime
    job: JobSummary

class ApplicationSubmitResponse(BaseModel):
    success: bool = True
    message: str
    application: SubmittedApplication

class StatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    reviewed: int = 0
    rejected: int = 0
    withdrawn: int = 0

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    pagination: Pagination
    status_counts: StatusCounts

class DailyCount(BaseModel):
    date: str
    count: int

class ApplicationAnalyticsResponse(BaseModel):
    summary: StatusCounts
    breakdown: Dict[str, List[DailyCount]] = {}

class ApplicationTimelineResponse(BaseModel):
    application_id: str
    job: JobSummary
    student_id: str
    status: ApplicationStatus
    applied_at: datetime
    reviewed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    withdrawal_reason: Optional[str] = None
    history: List[StatusHistoryResponse] = []


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    priority: str
    read: bool
    metadata: dict = {}
    created_at: datetime
    read_at: Optional[datetime] = None

class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    pagination: Pagination
    unread_count: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    success: bool = False
    detail: str
    code: str
