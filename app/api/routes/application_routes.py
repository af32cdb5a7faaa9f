"""
Application Routes

GET /applications/student - Get my applications (student)
GET /applications/recruiter - Applications to all my jobs (recruiter)
GET /applications/analytics - Status totals and daily breakdown (recruiter)
GET /applications/job/{job_id} - Applications for one of my jobs (recruiter)
GET /applications/{id}/timeline - Status history (student owner or job owner)
PATCH /applications/{id} - Set status to reviewed/rejected (job owner)
PATCH /applications/{id}/withdraw - Withdraw a pending application (student owner)
"""

import logging
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, BackgroundTasks, Query

from app.core.auth import get_current_user, get_current_student, get_current_recruiter
from app.core.errors import NotFoundError, ForbiddenError, InvalidStatusError
from app.models.application import Application, ApplicationStatus, RECRUITER_STATUSES
from app.services.application_service import ApplicationService
from app.services.mongo_service import JobService, UserService
from app.services.notification_service import notify_status_change
from app.utils.file_upload import clean_text, REASON_MAX_LENGTH
from app.utils.helpers import parse_object_id, pagination_meta, to_naive_utc
from app.schemas.schemas import (
    ApplicationStatusUpdate, WithdrawRequest, ApplicationResponse, ApplicationActionResponse,
    ApplicationListResponse, ApplicationAnalyticsResponse, ApplicationTimelineResponse, JobSummary
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


# ============================================================
# HELPERS
# ============================================================

def build_application_response(
    application: Application,
    job: Optional[dict] = None,
    student: Optional[dict] = None
) -> ApplicationResponse:
    return ApplicationResponse(
        **application.model_dump(exclude={"metadata"}),
        job_title=job.get("title") if job else None,
        student_name=student.get("name") if student else None,
        student_email=student.get("email") if student else None,
    )


def _populated_list(docs: List[dict]) -> List[ApplicationResponse]:
    """Attach job titles and student names with two batched lookups."""
    jobs = JobService().get_many(d["job_id"] for d in docs)
    students = UserService().get_many(d["student_id"] for d in docs)
    return [
        build_application_response(
            Application.from_doc(d),
            jobs.get(str(d["job_id"])),
            students.get(str(d["student_id"])),
        ) for d in docs
    ]


def _list_response(query: dict, page: int, limit: int, status: Optional[ApplicationStatus]) -> ApplicationListResponse:
    service = ApplicationService()
    docs, total = service.paginate(query, page=page, limit=limit, status=status.value if status else None)
    return ApplicationListResponse(
        applications=_populated_list(docs),
        pagination=pagination_meta(total, page, limit),
        status_counts=service.status_counts(query),
    )


def _get_application_or_404(application_id: str) -> dict:
    doc = ApplicationService().get_by_id(parse_object_id(application_id, code="APP_006", label="application ID"))
    if not doc:
        raise NotFoundError("Application not found", code="APP_001")
    return doc


def _owned_job(job_id: str, recruiter: dict) -> dict:
    job = JobService().get_by_id(parse_object_id(job_id, code="JOB_003", label="job ID"))
    if not job:
        raise NotFoundError("Job not found", code="JOB_001")
    if job["created_by"] != recruiter["user_id"]:
        raise ForbiddenError("You are not authorized to view applications for this job", code="JOB_002")
    return job


# ============================================================
# READS
# ============================================================

@router.get("/student", response_model=ApplicationListResponse)
async def get_my_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[ApplicationStatus] = Query(None),
    student: dict = Depends(get_current_student)
):
    """Get all job applications for current student."""
    return _list_response({"student_id": student["user_id"]}, page, limit, status)


@router.get("/recruiter", response_model=ApplicationListResponse)
async def get_recruiter_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[ApplicationStatus] = Query(None),
    job_id: Optional[str] = Query(None),
    recruiter: dict = Depends(get_current_recruiter)
):
    """Get applications across all of the recruiter's job postings."""
    if job_id:
        job_ids = [_owned_job(job_id, recruiter)["_id"]]
    else:
        job_ids = JobService().ids_created_by(recruiter["user_id"])
    return _list_response({"job_id": {"$in": job_ids}}, page, limit, status)


@router.get("/analytics", response_model=ApplicationAnalyticsResponse)
async def get_application_analytics(
    job_id: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    recruiter: dict = Depends(get_current_recruiter)
):
    """Per-status totals and per-day breakdown for the recruiter's jobs."""
    if job_id:
        job_ids = [_owned_job(job_id, recruiter)["_id"]]
    else:
        job_ids = JobService().ids_created_by(recruiter["user_id"])

    result = ApplicationService().analytics(job_ids, to_naive_utc(date_from), to_naive_utc(date_to))
    logger.info(f"Application analytics recruiter={recruiter['id']} total={result['summary']['total']}")
    return result


@router.get("/job/{job_id}", response_model=ApplicationListResponse)
async def get_job_applications(
    job_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[ApplicationStatus] = Query(None),
    recruiter: dict = Depends(get_current_recruiter)
):
    """Get applications for one job. Only the recruiter who posted it may look."""
    job = _owned_job(job_id, recruiter)
    return _list_response({"job_id": job["_id"]}, page, limit, status)


@router.get("/{application_id}/timeline", response_model=ApplicationTimelineResponse)
async def get_application_timeline(application_id: str, user: dict = Depends(get_current_user)):
    """Status history of an application, for its student or the job's recruiter."""
    doc = _get_application_or_404(application_id)
    job = JobService().get_by_id(doc["job_id"]) or {}

    is_owner_student = user["role"] == "student" and doc["student_id"] == user["user_id"]
    is_owner_recruiter = user["role"] == "recruiter" and job.get("created_by") == user["user_id"]
    if not (is_owner_student or is_owner_recruiter):
        raise ForbiddenError("You are not authorized to view this application", code="APP_004")

    application = Application.from_doc(doc)
    return ApplicationTimelineResponse(
        application_id=application.id,
        job=JobSummary(id=application.job_id, title=job.get("title", "Unknown job"), role=job.get("role")),
        student_id=application.student_id,
        status=application.status,
        applied_at=application.created_at,
        reviewed_at=application.reviewed_at,
        rejected_at=application.rejected_at,
        withdrawn_at=application.withdrawn_at,
        withdrawal_reason=application.withdrawal_reason,
        history=[h.model_dump() for h in application.status_history],
    )


# ============================================================
# STATUS CHANGES
# ============================================================

@router.patch("/{application_id}/withdraw", response_model=ApplicationActionResponse)
async def withdraw_application(
    application_id: str,
    body: Optional[WithdrawRequest] = None,
    student: dict = Depends(get_current_student)
):
    """Withdraw an application. Only the student who applied, and only while pending."""
    reason = clean_text(body.reason if body else None, "reason", REASON_MAX_LENGTH)
    doc = _get_application_or_404(application_id)

    if doc["student_id"] != student["user_id"]:
        raise ForbiddenError("You are not authorized to withdraw this application", code="APP_004")

    application = Application.from_doc(doc)
    entry = application.withdraw(student["id"], reason)
    ApplicationService().record_transition(doc["_id"], application.transition_update(entry))

    logger.info(f"Application withdrawn application={application_id} student={student['id']}")
    return ApplicationActionResponse(
        message="Application withdrawn successfully",
        application=build_application_response(application),
    )


@router.patch("/{application_id}", response_model=ApplicationActionResponse)
async def update_application_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    recruiter: dict = Depends(get_current_recruiter)
):
    """
    Set an application to reviewed or rejected.

    Only the recruiter who posted the job may do this. Withdrawal is the
    student's call and cannot be set here. Repeating the current status is
    answered with 200 and leaves the history untouched.
    """
    allowed = sorted(s.value for s in RECRUITER_STATUSES)
    if update.status == ApplicationStatus.withdrawn.value:
        raise InvalidStatusError(
            "Recruiters cannot set application status to withdrawn. "
            "Applicants must withdraw their own applications.",
            allowedStatuses=allowed,
        )
    if update.status not in allowed:
        raise InvalidStatusError(allowedStatuses=allowed)

    reason = clean_text(update.reason, "reason", REASON_MAX_LENGTH)
    doc = _get_application_or_404(application_id)

    job = JobService().get_by_id(doc["job_id"])
    if not job or job["created_by"] != recruiter["user_id"]:
        raise ForbiddenError("You are not authorized to update this application", code="APP_004")

    application = Application.from_doc(doc)
    old_status = application.status
    entry = application.set_status(ApplicationStatus(update.status), recruiter["id"], reason)
    if entry is None:
        return ApplicationActionResponse(
            message="Application status is already set to this value",
            application=build_application_response(application, job),
        )

    ApplicationService().record_transition(doc["_id"], application.transition_update(entry))
    logger.info(
        f"Application status updated application={application_id} "
        f"{old_status.value} -> {application.status.value} recruiter={recruiter['id']}"
    )

    background_tasks.add_task(
        notify_status_change,
        doc["student_id"],
        job["title"],
        application.status.value,
        {"application_id": application_id, "job_id": str(job["_id"])},
    )

    return ApplicationActionResponse(
        message="Application status updated successfully",
        application=build_application_response(application, job),
    )
