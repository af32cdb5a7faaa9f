"""
Job Routes

POST /jobs - Create job posting (recruiter only)
GET /jobs/{job_id} - Get job details
DELETE /jobs/{job_id} - Delete job and its applications (owning recruiter only)
POST /jobs/{job_id}/apply - Apply to job with a resume (student only)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, BackgroundTasks, Request, UploadFile, File, Form

from app.core.auth import get_current_student, get_current_recruiter
from app.core.config import get_settings
from app.core.errors import NotFoundError, ForbiddenError, ExpiredError, DuplicateError
from app.services.application_service import ApplicationService
from app.services.mongo_service import JobService
from app.services.notification_service import notify_new_application
from app.services.storage_service import get_resume_storage
from app.utils.file_upload import read_resume, clean_text, COVER_LETTER_MAX_LENGTH
from app.utils.helpers import parse_object_id, to_naive_utc, utcnow
from app.schemas.schemas import (
    JobCreate, JobResponse, JobStatus, JobSummary, ApplicationSubmitResponse, SubmittedApplication, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _job_response(doc: dict) -> JobResponse:
    return JobResponse(
        id=str(doc["_id"]), title=doc["title"], role=doc["role"], description=doc["description"],
        location=doc["location"], salary=doc["salary"], skills=doc.get("skills", []),
        job_type=doc["job_type"], is_remote=doc.get("is_remote", False), status=doc["status"],
        expires_at=doc.get("expires_at"), application_deadline=doc.get("application_deadline"),
        created_by=str(doc["created_by"]), created_at=doc["created_at"]
    )


def _get_job_or_404(job_id: str) -> dict:
    job = JobService().get_by_id(parse_object_id(job_id, code="JOB_003", label="job ID"))
    if not job:
        raise NotFoundError("Job not found", code="JOB_001")
    return job


def ensure_accepting_applications(job: dict):
    """Raise ExpiredError unless the job is active and neither expired nor past its deadline."""
    now = utcnow()
    if job.get("status", JobStatus.active.value) != JobStatus.active.value:
        raise ExpiredError("This job is no longer accepting applications", jobStatus=job.get("status"))
    if job.get("expires_at") and job["expires_at"] < now:
        raise ExpiredError("This job has expired and is no longer accepting applications")
    if job.get("application_deadline") and job["application_deadline"] < now:
        raise ExpiredError("Application deadline has passed")


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, recruiter: dict = Depends(get_current_recruiter)):
    """Create a new job posting. Only recruiters can create jobs."""
    data = job.model_dump()
    data["job_type"] = job.job_type.value
    data["expires_at"] = to_naive_utc(job.expires_at)
    data["application_deadline"] = to_naive_utc(job.application_deadline)
    doc = JobService().insert(data, recruiter["user_id"], get_settings().job_default_ttl_days)
    logger.info(f"Job created job={doc['_id']} recruiter={recruiter['id']}")
    return _job_response(doc)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str):
    """Get details of a specific job."""
    return _job_response(_get_job_or_404(job_id))


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: str, recruiter: dict = Depends(get_current_recruiter)):
    """Delete a job posting. Cascades to applications."""
    job = _get_job_or_404(job_id)
    if job["created_by"] != recruiter["user_id"]:
        raise ForbiddenError("You are not authorized to modify this job", code="JOB_002")

    deleted = JobService().delete_with_applications([job["_id"]])
    logger.info(f"Job deleted job={job_id} applications_removed={deleted['applications']}")
    return MessageResponse(message=f"Job deleted along with {deleted['applications']} application(s)")


@router.post("/{job_id}/apply", response_model=ApplicationSubmitResponse, status_code=201)
async def apply_to_job(
    job_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    resume: Optional[UploadFile] = File(None, description="Resume file (PDF or DOCX)"),
    cover_letter: Optional[str] = Form(None),
    student: dict = Depends(get_current_student)
):
    """
    Apply to a job. Students only. Cannot apply twice to same job.

    Process:
    1. Validate resume and cover letter
    2. Check job exists, is active and not expired, and no prior application
    3. Store resume (failure aborts, nothing is written)
    4. Create the application in pending
    5. Notify the recruiter in the background
    """
    cover_letter = clean_text(cover_letter, "cover_letter", COVER_LETTER_MAX_LENGTH, single_line=False)
    content, filename, content_type = await read_resume(resume)

    job = _get_job_or_404(job_id)
    ensure_accepting_applications(job)

    applications = ApplicationService()
    existing = applications.find_for(job["_id"], student["user_id"])
    if existing:
        logger.warning(f"Duplicate application attempt job={job_id} student={student['id']}")
        raise DuplicateError(
            applicationId=str(existing["_id"]),
            applicationDate=existing["created_at"].isoformat(),
        )

    storage = get_resume_storage()
    resume_url = storage.save(content, filename, content_type, student["id"], job_id)

    try:
        doc = applications.insert(
            job_id=job["_id"],
            student_id=student["user_id"],
            resume={"url": resume_url, "filename": filename, "size": len(content)},
            cover_letter=cover_letter,
            metadata={
                "ip_address": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
                "source": "web",
            },
        )
    except Exception:
        # Don't leave an orphaned resume behind
        storage.delete(resume_url)
        raise

    logger.info(f"Application submitted application={doc['_id']} job={job_id} student={student['id']}")

    background_tasks.add_task(
        notify_new_application,
        job["created_by"],
        job["title"],
        student.get("name") or "Unknown User",
        {"application_id": str(doc["_id"]), "job_id": job_id, "student_id": student["id"]},
    )

    return ApplicationSubmitResponse(
        message="Application submitted successfully",
        application=SubmittedApplication(
            id=str(doc["_id"]),
            status=doc["status"],
            submitted_at=doc["created_at"],
            job=JobSummary(id=job_id, title=job["title"], role=job.get("role")),
        ),
    )
