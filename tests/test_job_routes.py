"""
Tests for job endpoints and the apply flow.
"""
from datetime import timedelta

from pymongo.errors import PyMongoError
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.config import get_settings
from app.core.errors import SystemFailureError
from app.services.application_service import ApplicationService
from app.services.storage_service import LocalResumeStorage
from app.utils.helpers import utcnow
from conftest import auth_headers, make_job, pdf_upload, new_object_id


DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _apply(client, job, student, files=None, data=None):
    return client.post(
        f"/api/jobs/{job['_id']}/apply",
        files=pdf_upload() if files is None else files,
        data=data or {},
        headers=auth_headers(student),
    )


class TestApply:

    def test_apply_creates_pending_application(self, client, mongo_db, job, student, resume_dir):
        response = _apply(client, job, student, data={"cover_letter": "  I have built two APIs.\n"})

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["application"]["status"] == "pending"
        assert data["application"]["job"] == {"id": str(job["_id"]), "title": "Backend Intern", "role": "Backend Developer"}

        stored = mongo_db.applications.find_one({"job_id": job["_id"], "student_id": student["_id"]})
        assert stored["status"] == "pending"
        assert stored["status_history"] == []
        assert stored["cover_letter"] == "I have built two APIs."
        assert stored["resume"]["filename"] == "cv.pdf"
        assert stored["resume"]["size"] == len(b"%PDF-1.4 fake resume")
        assert stored["resume"]["url"].startswith("/static/resumes/")
        assert stored["metadata"]["source"] == "web"
        assert len(list(resume_dir.rglob("*cv.pdf"))) == 1

    def test_apply_accepts_docx(self, client, job, student):
        response = _apply(client, job, student, files=pdf_upload("cv.docx", b"PK fake docx", DOCX))
        assert response.status_code == 201

    def test_octet_stream_trusted_by_extension(self, client, job, student):
        response = _apply(client, job, student, files=pdf_upload(content_type="application/octet-stream"))
        assert response.status_code == 201

    def test_second_apply_is_duplicate(self, client, mongo_db, job, student):
        first = _apply(client, job, student)
        response = _apply(client, job, student)

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "APP_002"
        assert data["applicationId"] == first.json()["application"]["id"]
        assert "applicationDate" in data
        assert mongo_db.applications.count_documents({"job_id": job["_id"]}) == 1

    def test_race_caught_by_unique_index(self, client, mongo_db, job, student, pending_application, resume_dir, monkeypatch):
        # Both requests passed the pre-check; the index must still refuse the second
        monkeypatch.setattr(ApplicationService, "find_for", lambda self, job_id, student_id: None)

        response = _apply(client, job, student)

        assert response.status_code == 409
        assert response.json()["code"] == "APP_002"
        assert mongo_db.applications.count_documents({"job_id": job["_id"]}) == 1
        assert list(resume_dir.rglob("*.pdf")) == []

    def test_expired_job(self, client, mongo_db, recruiter, student):
        job = make_job(mongo_db, recruiter, expires_at=utcnow() - timedelta(days=1))

        response = _apply(client, job, student)

        assert response.status_code == 400
        assert response.json()["code"] == "JOB_005"
        assert mongo_db.applications.count_documents({}) == 0

    def test_closed_job(self, client, mongo_db, recruiter, student):
        job = make_job(mongo_db, recruiter, status="closed")
        response = _apply(client, job, student)
        assert response.status_code == 400
        assert response.json()["code"] == "JOB_005"

    def test_deadline_passed(self, client, mongo_db, recruiter, student):
        job = make_job(mongo_db, recruiter, application_deadline=utcnow() - timedelta(hours=1))
        response = _apply(client, job, student)
        assert response.status_code == 400
        assert response.json()["detail"] == "Application deadline has passed"

    def test_unknown_job(self, client, student):
        response = _apply(client, {"_id": new_object_id()}, student)
        assert response.status_code == 404
        assert response.json()["code"] == "JOB_001"

    def test_malformed_job_id(self, client, student):
        response = _apply(client, {"_id": "123"}, student)
        assert response.status_code == 400
        assert response.json()["code"] == "JOB_003"

    def test_missing_resume(self, client, mongo_db, job, student):
        response = _apply(client, job, student, files={}, data={"cover_letter": "hello"})
        assert response.status_code == 400
        assert response.json()["code"] == "APP_005"
        assert mongo_db.applications.count_documents({}) == 0

    def test_empty_resume(self, client, job, student):
        response = _apply(client, job, student, files=pdf_upload(content=b""))
        assert response.status_code == 400
        assert response.json()["code"] == "APP_005"

    def test_wrong_file_type(self, client, mongo_db, job, student):
        response = _apply(client, job, student, files=pdf_upload("cv.png", b"\x89PNG", "image/png"))

        assert response.status_code == 400
        assert response.json()["code"] == "VAL_003"
        assert mongo_db.applications.count_documents({}) == 0

    def test_mismatched_content_type(self, client, job, student):
        response = _apply(client, job, student, files=pdf_upload("cv.pdf", b"%PDF", "text/html"))
        assert response.status_code == 400
        assert response.json()["code"] == "VAL_003"

    def test_oversize_resume(self, client, mongo_db, job, student, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_resume_size_mb", 0)

        response = _apply(client, job, student)

        assert response.status_code == 400
        assert response.json()["code"] == "VAL_004"
        assert response.json()["maxSize"] == "0MB"
        assert mongo_db.applications.count_documents({}) == 0

    def test_cover_letter_keeps_paragraphs(self, client, mongo_db, job, student):
        letter = "Dear team,\n\nI built two APIs.\n\nRegards,\nAsha"

        response = _apply(client, job, student, data={"cover_letter": f"\n  {letter}  \n"})

        assert response.status_code == 201
        stored = mongo_db.applications.find_one({"job_id": job["_id"]})
        assert stored["cover_letter"] == letter

    def test_cover_letter_stored_as_written(self, client, mongo_db, job, student):
        # Escaping is the renderer's job
        letter = "I know <b>FastAPI</b> & MongoDB"

        _apply(client, job, student, data={"cover_letter": letter})

        assert mongo_db.applications.find_one({"job_id": job["_id"]})["cover_letter"] == letter

    def test_oversize_resume_is_not_read_whole(self, client, mongo_db, job, student, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_resume_size_mb", 1)
        limit = get_settings().max_resume_size_bytes
        seen = []
        original_read = StarletteUploadFile.read

        async def spy_read(self, size=-1):
            seen.append(size)
            return await original_read(self, size)

        monkeypatch.setattr(StarletteUploadFile, "read", spy_read)

        big = b"%PDF-1.4 " + b"0" * (3 * 1024 * 1024)
        response = _apply(client, job, student, files=pdf_upload(content=big))

        assert response.status_code == 400
        assert response.json()["code"] == "VAL_004"
        assert all(0 <= size <= limit + 1 for size in seen)
        assert mongo_db.applications.count_documents({}) == 0

    def test_cover_letter_too_long(self, client, mongo_db, job, student):
        response = _apply(client, job, student, data={"cover_letter": "a" * 2001})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VAL_002"
        assert data["field"] == "cover_letter"
        assert data["currentLength"] == 2001
        assert mongo_db.applications.count_documents({}) == 0

    def test_storage_failure_writes_nothing(self, client, mongo_db, job, student, monkeypatch):
        def broken_save(self, *args, **kwargs):
            raise SystemFailureError("File upload failed", code="FILE_001")

        monkeypatch.setattr(LocalResumeStorage, "save", broken_save)

        response = _apply(client, job, student)

        assert response.status_code == 500
        assert response.json()["code"] == "FILE_001"
        assert mongo_db.applications.count_documents({}) == 0
        assert mongo_db.notifications.count_documents({}) == 0

    def test_recruiter_cannot_apply(self, client, job, recruiter):
        response = _apply(client, job, recruiter)
        assert response.status_code == 403
        assert response.json()["code"] == "AUTH_005"

    def test_deactivated_student(self, client, mongo_db, job, student):
        mongo_db.users.update_one({"_id": student["_id"]}, {"$set": {"is_active": False}})
        response = _apply(client, job, student)
        assert response.status_code == 403

    def test_token_for_unknown_user(self, client, job):
        ghost = {"_id": new_object_id(), "role": "student"}
        response = _apply(client, job, ghost)
        assert response.status_code == 401


class TestJobs:

    def _payload(self, **overrides):
        payload = {
            "title": "Frontend Intern",
            "role": "Frontend Developer",
            "description": "Build React screens for the student dashboard.",
            "location": "Pune",
            "salary": 20000,
            "skills": ["React", "TypeScript"],
            "job_type": "internship",
        }
        payload.update(overrides)
        return payload

    def test_create_job(self, client, mongo_db, recruiter):
        response = client.post("/api/jobs", json=self._payload(), headers=auth_headers(recruiter))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["created_by"] == str(recruiter["_id"])
        assert data["expires_at"] is not None
        assert mongo_db.jobs.count_documents({"created_by": recruiter["_id"]}) == 1

    def test_deadline_after_expiry_rejected(self, client, recruiter):
        now = utcnow()
        response = client.post(
            "/api/jobs",
            json=self._payload(
                expires_at=(now + timedelta(days=5)).isoformat(),
                application_deadline=(now + timedelta(days=10)).isoformat(),
            ),
            headers=auth_headers(recruiter),
        )
        assert response.status_code == 422

    def test_student_cannot_create_job(self, client, student):
        response = client.post("/api/jobs", json=self._payload(), headers=auth_headers(student))
        assert response.status_code == 403

    def test_get_job(self, client, job):
        response = client.get(f"/api/jobs/{job['_id']}")
        assert response.status_code == 200
        assert response.json()["title"] == "Backend Intern"

    def test_get_missing_job(self, client):
        response = client.get(f"/api/jobs/{new_object_id()}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "detail": "Job not found", "code": "JOB_001"}

    def test_delete_cascades(self, client, mongo_db, recruiter, job, pending_application):
        response = client.delete(f"/api/jobs/{job['_id']}", headers=auth_headers(recruiter))

        assert response.status_code == 200
        assert "1 application" in response.json()["message"]
        assert mongo_db.jobs.find_one({"_id": job["_id"]}) is None
        assert mongo_db.applications.count_documents({"job_id": job["_id"]}) == 0

    def test_delete_removes_stored_resumes(self, client, mongo_db, recruiter, job, student, resume_dir):
        assert _apply(client, job, student).status_code == 201
        assert len(list(resume_dir.rglob("*.pdf"))) == 1

        response = client.delete(f"/api/jobs/{job['_id']}", headers=auth_headers(recruiter))

        assert response.status_code == 200
        assert list(resume_dir.rglob("*.pdf")) == []

    def test_delete_by_other_recruiter(self, client, mongo_db, other_recruiter, job, pending_application):
        response = client.delete(f"/api/jobs/{job['_id']}", headers=auth_headers(other_recruiter))

        assert response.status_code == 403
        assert response.json()["code"] == "JOB_002"
        assert mongo_db.applications.count_documents({"job_id": job["_id"]}) == 1


def test_database_error_maps_to_system_error(client, mongo_db, job, student, resume_dir, monkeypatch):
    def broken_insert(self, *args, **kwargs):
        raise PyMongoError("connection reset")

    monkeypatch.setattr(ApplicationService, "insert", broken_insert)

    response = _apply(client, job, student)

    assert response.status_code == 500
    assert response.json() == {"success": False, "detail": "Database error occurred", "code": "SYS_001"}
    assert list(resume_dir.rglob("*.pdf")) == []
