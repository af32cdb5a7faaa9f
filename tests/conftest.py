"""Pytest configuration and fixtures."""

import os
from datetime import timedelta

# Set before app import so cached Settings pick them up
os.environ.setdefault("JWT_SECRET_KEY", "test-only-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RESUME_STORAGE_TYPE", "local")

import mongomock  # noqa: E402
import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.auth import create_access_token  # noqa: E402
from app.core.config import get_settings  # noqa: E402
from app.db import mongodb  # noqa: E402
from app.main import app  # noqa: E402
from app.services.application_service import ApplicationService  # noqa: E402
from app.utils.helpers import utcnow  # noqa: E402


@pytest.fixture
def mongo_db(monkeypatch):
    """Swap the real MongoDB for an in-memory mongomock database."""
    client = mongomock.MongoClient()
    db = client["placify_test"]
    monkeypatch.setattr(mongodb, "_client", client)
    monkeypatch.setattr(mongodb, "_db", db)
    mongodb.init_mongo_indexes()
    return db


@pytest.fixture
def resume_dir(tmp_path, monkeypatch):
    """Local resume storage inside the test's temp dir."""
    monkeypatch.setattr(get_settings(), "resume_storage_type", "local")
    monkeypatch.setattr(get_settings(), "resume_storage_dir", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(mongo_db, resume_dir):
    """Create a test client."""
    return TestClient(app)


def _make_user(db, name, role):
    doc = {
        "name": name,
        "email": f"{name.lower().replace(' ', '.')}@example.com",
        "role": role,
        "is_active": True,
        "created_at": utcnow(),
    }
    doc["_id"] = db.users.insert_one(doc).inserted_id
    return doc


def auth_headers(user: dict) -> dict:
    token = create_access_token({"sub": str(user["_id"]), "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student(mongo_db):
    return _make_user(mongo_db, "Asha Student", "student")


@pytest.fixture
def other_student(mongo_db):
    return _make_user(mongo_db, "Ravi Student", "student")


@pytest.fixture
def recruiter(mongo_db):
    return _make_user(mongo_db, "Meera Recruiter", "recruiter")


@pytest.fixture
def other_recruiter(mongo_db):
    return _make_user(mongo_db, "Karan Recruiter", "recruiter")


def make_job(db, owner, **overrides):
    now = utcnow()
    doc = {
        "title": "Backend Intern",
        "role": "Backend Developer",
        "description": "Build and maintain REST APIs for the placement portal.",
        "location": "Bengaluru",
        "salary": 25000,
        "skills": ["Python", "MongoDB"],
        "job_type": "internship",
        "is_remote": False,
        "status": "active",
        "expires_at": now + timedelta(days=14),
        "application_deadline": None,
        "created_by": owner["_id"],
        "created_at": now,
        "updated_at": now,
    }
    doc.update(overrides)
    doc["_id"] = db.jobs.insert_one(doc).inserted_id
    return doc


@pytest.fixture
def job(mongo_db, recruiter):
    return make_job(mongo_db, recruiter)


@pytest.fixture
def pending_application(mongo_db, job, student):
    """A freshly submitted application, written straight through the service."""
    return ApplicationService().insert(
        job_id=job["_id"],
        student_id=student["_id"],
        resume={"url": "/static/resumes/x/cv.pdf", "filename": "cv.pdf", "size": 1024},
        cover_letter="I would love to join.",
    )


def pdf_upload(name="cv.pdf", content=b"%PDF-1.4 fake resume", content_type="application/pdf"):
    return {"resume": (name, content, content_type)}


def new_object_id() -> str:
    return str(ObjectId())
