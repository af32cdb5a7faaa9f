"""
Resume Storage - puts uploaded resume bytes somewhere and returns a URL.

Backends (settings.resume_storage_type):
- local: files under settings.resume_storage_dir, served from resume_base_url
- s3:    objects under resumes/<student_id>/ in settings.s3_bucket_name
"""

import logging
import uuid
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import get_settings
from app.core.errors import SystemFailureError

logger = logging.getLogger(__name__)


def _object_name(student_id: str, job_id: str, filename: str) -> str:
    safe_name = Path(filename).name.replace(" ", "_")
    return f"{student_id}/resume_{job_id}_{uuid.uuid4().hex}_{safe_name}"


class LocalResumeStorage:

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def save(self, content: bytes, filename: str, content_type: str, student_id: str, job_id: str) -> str:
        name = _object_name(student_id, job_id, filename)
        path = self.root / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Local resume write failed: {e}")
            raise SystemFailureError("File upload failed", code="FILE_001")
        return f"{self.base_url}/{name}"

    def delete(self, url: str):
        prefix = self.base_url + "/"
        if not url or not url.startswith(prefix):
            return
        path = self.root / url[len(prefix):]
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete resume from local storage: {e}")


class S3ResumeStorage:

    def __init__(self, bucket: str, region: str, access_key: str, secret_key: str):
        self.bucket = bucket
        self.region = region
        self.client = boto3.client(
            "s3",
            aws_access_key_id=access_key or None,
            aws_secret_access_key=secret_key or None,
            region_name=region
        )

    def save(self, content: bytes, filename: str, content_type: str, student_id: str, job_id: str) -> str:
        key = f"resumes/{_object_name(student_id, job_id, filename)}"
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=content, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 resume upload failed: {e}")
            raise SystemFailureError("File upload failed", code="FILE_001")
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def delete(self, url: str):
        if not url or ".amazonaws.com/" not in url:
            return
        key = url.split(".amazonaws.com/")[-1]
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Failed to delete resume from S3: {e}")


def get_resume_storage():
    """Storage backend for the current settings."""
    settings = get_settings()
    if settings.resume_storage_type.lower() == "s3":
        return S3ResumeStorage(
            settings.s3_bucket_name,
            settings.aws_region,
            settings.aws_access_key_id,
            settings.aws_secret_access_key,
        )
    return LocalResumeStorage(settings.resume_storage_dir, settings.resume_base_url)
