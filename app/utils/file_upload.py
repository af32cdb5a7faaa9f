"""
File Upload Utility - validate resume uploads and free-text fields.

Supported formats:
- PDF (.pdf)
- Word (.docx)

Max file size: settings.max_resume_size_mb (10MB by default)
"""

import re
from typing import Optional, Tuple
from fastapi import UploadFile

from app.core.config import get_settings
from app.core.errors import ValidationFailureError

ALLOWED_TYPES = {
    '.pdf': 'application/pdf',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}

COVER_LETTER_MAX_LENGTH = 2000
REASON_MAX_LENGTH = 500


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_resume(file: Optional[UploadFile]) -> Tuple[bytes, str, str]:
    """
    Validate and read an uploaded resume.

    Args:
        file: FastAPI UploadFile (may be None when the field is missing)

    Returns:
        Tuple of (content, filename, content_type)

    Raises:
        ValidationFailureError on missing file, wrong type or oversize
    """
    if file is None or not file.filename:
        raise ValidationFailureError("Resume file is required for job application", code="APP_005")

    ext = get_file_extension(file.filename)
    content_type = ALLOWED_TYPES.get(ext)
    declared = (file.content_type or '').lower()
    # Browsers sometimes send octet-stream; trust the extension then
    if content_type is None or declared not in ('', 'application/octet-stream', content_type):
        raise ValidationFailureError(
            "File type not supported",
            code="VAL_003",
            allowedTypes="PDF, DOCX",
            receivedType=declared or ext,
        )

    max_bytes = get_settings().max_resume_size_bytes
    too_large = ValidationFailureError(
        "File size exceeds limit",
        code="VAL_004",
        maxSize=f"{get_settings().max_resume_size_mb}MB",
    )
    if file.size is not None and file.size > max_bytes:
        raise too_large

    # One byte past the limit is enough to know it's too big
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise too_large
    if not content:
        raise ValidationFailureError("Resume file is empty", code="APP_005")

    return content, file.filename, content_type


def clean_text(value: Optional[str], field: str, max_length: int, single_line: bool = True) -> Optional[str]:
    """
    Trim and enforce a length limit. Blank becomes None.

    single_line collapses every whitespace run to one space (reasons, short
    notes). Multi-line fields such as cover letters keep their line breaks.
    """
    if value is None:
        return None
    value = value.strip()
    if single_line:
        value = re.sub(r'\s+', ' ', value)
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationFailureError(
            f"{field} must be at most {max_length} characters",
            code="VAL_002",
            field=field,
            maxLength=max_length,
            currentLength=len(value),
        )
    return value
