"""
Placify
Job board backend centred on the application status lifecycle.

Architecture:
- MongoDB: users, jobs, applications (with status history), notifications
- Resume files: local disk or S3, referenced by URL from the application
"""

__version__ = "1.0.0"
