"""
Models module - internal data structures.

Difference from schemas:
- Models: domain objects with behaviour (the application lifecycle)
- Schemas: API contract (what client sends/receives)
"""

from app.models.application import (
    Application,
    ApplicationStatus,
    StatusHistoryEntry,
    SYSTEM_ACTOR_ID,
)

__all__ = ["Application", "ApplicationStatus", "StatusHistoryEntry", "SYSTEM_ACTOR_ID"]
