"""
Schedule services.
The pure engine (lead time, matrix, audit), the draft store and persistence.
"""

from .lead_time import lead_time_hours
from .matrix_service import build_schedule_matrix
from .audit_service import IntegrityAuditor, audit_schedule
from .draft_store import ScheduleDraftStore, synchronize_meal_time_alternatives
from .schedule_service import SaveResult, ScheduleService
from .session_service import DraftSession, SessionRegistry

__all__ = [
    "lead_time_hours",
    "build_schedule_matrix",
    "IntegrityAuditor",
    "audit_schedule",
    "ScheduleDraftStore",
    "synchronize_meal_time_alternatives",
    "SaveResult",
    "ScheduleService",
    "DraftSession",
    "SessionRegistry",
]
