"""
Draft session registry
One ScheduleDraftStore per editing session, kept in process memory.
"""

import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Generator, List, Optional
from ..config.settings import settings
from ..core.exceptions import AuditBlockedError, ConcurrencyError, SessionNotFoundError
from ..models.alert import summarize_alerts
from .draft_store import ScheduleDraftStore
from .schedule_service import SaveResult, ScheduleService


class DraftSession:
    """An open editing session"""

    def __init__(self, session_id: str, residence_id: str, store: ScheduleDraftStore):
        self.session_id = session_id
        self.residence_id = residence_id
        self.store = store
        # Serializes store operations of concurrent requests on one session
        self.lock = threading.RLock()
        self.last_used = datetime.now()

    def touch(self):
        self.last_used = datetime.now()

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "residence_id": self.residence_id,
            "version": self.store.version,
            "has_changes": self.store.has_changes,
            "ignored_alerts": list(self.store.ignored_alerts),
        }


class SessionRegistry:
    """Opens, looks up, saves and closes draft sessions"""

    def __init__(self, schedule_service: ScheduleService, ttl_minutes: Optional[int] = None):
        self.schedule_service = schedule_service
        self.ttl = timedelta(minutes=ttl_minutes or settings.session_ttl_minutes)
        self._sessions: Dict[str, DraftSession] = {}
        self._lock = threading.RLock()

    def open_session(self, residence_id: str) -> DraftSession:
        """Load the residence schedule into a new draft"""
        graph, version = self.schedule_service.load_schedule(residence_id)
        session = DraftSession(
            session_id=uuid.uuid4().hex,
            residence_id=residence_id,
            store=ScheduleDraftStore(graph, version),
        )
        with self._lock:
            self._evict_expired()
            self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> DraftSession:
        with self._lock:
            self._evict_expired()
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(f"Draft session {session_id} not found")
            session.touch()
            return session

    @contextmanager
    def editing(self, session_id: str) -> Generator[DraftSession, None, None]:
        """Hold the session lock while its store is read or mutated"""
        session = self.get_session(session_id)
        with session.lock:
            yield session

    def close_session(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(f"Draft session {session_id} not found")

    def reload_session(self, session_id: str) -> DraftSession:
        """Re-read the stored schedule, dropping every draft change"""
        with self.editing(session_id) as session:
            graph, version = self.schedule_service.load_schedule(session.residence_id)
            session.store.initialize(graph, version)
            return session

    def save_session(
        self,
        session_id: str,
        actor_id: Optional[str] = None,
        block_on_errors: Optional[bool] = None,
    ) -> SaveResult:
        """
        Audit the draft and store it

        Raises:
            AuditBlockedError: error-severity alerts and blocking enabled
            ConcurrencyError: the stored version moved since the draft was loaded
        """
        if block_on_errors is None:
            block_on_errors = settings.block_save_on_errors

        with self.editing(session_id) as session:
            store = session.store

            alerts = store.run_audit()
            if block_on_errors and summarize_alerts(alerts).has_blocking_errors:
                raise AuditBlockedError(
                    "The schedule has errors that must be fixed before saving",
                    alerts=[alert.model_dump() for alert in alerts if alert.is_error]
                )

            result = self.schedule_service.save_schedule(
                session.residence_id, store.draft, store.version, actor_id=actor_id
            )
            if result.conflict:
                raise ConcurrencyError(
                    "Schedule was modified by someone else, reload before saving",
                    current_version=result.version
                )

            store.mark_saved(result.version)
            return result

    def active_session_ids(self) -> List[str]:
        with self._lock:
            self._evict_expired()
            return list(self._sessions)

    def _evict_expired(self):
        cutoff = datetime.now() - self.ttl
        for session_id in [sid for sid, s in self._sessions.items() if s.last_used < cutoff]:
            del self._sessions[session_id]
