"""
Schedule persistence service
Loads and saves residence schedules with optimistic concurrency on an
integer version.
"""

from datetime import datetime
from typing import Optional, Tuple
from pydantic import BaseModel
from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import ConcurrencyError
from ..models.schedule import ScheduleGraph


class SaveResult(BaseModel):
    """Outcome of a save: ok with the new version, or a version conflict"""
    ok: bool
    version: int
    conflict: bool = False


class ScheduleService:
    """Schedule persistence"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def load_schedule(self, residence_id: str) -> Tuple[ScheduleGraph, int]:
        """
        Load the stored schedule of a residence

        A residence without a stored schedule gets an empty graph at version 0.
        """
        row = self.db.execute_one(
            "SELECT graph_json, version FROM schedules WHERE residence_id = ?",
            [residence_id]
        )
        if row is None:
            graph, version = ScheduleGraph(), 0
        else:
            graph, version = ScheduleGraph.model_validate_json(row[0]), row[1]

        self.db.log_operation(
            "schedule_load",
            residence_id=residence_id,
            details={"version": version, "found": row is not None}
        )
        return graph, version

    def save_schedule(
        self,
        residence_id: str,
        graph: ScheduleGraph,
        expected_version: int,
        actor_id: Optional[str] = None,
    ) -> SaveResult:
        """
        Store a schedule if nobody saved since expected_version was read

        Returns:
            SaveResult(ok=True, version=<new>) on success,
            SaveResult(ok=False, conflict=True, version=<current>) otherwise.
        """
        try:
            with self.db.transaction() as conn:
                row = conn.execute(
                    "SELECT version FROM schedules WHERE residence_id = ?",
                    [residence_id]
                ).fetchone()
                current_version = row[0] if row else 0

                if current_version != expected_version:
                    raise ConcurrencyError(
                        "Schedule was modified by someone else",
                        current_version=current_version
                    )

                new_version = current_version + 1
                graph_json = graph.model_dump_json()
                now = datetime.now().isoformat()
                if row is None:
                    conn.execute(
                        """
                        INSERT INTO schedules (residence_id, graph_json, version, updated_by, updated_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        [residence_id, graph_json, new_version, actor_id, now]
                    )
                else:
                    conn.execute(
                        """
                        UPDATE schedules
                        SET graph_json = ?, version = ?, updated_by = ?, updated_at = ?
                        WHERE residence_id = ?
                        """,
                        [graph_json, new_version, actor_id, now, residence_id]
                    )

                self.db.log_operation(
                    "schedule_save",
                    residence_id=residence_id,
                    actor_id=actor_id,
                    details={"previous_version": current_version, "version": new_version},
                    conn=conn
                )
        except ConcurrencyError as e:
            self.db.log_operation(
                "schedule_conflict",
                residence_id=residence_id,
                actor_id=actor_id,
                details={"expected_version": expected_version, "current_version": e.current_version}
            )
            return SaveResult(ok=False, conflict=True, version=e.current_version or 0)

        return SaveResult(ok=True, version=new_version)
