"""
Draft store for one schedule editing session

Holds the schedule as loaded and an editable draft copy. Every mutation
re-projects the matrix; mutations that can change which alternative configs
a meal time owns also resynchronize that meal time's principal/secondary
alternatives. Mutations naming an unknown id leave the draft untouched.
"""

from typing import List, Optional
from ..models.alert import Alert
from ..models.matrix import ScheduleMatrix
from ..models.schedule import (
    AlternativeConfig,
    AlternativeDefinition,
    MealGroup,
    MealTime,
    MealTimeAlternatives,
    RequestDeadline,
    ScheduleGraph,
)
from .audit_service import audit_schedule
from .matrix_service import build_schedule_matrix


def synchronize_meal_time_alternatives(graph: ScheduleGraph, meal_time_id: str) -> None:
    """
    Recompute the principal/secondary alternatives of one meal time in place

    The candidates are the active configs bound to the meal time, in
    insertion order. A principal outside that set is cleared; an empty
    principal is filled with the first candidate; every other candidate
    becomes secondary.
    """
    meal_time = graph.meal_times.get(meal_time_id)
    if meal_time is None:
        return

    candidates = [
        config.id for config in graph.alternative_configs.values()
        if config.is_active and config.meal_time_id == meal_time_id
    ]

    principal = meal_time.alternatives.principal
    if principal not in candidates:
        principal = None
    if principal is None and candidates:
        principal = candidates[0]

    meal_time.alternatives = MealTimeAlternatives(
        principal=principal,
        secondary=[config_id for config_id in candidates if config_id != principal],
    )


class ScheduleDraftStore:
    """Editable draft of one residence schedule"""

    def __init__(self, graph: Optional[ScheduleGraph] = None, version: int = 0):
        self.original: ScheduleGraph = ScheduleGraph()
        self.draft: ScheduleGraph = ScheduleGraph()
        self.version: int = 0
        self.has_changes: bool = False
        self.matrix: ScheduleMatrix = build_schedule_matrix(self.draft)
        self.alerts: List[Alert] = []
        self.ignored_alerts: List[str] = []
        if graph is not None:
            self.initialize(graph, version)

    # ---- lifecycle ----

    def initialize(self, graph: ScheduleGraph, version: int) -> ScheduleGraph:
        """Reset the store to a freshly loaded schedule"""
        self.original = graph.model_copy(deep=True)
        self.draft = graph.model_copy(deep=True)
        self.version = version
        self.has_changes = False
        self.alerts = []
        self.ignored_alerts = []
        self._refresh()
        return self.draft

    def discard_changes(self) -> ScheduleGraph:
        """Throw the draft away and start again from the loaded schedule"""
        self.draft = self.original.model_copy(deep=True)
        self.has_changes = False
        self._refresh()
        return self.draft

    def mark_saved(self, version: int) -> None:
        """The draft was persisted under a new version"""
        self.original = self.draft.model_copy(deep=True)
        self.version = version
        self.has_changes = False

    # ---- derived data ----

    def get_matrix(self) -> ScheduleMatrix:
        return self.matrix

    def run_audit(self) -> List[Alert]:
        self.alerts = audit_schedule(self.draft)
        return self.alerts

    @property
    def visible_alerts(self) -> List[Alert]:
        """Alerts of the last audit, minus the ignored ones"""
        return [alert for alert in self.alerts if alert.key not in self.ignored_alerts]

    def ignore_alert(self, alert_key: str) -> None:
        if alert_key not in self.ignored_alerts:
            self.ignored_alerts.append(alert_key)

    # ---- mutations ----

    def upsert_meal_group(self, group: MealGroup) -> ScheduleGraph:
        return self._upsert("meal_groups", group)

    def archive_meal_group(self, group_id: str) -> ScheduleGraph:
        return self._archive("meal_groups", group_id)

    def upsert_request_deadline(self, deadline: RequestDeadline) -> ScheduleGraph:
        return self._upsert("request_deadlines", deadline)

    def archive_request_deadline(self, deadline_id: str) -> ScheduleGraph:
        return self._archive("request_deadlines", deadline_id)

    def upsert_meal_time(self, meal_time: MealTime) -> ScheduleGraph:
        """Store a meal time; its alternatives are recomputed from the draft configs"""
        self._upsert("meal_times", meal_time, refresh=False)
        synchronize_meal_time_alternatives(self.draft, meal_time.id)
        self._refresh()
        return self.draft

    def archive_meal_time(self, meal_time_id: str) -> ScheduleGraph:
        return self._archive("meal_times", meal_time_id)

    def upsert_alternative_definition(self, definition: AlternativeDefinition) -> ScheduleGraph:
        return self._upsert("alternative_definitions", definition)

    def archive_alternative_definition(self, definition_id: str) -> ScheduleGraph:
        return self._archive("alternative_definitions", definition_id)

    def upsert_alternative_config(self, config: AlternativeConfig) -> ScheduleGraph:
        previous = self.draft.alternative_configs.get(config.id)
        self._upsert("alternative_configs", config, refresh=False)

        affected = [config.meal_time_id]
        # A config moved to another meal time leaves its old one behind
        if previous is not None and previous.meal_time_id != config.meal_time_id:
            affected.append(previous.meal_time_id)
        for meal_time_id in affected:
            synchronize_meal_time_alternatives(self.draft, meal_time_id)

        self._refresh()
        return self.draft

    def archive_alternative_config(self, config_id: str) -> ScheduleGraph:
        config = self.draft.alternative_configs.get(config_id)
        if config is None:
            return self.draft
        self._archive("alternative_configs", config_id, refresh=False)
        synchronize_meal_time_alternatives(self.draft, config.meal_time_id)
        self._refresh()
        return self.draft

    def set_principal_alternative(self, meal_time_id: str, config_id: str) -> ScheduleGraph:
        """
        Make config_id the principal alternative of a meal time

        An unknown meal time or config id leaves the draft untouched. A
        known config only sticks when it is active and bound to the meal
        time; otherwise synchronization falls back to the first candidate.
        """
        meal_time = self.draft.meal_times.get(meal_time_id)
        if meal_time is None or config_id not in self.draft.alternative_configs:
            return self.draft

        meal_time.alternatives.principal = config_id
        synchronize_meal_time_alternatives(self.draft, meal_time_id)
        self.has_changes = True
        self._refresh()
        return self.draft

    def _upsert(self, collection_name: str, entity, refresh: bool = True) -> ScheduleGraph:
        collection = getattr(self.draft, collection_name)
        # Re-assigning an existing key keeps its insertion position
        collection[entity.id] = entity.model_copy(deep=True)
        self.has_changes = True
        if refresh:
            self._refresh()
        return self.draft

    def _archive(self, collection_name: str, entity_id: str, refresh: bool = True) -> ScheduleGraph:
        collection = getattr(self.draft, collection_name)
        target = collection.get(entity_id)
        if target is None:
            return self.draft
        collection[entity_id] = target.model_copy(update={"is_active": False})
        self.has_changes = True
        if refresh:
            self._refresh()
        return self.draft

    def _refresh(self) -> None:
        self.matrix = build_schedule_matrix(self.draft)
