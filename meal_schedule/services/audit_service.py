"""
Schedule integrity audit
Rule-based consistency checks over a ScheduleGraph. Findings are returned as
severity-tagged alerts; nothing here raises on inconsistent data.

Warnings
- HSC_DIA / HSC_PRI_DIA: request deadlines per weekday
- TC_DIAxGR: one meal time per active group and weekday
- CFALT_TC / CFALT_TCxCOM: alternatives available for each meal time
- *_REP: repeated names
- CFALT_CONC / CFALT_CONC_COM: concurrent service windows
- CFALT_TIEM_NEG: normal window ending before it starts

Errors
- HSC_INACT_ASOC / TC_INACT_ASOC: archived entities still in use
- GC_DESOR / GC_REP: meal group ordering and names
"""

from typing import Dict, List, Optional, Tuple
from ..models.alert import Alert, EntityKind
from ..models.schedule import (
    AlternativeKind,
    ScheduleGraph,
    WindowKind,
    WEEKDAYS,
    time_to_minutes,
)

MINUTES_PER_DAY = 24 * 60


class AuditResult:
    """Alert collector"""

    def __init__(self):
        self.alerts: List[Alert] = []

    def add(self, rule_code: str, entity_kind: EntityKind, message: str, ids: Optional[str] = None):
        self.alerts.append(Alert(
            rule_code=rule_code,
            entity_kind=entity_kind,
            ids=ids,
            message=message,
        ))

    def merged(self) -> List[Alert]:
        """
        Collapse alerts with the same rule, entity kind and message

        Ids are concatenated with ", " in the order the alerts were raised.
        """
        grouped: Dict[Tuple[str, str, str], Alert] = {}
        for alert in self.alerts:
            key = (alert.rule_code, alert.entity_kind, alert.message)
            existing = grouped.get(key)
            if existing is None:
                grouped[key] = alert.model_copy()
            elif alert.ids:
                existing.ids = ", ".join(part for part in (existing.ids, alert.ids) if part)
        return list(grouped.values())


class IntegrityAuditor:
    """Runs every integrity rule against one graph"""

    def audit(self, graph: ScheduleGraph) -> List[Alert]:
        result = AuditResult()

        if not graph.has_active_entities():
            result.add(
                "GENERAL",
                EntityKind.GLOBAL,
                "No schedule entity is active. The schedule configuration is completely empty.",
            )
            return result.alerts

        # Warnings
        self._check_deadlines_per_day(graph, result)
        self._check_primary_deadlines_per_day(graph, result)
        self._check_meal_times_per_group_and_day(graph, result)
        self._check_meal_times_have_alternatives(graph, result)
        self._check_meal_times_have_dine_in(graph, result)
        self._check_repeated_names(graph, result)
        self._check_concurrent_windows(graph, result)
        self._check_dining_hall_overlaps(graph, result)
        self._check_negative_windows(graph, result)

        # Errors
        self._check_inactive_deadlines_in_use(graph, result)
        self._check_inactive_meal_times_in_use(graph, result)
        self._check_group_order(graph, result)
        self._check_repeated_group_names(graph, result)

        return result.merged()

    def _check_deadlines_per_day(self, graph: ScheduleGraph, result: AuditResult):
        """Every weekday needs an active request deadline"""
        for day in WEEKDAYS:
            if not any(d.is_active and d.day == day for d in graph.request_deadlines.values()):
                result.add(
                    "HSC_DIA",
                    EntityKind.REQUEST_DEADLINE,
                    f"No active request deadline on {day}.",
                )

    def _check_primary_deadlines_per_day(self, graph: ScheduleGraph, result: AuditResult):
        """Exactly one active primary deadline per weekday"""
        for day in WEEKDAYS:
            primary_ids = [
                d.id for d in graph.request_deadlines.values()
                if d.is_active and d.is_primary and d.day == day
            ]
            if not primary_ids:
                result.add(
                    "HSC_PRI_DIA",
                    EntityKind.REQUEST_DEADLINE,
                    f"No primary request deadline defined for {day}.",
                )
            elif len(primary_ids) > 1:
                result.add(
                    "HSC_PRI_DIA",
                    EntityKind.REQUEST_DEADLINE,
                    f"More than one primary request deadline defined for {day}.",
                    ids=", ".join(primary_ids),
                )

    def _check_meal_times_per_group_and_day(self, graph: ScheduleGraph, result: AuditResult):
        """Exactly one active meal time per active group and weekday"""
        for group in graph.meal_groups.values():
            if not group.is_active:
                continue
            for day in WEEKDAYS:
                meal_time_ids = [
                    t.id for t in graph.meal_times.values()
                    if t.is_active and t.group_id == group.id and t.day == day
                ]
                if not meal_time_ids:
                    result.add(
                        "TC_DIAxGR",
                        EntityKind.MEAL_TIME,
                        f"No active meal time for group '{group.name}' on {day}.",
                    )
                elif len(meal_time_ids) > 1:
                    result.add(
                        "TC_DIAxGR",
                        EntityKind.MEAL_TIME,
                        f"More than one active meal time for group '{group.name}' on {day}.",
                        ids=", ".join(meal_time_ids),
                    )

    def _active_configs_for(self, graph: ScheduleGraph, meal_time_id: str) -> list:
        return [
            c for c in graph.alternative_configs.values()
            if c.is_active and c.meal_time_id == meal_time_id
        ]

    def _check_meal_times_have_alternatives(self, graph: ScheduleGraph, result: AuditResult):
        for meal_time in graph.meal_times.values():
            if meal_time.is_active and not self._active_configs_for(graph, meal_time.id):
                result.add(
                    "CFALT_TC",
                    EntityKind.ALTERNATIVE_CONFIG,
                    f"Meal time '{meal_time.name}' has no active alternative config.",
                    ids=meal_time.id,
                )

    def _check_meal_times_have_dine_in(self, graph: ScheduleGraph, result: AuditResult):
        for meal_time in graph.meal_times.values():
            if not meal_time.is_active:
                continue
            has_dine_in = False
            for config in self._active_configs_for(graph, meal_time.id):
                definition = graph.alternative_definitions.get(config.definition_id)
                if definition is not None and definition.kind == AlternativeKind.DINE_IN:
                    has_dine_in = True
                    break
            if not has_dine_in:
                result.add(
                    "CFALT_TCxCOM",
                    EntityKind.ALTERNATIVE_CONFIG,
                    f"Meal time '{meal_time.name}' has no dine-in alternative.",
                    ids=meal_time.id,
                )

    def _check_repeated_names(self, graph: ScheduleGraph, result: AuditResult):
        checks = [
            ("HSC_REP", EntityKind.REQUEST_DEADLINE, graph.request_deadlines, "request deadline"),
            ("TC_REP", EntityKind.MEAL_TIME, graph.meal_times, "meal time"),
            ("DFALT_REP", EntityKind.ALTERNATIVE_DEFINITION, graph.alternative_definitions, "alternative definition"),
            ("CFALT_REP", EntityKind.ALTERNATIVE_CONFIG, graph.alternative_configs, "alternative config"),
        ]
        for rule_code, entity_kind, collection, label in checks:
            self._report_repeated_names(rule_code, entity_kind, collection, label, result)

    def _report_repeated_names(self, rule_code, entity_kind, collection, label, result: AuditResult):
        """One alert per name shared by two or more active entities"""
        ids_by_name: Dict[str, List[str]] = {}
        for entity in collection.values():
            if entity.is_active:
                ids_by_name.setdefault(entity.name, []).append(entity.id)

        for name, ids in ids_by_name.items():
            if len(ids) > 1:
                result.add(
                    rule_code,
                    entity_kind,
                    f"Repeated {label} name: '{name}'.",
                    ids=", ".join(ids),
                )

    def _check_concurrent_windows(self, graph: ScheduleGraph, result: AuditResult):
        """
        Same service window twice on one weekday

        Each later config is paired with the first one seen; the first
        occurrence is never reported on its own.
        """
        first_seen: Dict[str, Dict[tuple, str]] = {}
        for config in graph.alternative_configs.values():
            if not config.is_active:
                continue
            meal_time = graph.meal_times.get(config.meal_time_id)
            if meal_time is None:
                continue

            window = (config.window.start, config.window.end, config.window.kind)
            bucket = first_seen.setdefault(meal_time.day, {})
            if window in bucket:
                result.add(
                    "CFALT_CONC",
                    EntityKind.ALTERNATIVE_CONFIG,
                    f"Service window conflict on {meal_time.day} "
                    f"for window {config.window.start}-{config.window.end}.",
                    ids=f"{bucket[window]}, {config.id}",
                )
            else:
                bucket[window] = config.id

    def _check_dining_hall_overlaps(self, graph: ScheduleGraph, result: AuditResult):
        """Configs served in the same dining hall must not overlap on a weekday"""
        by_hall_and_day: Dict[Tuple[str, str], list] = {}
        for config in graph.alternative_configs.values():
            if not config.is_active or not config.dining_hall_id:
                continue
            meal_time = graph.meal_times.get(config.meal_time_id)
            if meal_time is None:
                continue
            by_hall_and_day.setdefault((config.dining_hall_id, meal_time.day), []).append(config)

        for (hall_id, day), configs in by_hall_and_day.items():
            for index, first in enumerate(configs):
                first_start, first_end = _window_minutes(first.window)
                for second in configs[index + 1:]:
                    second_start, second_end = _window_minutes(second.window)
                    if first_start < second_end and second_start < first_end:
                        result.add(
                            "CFALT_CONC_COM",
                            EntityKind.ALTERNATIVE_CONFIG,
                            f"Alternative configs overlap in dining hall '{hall_id}' on {day}.",
                            ids=f"{first.id}, {second.id}",
                        )

    def _check_negative_windows(self, graph: ScheduleGraph, result: AuditResult):
        for config in graph.alternative_configs.values():
            window = config.window
            if (
                config.is_active
                and window.kind == WindowKind.NORMAL
                and time_to_minutes(window.start) > time_to_minutes(window.end)
            ):
                result.add(
                    "CFALT_TIEM_NEG",
                    EntityKind.ALTERNATIVE_CONFIG,
                    f"Alternative config '{config.name}' has a service window "
                    f"that starts after it ends.",
                    ids=config.id,
                )

    def _check_inactive_deadlines_in_use(self, graph: ScheduleGraph, result: AuditResult):
        used = {c.deadline_id for c in graph.alternative_configs.values() if c.is_active}
        for deadline in graph.request_deadlines.values():
            if not deadline.is_active and deadline.id in used:
                result.add(
                    "HSC_INACT_ASOC",
                    EntityKind.REQUEST_DEADLINE,
                    f"Archived request deadline '{deadline.name}' is used by an active alternative config.",
                    ids=deadline.id,
                )

    def _check_inactive_meal_times_in_use(self, graph: ScheduleGraph, result: AuditResult):
        used = {c.meal_time_id for c in graph.alternative_configs.values() if c.is_active}
        for meal_time in graph.meal_times.values():
            if not meal_time.is_active and meal_time.id in used:
                result.add(
                    "TC_INACT_ASOC",
                    EntityKind.MEAL_TIME,
                    f"Archived meal time '{meal_time.name}' is used by an active alternative config.",
                    ids=meal_time.id,
                )

    def _check_group_order(self, graph: ScheduleGraph, result: AuditResult):
        orders = sorted(g.order for g in graph.meal_groups.values() if g.is_active)
        for current, following in zip(orders, orders[1:]):
            if following != current + 1:
                result.add(
                    "GC_DESOR",
                    EntityKind.MEAL_GROUP,
                    "The order of the active meal groups is not consecutive.",
                )
                break

    def _check_repeated_group_names(self, graph: ScheduleGraph, result: AuditResult):
        self._report_repeated_names(
            "GC_REP", EntityKind.MEAL_GROUP, graph.meal_groups, "meal group", result
        )


def _window_minutes(window) -> Tuple[int, int]:
    """Window as [start, end) minutes on its meal day's axis"""
    start = time_to_minutes(window.start)
    end = time_to_minutes(window.end)
    if window.kind == WindowKind.STARTS_PREVIOUS_DAY:
        start -= MINUTES_PER_DAY
    elif window.kind == WindowKind.ENDS_NEXT_DAY:
        end += MINUTES_PER_DAY
    return start, end


# Shared stateless instance
integrity_auditor = IntegrityAuditor()


def audit_schedule(graph: ScheduleGraph) -> List[Alert]:
    """Audit a schedule graph; pure and safe to call at any time"""
    return integrity_auditor.audit(graph)
