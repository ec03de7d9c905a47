"""
Schedule matrix projection
Turns the raw schedule graph into the day x meal-group grid used by the
schedule editor.
"""

from typing import Dict, List
from ..models.schedule import ScheduleGraph, WindowKind, WEEKDAYS
from ..models.matrix import (
    EnrichedAlternative,
    EnrichedMealTime,
    MatrixCell,
    MatrixRow,
    ScheduleMatrix,
)
from .lead_time import lead_time_hours


def build_schedule_matrix(graph: ScheduleGraph) -> ScheduleMatrix:
    """
    Project the graph into a ScheduleMatrix

    Columns are the active meal groups sorted by order. Meal times are kept
    whenever their group is active, whatever their own flag. Alternatives
    whose definition or deadline is missing are left out of the view; they
    are still present in the raw graph.
    The graph is never modified.
    """
    # 1. Active groups as columns; sorted() is stable so ties keep insertion order
    columns = sorted(
        (group for group in graph.meal_groups.values() if group.is_active),
        key=lambda group: group.order,
    )
    active_group_ids = {group.id for group in columns}

    # 2. Meal times of active groups
    meal_times = [
        meal_time for meal_time in graph.meal_times.values()
        if meal_time.group_id in active_group_ids
    ]
    meal_time_ids = {meal_time.id for meal_time in meal_times}

    # 3. Configs bound to those meal times, grouped per meal time
    configs_by_meal_time: Dict[str, list] = {}
    for config in graph.alternative_configs.values():
        if config.meal_time_id in meal_time_ids:
            configs_by_meal_time.setdefault(config.meal_time_id, []).append(config)

    rows: List[MatrixRow] = []
    for day in WEEKDAYS:
        deadlines = [
            deadline.model_copy(deep=True)
            for deadline in graph.request_deadlines.values()
            if deadline.day == day
        ]

        cells = []
        for group in columns:
            cell_meal_times = [
                _enrich_meal_time(graph, meal_time, configs_by_meal_time.get(meal_time.id, []))
                for meal_time in meal_times
                if meal_time.day == day and meal_time.group_id == group.id
            ]
            cells.append(MatrixCell(group_id=group.id, meal_times=cell_meal_times))

        rows.append(MatrixRow(day=day, deadlines=deadlines, cells=cells))

    return ScheduleMatrix(
        columns=[group.model_copy(deep=True) for group in columns],
        rows=rows,
    )


def _enrich_meal_time(graph: ScheduleGraph, meal_time, configs) -> EnrichedMealTime:
    alternatives = []
    for config in configs:
        definition = graph.alternative_definitions.get(config.definition_id)
        deadline = graph.request_deadlines.get(config.deadline_id)
        if definition is None or deadline is None:
            continue

        # ends_next_day does not move the service start
        hours = lead_time_hours(
            deadline.day,
            deadline.request_time,
            meal_time.day,
            config.window.start,
            config.window.kind == WindowKind.STARTS_PREVIOUS_DAY,
        )

        alternatives.append(EnrichedAlternative(
            config=config.model_copy(deep=True),
            definition=definition.model_copy(deep=True),
            deadline=deadline.model_copy(deep=True),
            lead_time_hours=hours,
            is_inactive=not definition.is_active or not deadline.is_active,
        ))

    return EnrichedMealTime(
        meal_time=meal_time.model_copy(deep=True),
        alternatives=alternatives,
    )
