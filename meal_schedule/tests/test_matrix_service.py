"""
Schedule matrix projection tests
"""

import pytest
from meal_schedule.models.schedule import WEEKDAYS
from meal_schedule.services.matrix_service import build_schedule_matrix
from .factories import (
    build_graph,
    make_config,
    make_deadline,
    make_definition,
    make_group,
    make_meal_time,
)


class TestMatrixShape:
    """Columns and rows"""

    def test_empty_graph(self, empty_graph):
        matrix = build_schedule_matrix(empty_graph)
        assert matrix.columns == []
        assert [row.day for row in matrix.rows] == WEEKDAYS
        assert all(row.cells == [] and row.deadlines == [] for row in matrix.rows)

    def test_columns_are_active_groups_sorted_by_order(self):
        graph = build_graph(groups=[
            make_group("dinner", 3),
            make_group("breakfast", 1),
            make_group("snack", 2, is_active=False),
            make_group("lunch", 2),
        ])
        matrix = build_schedule_matrix(graph)
        assert [g.id for g in matrix.columns] == ["breakfast", "lunch", "dinner"]

    def test_order_ties_keep_insertion_order(self):
        graph = build_graph(groups=[
            make_group("b", 1),
            make_group("a", 1),
            make_group("c", 0),
        ])
        matrix = build_schedule_matrix(graph)
        assert [g.id for g in matrix.columns] == ["c", "b", "a"]

    def test_row_deadlines_include_inactive(self):
        graph = build_graph(deadlines=[
            make_deadline("d1", day="tuesday"),
            make_deadline("d2", day="tuesday", is_active=False),
            make_deadline("d3", day="friday"),
        ])
        rows = {row.day: row for row in build_schedule_matrix(graph).rows}
        assert [d.id for d in rows["tuesday"].deadlines] == ["d1", "d2"]
        assert [d.id for d in rows["friday"].deadlines] == ["d3"]
        assert rows["monday"].deadlines == []

    def test_one_cell_per_column(self, week_graph):
        matrix = build_schedule_matrix(week_graph)
        for row in matrix.rows:
            assert [cell.group_id for cell in row.cells] == ["lunch"]
            assert [t.meal_time.id for t in row.cells[0].meal_times] == [f"lunch-{row.day}"]


class TestMatrixCells:
    """Meal times and alternatives inside cells"""

    def test_duplicate_meal_times_are_kept(self):
        graph = build_graph(
            groups=[make_group("lunch", 1)],
            meal_times=[
                make_meal_time("t1", day="monday"),
                make_meal_time("t2", day="monday"),
                make_meal_time("t3", day="monday", is_active=False),
            ],
        )
        cell = build_schedule_matrix(graph).rows[0].cells[0]
        assert [t.meal_time.id for t in cell.meal_times] == ["t1", "t2", "t3"]

    def test_meal_times_of_inactive_groups_are_hidden(self):
        graph = build_graph(
            groups=[make_group("lunch", 1), make_group("dinner", 2, is_active=False)],
            meal_times=[make_meal_time("t1", group_id="dinner")],
        )
        matrix = build_schedule_matrix(graph)
        assert all(
            cell.meal_times == [] for row in matrix.rows for cell in row.cells
        )

    def test_alternatives_are_enriched(self, week_graph):
        cell = build_schedule_matrix(week_graph).rows[0].cells[0]
        alternatives = cell.meal_times[0].alternatives
        assert [a.config.id for a in alternatives] == ["monday-dine-in", "monday-takeaway"]

        dine_in, takeaway = alternatives
        assert dine_in.definition.id == "dine-in"
        assert dine_in.deadline.id == "cutoff-monday"
        assert dine_in.lead_time_hours == 3
        assert takeaway.lead_time_hours == 2
        assert dine_in.is_inactive is False

    def test_inactive_definition_or_deadline_flags_alternative(self):
        graph = build_graph(
            groups=[make_group("lunch", 1)],
            deadlines=[make_deadline("cutoff-monday", is_active=False)],
            meal_times=[make_meal_time("t1")],
            definitions=[make_definition("dine-in")],
            configs=[make_config("c1", "t1")],
        )
        alternative = build_schedule_matrix(graph).rows[0].cells[0].meal_times[0].alternatives[0]
        assert alternative.is_inactive is True

    def test_orphan_alternatives_are_dropped(self):
        graph = build_graph(
            groups=[make_group("lunch", 1)],
            deadlines=[make_deadline("cutoff-monday")],
            meal_times=[make_meal_time("t1")],
            definitions=[make_definition("dine-in")],
            configs=[
                make_config("ok", "t1"),
                make_config("no-definition", "t1", definition_id="missing"),
                make_config("no-deadline", "t1", deadline_id="missing"),
            ],
        )
        alternatives = build_schedule_matrix(graph).rows[0].cells[0].meal_times[0].alternatives
        assert [a.config.id for a in alternatives] == ["ok"]
        # still present in the raw data
        assert "no-definition" in graph.alternative_configs

    @pytest.mark.parametrize("window_kind, expected", [
        ("normal", 3),
        ("ends_next_day", 3),
        ("starts_previous_day", 147),
    ])
    def test_window_kind_and_lead_time(self, window_kind, expected):
        """Only starts_previous_day moves the service start"""
        graph = build_graph(
            groups=[make_group("lunch", 1)],
            deadlines=[make_deadline("cutoff-monday")],
            meal_times=[make_meal_time("t1")],
            definitions=[make_definition("dine-in")],
            configs=[make_config("c1", "t1", window_kind=window_kind)],
        )
        alternative = build_schedule_matrix(graph).rows[0].cells[0].meal_times[0].alternatives[0]
        assert alternative.lead_time_hours == expected


class TestMatrixPurity:

    def test_projection_is_idempotent(self, week_graph):
        assert build_schedule_matrix(week_graph) == build_schedule_matrix(week_graph)

    def test_input_is_not_mutated(self, week_graph):
        before = week_graph.model_dump()
        matrix = build_schedule_matrix(week_graph)
        matrix.columns[0].name = "changed"
        matrix.rows[0].cells[0].meal_times[0].meal_time.alternatives.secondary.append("x")
        assert week_graph.model_dump() == before
