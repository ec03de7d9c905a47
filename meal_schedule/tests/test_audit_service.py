"""
Integrity audit tests
"""

from meal_schedule.models.alert import Alert, RULE_CATALOG, summarize_alerts
from meal_schedule.services.audit_service import AuditResult, audit_schedule
from .factories import (
    build_graph,
    build_week_graph,
    make_config,
    make_deadline,
    make_group,
)


def codes(alerts):
    return [alert.rule_code for alert in alerts]


def find(alerts, rule_code):
    matches = [alert for alert in alerts if alert.rule_code == rule_code]
    assert matches, f"{rule_code} not raised"
    return matches


class TestAuditBasics:

    def test_empty_schedule_reports_general_only(self, empty_graph):
        alerts = audit_schedule(empty_graph)
        assert codes(alerts) == ["GENERAL"]
        assert alerts[0].severity == "warning"
        assert alerts[0].entity_kind == "global"

    def test_only_archived_entities_counts_as_empty(self):
        graph = build_graph(groups=[make_group("lunch", 1, is_active=False)])
        assert codes(audit_schedule(graph)) == ["GENERAL"]

    def test_consistent_week_has_no_alerts(self, week_graph):
        assert audit_schedule(week_graph) == []

    def test_audit_does_not_mutate_graph(self, week_graph):
        week_graph.request_deadlines["cutoff-monday"].is_active = False
        before = week_graph.model_dump()
        audit_schedule(week_graph)
        assert week_graph.model_dump() == before


class TestDeadlineRules:

    def test_two_primary_deadlines_on_monday(self, week_graph):
        week_graph.request_deadlines["extra"] = make_deadline("extra", day="monday", name="Extra")
        alerts = find(audit_schedule(week_graph), "HSC_PRI_DIA")
        assert len(alerts) == 1
        assert alerts[0].ids == "cutoff-monday, extra"
        assert alerts[0].severity == "warning"

    def test_day_without_deadline(self, week_graph):
        del week_graph.request_deadlines["cutoff-sunday"]
        alerts = audit_schedule(week_graph)
        assert "No active request deadline on sunday." in [a.message for a in find(alerts, "HSC_DIA")]
        assert "No primary request deadline defined for sunday." in [
            a.message for a in find(alerts, "HSC_PRI_DIA")
        ]

    def test_archived_deadline_still_in_use(self, week_graph):
        week_graph.request_deadlines["cutoff-monday"].is_active = False
        alerts = find(audit_schedule(week_graph), "HSC_INACT_ASOC")
        assert alerts[0].ids == "cutoff-monday"
        assert alerts[0].severity == "error"

    def test_repeated_deadline_names(self, week_graph):
        week_graph.request_deadlines["cutoff-tuesday"].name = "Cutoff monday"
        alerts = find(audit_schedule(week_graph), "HSC_REP")
        assert alerts[0].ids == "cutoff-monday, cutoff-tuesday"


class TestMealTimeRules:

    def test_archived_meal_time_still_in_use(self, week_graph):
        week_graph.meal_times["lunch-friday"].is_active = False
        alerts = audit_schedule(week_graph)
        assert find(alerts, "TC_INACT_ASOC")[0].ids == "lunch-friday"
        assert "No active meal time for group 'Lunch' on friday." in [
            a.message for a in find(alerts, "TC_DIAxGR")
        ]

    def test_meal_time_without_alternatives(self, week_graph):
        for config_id in ("monday-dine-in", "monday-takeaway"):
            week_graph.alternative_configs[config_id].is_active = False
        alerts = audit_schedule(week_graph)
        assert find(alerts, "CFALT_TC")[0].ids == "lunch-monday"
        assert find(alerts, "CFALT_TCxCOM")[0].ids == "lunch-monday"

    def test_meal_time_without_dine_in(self, week_graph):
        week_graph.alternative_configs["monday-dine-in"].is_active = False
        alerts = audit_schedule(week_graph)
        assert "CFALT_TC" not in codes(alerts)
        assert find(alerts, "CFALT_TCxCOM")[0].entity_kind == "alternative_config"


class TestConfigRules:

    def test_negative_normal_window(self, week_graph):
        week_graph.alternative_configs["monday-takeaway"].window.start = "14:00"
        alerts = find(audit_schedule(week_graph), "CFALT_TIEM_NEG")
        assert alerts[0].ids == "monday-takeaway"
        assert alerts[0].severity == "warning"

    def test_overnight_window_is_not_negative(self, week_graph):
        window = week_graph.alternative_configs["monday-takeaway"].window
        window.start, window.end, window.kind = "22:00", "01:00", "ends_next_day"
        assert "CFALT_TIEM_NEG" not in codes(audit_schedule(week_graph))

    def test_identical_windows_pair_with_first_occurrence(self, week_graph):
        """Each repeat is reported against the first config seen"""
        for suffix in ("b", "c"):
            week_graph.alternative_configs[f"monday-takeaway-{suffix}"] = make_config(
                f"monday-takeaway-{suffix}", "lunch-monday", definition_id="takeaway",
                start="12:00", end="13:00",
            )
        alerts = find(audit_schedule(week_graph), "CFALT_CONC")
        assert len(alerts) == 1
        assert alerts[0].ids == "monday-takeaway, monday-takeaway-b, monday-takeaway, monday-takeaway-c"

    def test_same_window_other_kind_is_not_concurrent(self, week_graph):
        week_graph.alternative_configs["monday-extra"] = make_config(
            "monday-extra", "lunch-monday", definition_id="takeaway",
            start="12:00", end="13:00", window_kind="starts_previous_day",
        )
        assert "CFALT_CONC" not in codes(audit_schedule(week_graph))

    def test_dining_hall_overlap(self, week_graph):
        week_graph.alternative_configs["monday-second-sitting"] = make_config(
            "monday-second-sitting", "lunch-monday", start="14:30", end="16:00",
            dining_hall_id="main-hall",
        )
        alerts = find(audit_schedule(week_graph), "CFALT_CONC_COM")
        assert alerts[0].ids == "monday-dine-in, monday-second-sitting"

    def test_back_to_back_sittings_do_not_overlap(self, week_graph):
        week_graph.alternative_configs["monday-second-sitting"] = make_config(
            "monday-second-sitting", "lunch-monday", start="15:00", end="16:00",
            dining_hall_id="main-hall",
        )
        assert "CFALT_CONC_COM" not in codes(audit_schedule(week_graph))

    def test_previous_day_window_overlaps_on_shifted_axis(self, week_graph):
        """22:00 the evening before until 14:00 covers the 13:00 sitting"""
        week_graph.alternative_configs["monday-early"] = make_config(
            "monday-early", "lunch-monday", start="22:00", end="14:00",
            window_kind="starts_previous_day", dining_hall_id="main-hall",
        )
        assert "CFALT_CONC_COM" in codes(audit_schedule(week_graph))


class TestRepeatedNames:
    """Active entities of one kind sharing a name"""

    def test_repeated_meal_time_names(self, week_graph):
        week_graph.meal_times["lunch-tuesday"].name = "Lunch monday"
        alerts = find(audit_schedule(week_graph), "TC_REP")
        assert alerts[0].ids == "lunch-monday, lunch-tuesday"
        assert alerts[0].entity_kind == "meal_time"
        assert alerts[0].severity == "warning"

    def test_repeated_definition_names(self, week_graph):
        week_graph.alternative_definitions["takeaway"].name = "Dining hall"
        alerts = find(audit_schedule(week_graph), "DFALT_REP")
        assert alerts[0].ids == "dine-in, takeaway"
        assert alerts[0].entity_kind == "alternative_definition"

    def test_repeated_config_names(self, week_graph):
        week_graph.alternative_configs["monday-takeaway"].name = "monday-dine-in"
        alerts = find(audit_schedule(week_graph), "CFALT_REP")
        assert alerts[0].ids == "monday-dine-in, monday-takeaway"
        assert alerts[0].entity_kind == "alternative_config"

    def test_archived_duplicate_is_not_reported(self, week_graph):
        week_graph.meal_times["lunch-tuesday"].name = "Lunch monday"
        week_graph.alternative_definitions["takeaway"].name = "Dining hall"
        week_graph.meal_times["lunch-tuesday"].is_active = False
        week_graph.alternative_definitions["takeaway"].is_active = False
        alerts = audit_schedule(week_graph)
        assert "TC_REP" not in codes(alerts)
        assert "DFALT_REP" not in codes(alerts)


class TestGroupRules:

    def test_non_consecutive_group_order(self):
        graph = build_graph(groups=[make_group("a", 1), make_group("b", 3)])
        alerts = find(audit_schedule(graph), "GC_DESOR")
        assert len(alerts) == 1
        assert alerts[0].severity == "error"

    def test_archived_group_ignored_for_order(self):
        graph = build_graph(groups=[
            make_group("a", 1), make_group("b", 2, is_active=False), make_group("c", 2),
        ])
        assert "GC_DESOR" not in codes(audit_schedule(graph))

    def test_repeated_group_names(self):
        graph = build_graph(groups=[
            make_group("a", 1, name="Lunch"), make_group("b", 2, name="Lunch"),
        ])
        alerts = find(audit_schedule(graph), "GC_REP")
        assert alerts[0].ids == "a, b"
        assert alerts[0].is_error


class TestAlertMerging:

    def test_same_message_merges_ids_in_order(self):
        result = AuditResult()
        result.add("TC_REP", "meal_time", "Repeated meal time name: 'x'.", ids="t1, t2")
        result.add("TC_REP", "meal_time", "Repeated meal time name: 'x'.", ids="t3")
        result.add("TC_REP", "meal_time", "Repeated meal time name: 'y'.", ids="t4")
        merged = result.merged()
        assert [a.ids for a in merged] == ["t1, t2, t3", "t4"]

    def test_missing_ids_do_not_leave_separators(self):
        result = AuditResult()
        result.add("GC_DESOR", "meal_group", "Not consecutive.")
        result.add("GC_DESOR", "meal_group", "Not consecutive.", ids="g1")
        assert result.merged()[0].ids == "g1"

    def test_key_is_stable_and_distinct(self):
        first = Alert(rule_code="HSC_DIA", entity_kind="request_deadline", message="m")
        again = Alert(rule_code="HSC_DIA", entity_kind="request_deadline", message="m", ids="x")
        other = Alert(rule_code="HSC_DIA", entity_kind="request_deadline", message="n")
        assert first.key == again.key
        assert first.key != other.key


class TestRuleCatalog:

    def test_error_rules(self):
        errors = sorted(code for code, info in RULE_CATALOG.items() if info.severity == "error")
        assert errors == ["GC_DESOR", "GC_REP", "HSC_INACT_ASOC", "TC_INACT_ASOC"]

    def test_summary_counts(self):
        graph = build_week_graph()
        graph.request_deadlines["cutoff-monday"].is_active = False
        summary = summarize_alerts(audit_schedule(graph))
        assert summary.errors == 1
        assert summary.warnings >= 1
        assert summary.has_blocking_errors
