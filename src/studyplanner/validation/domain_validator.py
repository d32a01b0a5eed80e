"""Course-table coherence checks.

Nothing here blocks scheduling: a rule that cannot be expanded is skipped by
the engine, so every finding is reported as an info.
"""

from __future__ import annotations

from typing import Any

from .errors import ValidationReport


def _pick(mapping: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in mapping:
            return mapping[key]
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def validate_course_table(course_table: Any) -> ValidationReport:
    report = ValidationReport()
    if not isinstance(course_table, dict):
        return report

    raw_nodes = _pick(course_table, "time_nodes", "timeNodes") or []
    node_ids: set[int] = set()
    for idx, node in enumerate(raw_nodes if isinstance(raw_nodes, list) else []):
        if not isinstance(node, dict):
            continue
        node_id = _as_int(node.get("node"))
        if node_id is None:
            continue
        if node_id in node_ids:
            report.add_info(
                code="INFO_DUPLICATE_NODE",
                message=f"Bell node {node_id} is defined more than once; the last one wins",
                field_path=f"$.course_table.time_nodes[{idx}].node",
            )
        node_ids.add(node_id)

    raw_courses = _pick(course_table, "courses") or []
    course_ids = {
        str(course.get("id"))
        for course in (raw_courses if isinstance(raw_courses, list) else [])
        if isinstance(course, dict) and course.get("id") is not None
    }

    raw_rules = _pick(course_table, "course_times", "courseTimes") or []
    for idx, rule in enumerate(raw_rules if isinstance(raw_rules, list) else []):
        if not isinstance(rule, dict):
            continue
        path = f"$.course_table.course_times[{idx}]"

        course_id = rule.get("id")
        if course_id is not None and str(course_id) not in course_ids:
            report.add_info(
                code="INFO_RULE_COURSE_UNKNOWN",
                message=f"Rule references unknown course id {course_id}; a generic title is used",
                field_path=f"{path}.id",
            )

        day = _as_int(rule.get("day"))
        if day is None or not 1 <= day <= 7:
            report.add_info(
                code="INFO_RULE_DAY_INVALID",
                message="Rule day must be 1 (Monday) to 7 (Sunday); the rule never matches",
                field_path=f"{path}.day",
            )

        start_week = _as_int(_pick(rule, "start_week", "startWeek"))
        end_week = _as_int(_pick(rule, "end_week", "endWeek"))
        if start_week is not None and end_week is not None and start_week > end_week:
            report.add_info(
                code="INFO_RULE_WEEK_RANGE_EMPTY",
                message="startWeek is after endWeek; the rule never matches",
                field_path=path,
            )

        start_node = _as_int(_pick(rule, "start_node", "startNode"))
        step = _as_int(rule.get("step")) or 1
        if start_node is None:
            continue
        end_node = start_node + max(1, step) - 1
        missing = [n for n in (start_node, end_node) if n not in node_ids]
        if missing:
            report.add_info(
                code="INFO_RULE_NODE_MISSING",
                message=f"Rule spans undefined bell nodes {sorted(set(missing))}; its occurrences are skipped",
                field_path=path,
                extra={"missing_nodes": sorted(set(missing))},
            )

    return report
