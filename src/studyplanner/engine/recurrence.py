"""Expand weekly course rules into dated class occurrences."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping

from .models import BellScheduleNode, CourseOccurrence, CourseRule, Parity, TimeInterval

logger = logging.getLogger(__name__)

DEFAULT_COURSE_TITLE = "Course"


def compute_week_number(semester_start: date | None, day: date) -> int:
    """1-based teaching week of ``day``; -1 before the semester starts."""
    if semester_start is None:
        return 1
    days = (day - semester_start).days
    if days < 0:
        return -1
    return days // 7 + 1


def matches_rule(rule: CourseRule, week: int, iso_weekday: int) -> bool:
    if rule.day_of_week != iso_weekday:
        return False
    if week < rule.start_week or week > rule.end_week:
        return False
    if rule.parity is Parity.ODD and week % 2 == 0:
        return False
    if rule.parity is Parity.EVEN and week % 2 != 0:
        return False
    return True


def resolve_occurrence_interval(
    rule: CourseRule,
    day: date,
    nodes: Mapping[int, BellScheduleNode],
) -> TimeInterval | None:
    """Map the rule's node span onto ``day``; ``None`` when a node is unusable.

    An end clock at or before the start clock means the class runs past
    midnight.
    """
    start_node = nodes.get(rule.start_node)
    end_node = nodes.get(rule.end_node)
    if start_node is None or end_node is None:
        return None
    if start_node.start_time is None or end_node.end_time is None:
        return None

    start = datetime.combine(day, start_node.start_time)
    end = datetime.combine(day, end_node.end_time)
    if end_node.end_time <= start_node.start_time:
        end += timedelta(days=1)
    return TimeInterval(start, end)


def format_course_details(rule: CourseRule) -> str:
    parts = [part.strip() for part in (rule.room, rule.teacher) if part and part.strip()]
    return " · ".join(parts)


def expand_course_rules(
    *,
    rules: Iterable[CourseRule],
    nodes: Mapping[int, BellScheduleNode],
    course_names: Mapping[str, str],
    start_date: date,
    end_date: date,
    semester_start: date | None,
) -> list[CourseOccurrence]:
    """Return every occurrence dated in ``[start_date, end_date)``, in date then rule order."""
    rule_list = list(rules)
    occurrences: list[CourseOccurrence] = []
    skipped = 0

    current = start_date
    while current < end_date:
        week = compute_week_number(semester_start, current)
        if week > 0:
            weekday = current.isoweekday()
            for rule in rule_list:
                if not matches_rule(rule, week, weekday):
                    continue
                interval = resolve_occurrence_interval(rule, current, nodes)
                if interval is None:
                    skipped += 1
                    continue
                title = course_names.get(rule.course_ref) or DEFAULT_COURSE_TITLE
                occurrences.append(
                    CourseOccurrence(title=title, details=format_course_details(rule), interval=interval)
                )
        current += timedelta(days=1)

    if skipped:
        logger.debug("Skipped %d course occurrences with missing bell nodes", skipped)
    logger.debug("Expanded %d course rules into %d occurrences", len(rule_list), len(occurrences))
    return occurrences
