"""Scheduling engine."""

from .allocator import AllocationPolicy, allocate_tasks, find_whole_slot, max_split_segments
from .intervals import apply_preferred_windows, consume, subtract, subtract_all
from .models import BellScheduleNode, CourseRule, ItemKind, Parity, ScheduledItem, Task, TimeInterval
from .ordering import TaskOrder, order_tasks, priority_weight
from .plans import SchedulingMode, SchedulingPreference, build_plans
from .recurrence import compute_week_number, expand_course_rules
from .relaxation import schedule_with_relaxation
from .runner import PlanRequest, ScheduleRequest, run_plan_builder, run_scheduler
from .scoring import PLAN_WEIGHT_PRESETS, BonusSlotScorer, WeightedSlotScorer
from .settings import DEFAULT_SCHEDULER_CONFIG, SchedulerSettings
from .slot_builder import build_free_slots, build_plan_slots

__all__ = [
    "AllocationPolicy",
    "BellScheduleNode",
    "BonusSlotScorer",
    "CourseRule",
    "DEFAULT_SCHEDULER_CONFIG",
    "ItemKind",
    "PLAN_WEIGHT_PRESETS",
    "Parity",
    "PlanRequest",
    "ScheduleRequest",
    "ScheduledItem",
    "SchedulerSettings",
    "SchedulingMode",
    "SchedulingPreference",
    "Task",
    "TaskOrder",
    "TimeInterval",
    "WeightedSlotScorer",
    "allocate_tasks",
    "apply_preferred_windows",
    "build_free_slots",
    "build_plan_slots",
    "build_plans",
    "compute_week_number",
    "consume",
    "expand_course_rules",
    "find_whole_slot",
    "max_split_segments",
    "order_tasks",
    "priority_weight",
    "run_plan_builder",
    "run_scheduler",
    "schedule_with_relaxation",
    "subtract",
    "subtract_all",
]
