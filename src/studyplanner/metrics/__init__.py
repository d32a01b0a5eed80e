"""Scheduling metrics."""

from .collector import collect_metrics, collect_plan_metrics

__all__ = ["collect_metrics", "collect_plan_metrics"]
