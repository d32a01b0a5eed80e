"""Input normalization."""

from .config_resolver import build_settings, resolve_effective_config
from .request import normalize_plan_request, normalize_schedule_request, parse_date, parse_datetime

__all__ = [
    "build_settings",
    "normalize_plan_request",
    "normalize_schedule_request",
    "parse_date",
    "parse_datetime",
    "resolve_effective_config",
]
