"""Validation helpers."""

from .errors import ValidationError, ValidationIssue, ValidationReport
from .domain_validator import validate_course_table
from .request import validate_plan_request, validate_schedule_request

__all__ = [
    "ValidationError",
    "ValidationIssue",
    "ValidationReport",
    "validate_course_table",
    "validate_plan_request",
    "validate_schedule_request",
]
