# src/smartplan/errors.py

"""
Error taxonomy.

User-facing operations raise these; background maintenance (retention sweep,
reminders) logs them instead.
"""


class SmartPlanError(Exception):
    """Base class for all application errors."""


class ValidationError(SmartPlanError, ValueError):
    """A required field is missing or malformed. Nothing was persisted."""


class NotFoundError(SmartPlanError, LookupError):
    """No record with the given identifier exists."""


class StoreError(SmartPlanError, RuntimeError):
    """The storage backend is unreachable, rejected a write, or holds unreadable data."""


class PlanningError(SmartPlanError, RuntimeError):
    """The planning model failed or returned an unusable reply."""


class PlanDecodeError(PlanningError):
    """The reply is not valid JSON."""


class PlanStructureError(PlanningError):
    """The reply is JSON but does not have the plan shape."""
