from __future__ import annotations


class TrackerError(Exception):
    """Base class for errors raised by the check-in tracker."""


class ConflictError(TrackerError):
    pass


class NotFoundError(TrackerError):
    pass


class ValidationError(TrackerError):
    pass


class StoreError(TrackerError):
    """The session store could not complete an operation."""
