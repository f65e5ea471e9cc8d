"""Exceptions raised by the takeoff engine."""


class TakeoffError(Exception):
    """Base class for all takeoff engine errors."""


class InvalidInputError(TakeoffError, ValueError):
    """User-entered value was rejected (e.g. calibration length not a positive number)."""


class InvalidShapeError(TakeoffError, ValueError):
    """Shape violates the minimum point count or references an unknown material."""


class LastSheetError(TakeoffError, RuntimeError):
    """Attempted to delete the only remaining sheet of a project."""
