"""
Exception and warning types raised by the schedule optimizer.
"""


class ScheduleOptimizerError(Exception):
    """Base class for all optimizer errors."""


class ConfigurationError(ScheduleOptimizerError, ValueError):
    """Invalid configuration or malformed input, reported before a run starts."""


class InternalInvariantError(ScheduleOptimizerError, RuntimeError):
    """
    Raised when the optimizer's own bookkeeping is inconsistent.

    This indicates a logic defect, never a data problem.
    """


class EmptyInputWarning(UserWarning):
    """Empty demand or route input; the run continues with degenerate results."""
