"""
Conversion between minutes-from-midnight and "HH:MM" time-of-day labels.
"""

import re

from .exceptions import ConfigurationError

_TIME_LABEL = re.compile(r'^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$')


def time_to_minutes(label: str) -> float:
    """
    Parse a time-of-day label into minutes from midnight.

    Parameters:
    -----------
    label : str
        Time in 'HH:MM' (or 'HH:MM:SS') format.

    Returns:
    --------
    float
        Minutes from midnight.
    """
    match = _TIME_LABEL.match(str(label))
    if not match:
        raise ConfigurationError(f"Malformed time label: {label!r}")

    hours, minutes, seconds = match.groups()
    hours, minutes = int(hours), int(minutes)
    seconds = int(seconds) if seconds else 0
    if minutes >= 60 or seconds >= 60:
        raise ConfigurationError(f"Malformed time label: {label!r}")

    return hours * 60 + minutes + seconds / 60.0


def minutes_to_time(minutes: float) -> str:
    """Format minutes from midnight as 'HH:MM', flooring hours and minutes."""
    total = int(minutes // 1)
    return f"{total // 60:02d}:{total % 60:02d}"
