"""
Named date windows accepted by the event listing.
"""

from datetime import date, timedelta
from typing import Optional, Tuple

DateWindow = Tuple[date, Optional[date]]


class InvalidDateFilterError(ValueError):
    """Raised for a date filter that is neither a known window nor an ISO date."""
    pass


def resolve_date_window(value: Optional[str], today: date) -> Optional[DateWindow]:
    """
    Translate a date filter into an inclusive (start, end) window.

    Args:
        value: Filter value from the query string
        today: Reference date

    Returns:
        (start, end) with end None for open-ended windows, or None when
        the filter should not restrict anything

    Raises:
        InvalidDateFilterError: Unknown filter value
    """
    if value is None:
        return None

    value = value.strip().lower()
    if value in ("", "all-time"):
        return None

    if value == "today":
        return today, today

    if value == "tomorrow":
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow

    if value == "this-weekend":
        sunday = today + timedelta(days=(6 - today.weekday()) % 7)
        if today.weekday() == 6:
            return sunday, sunday
        saturday = today + timedelta(days=(5 - today.weekday()) % 7)
        return saturday, sunday

    if value == "next-week":
        monday = today + timedelta(days=7 - today.weekday())
        return monday, monday + timedelta(days=6)

    try:
        return date.fromisoformat(value), None
    except ValueError:
        raise InvalidDateFilterError(f"Unsupported date filter: {value}")


def describe_date_window(value: Optional[str], today: date) -> Optional[str]:
    """
    Text form of the window a filter resolves to on ``today``.
    Relative filters such as ``today`` map to different text on different days.

    Raises:
        InvalidDateFilterError: Unknown filter value
    """
    window = resolve_date_window(value, today)
    if window is None:
        return None
    start, end = window
    return f"{start.isoformat()}..{end.isoformat() if end else ''}"
