"""
Logging utilities for EventHub.
Provides standardized logging configuration and helpers.
"""

import logging
import sys
from typing import Optional


def setup_logging(level: str = "INFO", service_name: str = "eventhub") -> logging.Logger:
    """
    Setup standardized logging for the service.

    The handler is installed on the root logger so that every module-level
    ``logging.getLogger(__name__)`` logger inherits it.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service for log identification

    Returns:
        The service logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    formatter = logging.Formatter(
        f'[%(asctime)s] {service_name.upper()}: %(levelname)s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return logging.getLogger(service_name)


def log_attendance_change(
    action: str,
    event_id: int,
    user_id: int,
    attendee_count: Optional[int] = None
) -> None:
    """
    Log an attendance ledger mutation with a standard format.

    Args:
        action: "join" or "leave"
        event_id: Event the ledger entry belongs to
        user_id: Attending user
        attendee_count: Counter value after the change, if known
    """
    logger = logging.getLogger("eventhub.attendance")
    log_data = {
        "action": action,
        "event_id": event_id,
        "user_id": user_id,
    }

    if attendee_count is not None:
        log_data["attendee_count"] = attendee_count

    logger.info(f"Attendance changed: {log_data}")
