"""
Time utilities for consistent timestamp handling across the system.
"""
from datetime import datetime, timezone
from typing import Optional
import time


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.
    
    Returns:
        datetime: Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def format_iso(dt: Optional[datetime] = None) -> str:
    """
    Format datetime as ISO 8601 string.
    
    Args:
        dt: datetime to format, defaults to current UTC time
    
    Returns:
        str: ISO 8601 formatted string (e.g., "2025-11-12T10:30:00+00:00")
    """
    if dt is None:
        dt = utc_now()
    return dt.isoformat()


def elapsed_ms(start: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return (time.perf_counter() - start) * 1000
