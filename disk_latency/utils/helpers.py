# disk_latency/utils/helpers.py - Helper functions
"""
General utility and helper functions.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
import logging


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S.%f'
DISPLAY_FORMAT = '%Y-%m-%d %H:%M'

Number = Union[int, float, Decimal]


def round_half_up(value: Number, places: int = 0) -> Union[int, float]:
    """
    Round half away from zero (2.5 -> 3), unlike the built-in round().

    Args:
        value: Number to round
        places: Decimal places to keep

    Returns:
        int when places is 0, otherwise float
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)

    if places == 0:
        return int(rounded)
    return float(rounded)


def safe_ratio(numerator: Number, denominator: Number, places: int = 0) -> Union[int, float]:
    """
    Divide and round, returning 0 when the denominator is 0.

    Args:
        numerator: Dividend
        denominator: Divisor
        places: Decimal places to keep

    Returns:
        Rounded quotient, or 0 for a zero denominator
    """
    if not denominator:
        return 0
    return round_half_up(Decimal(numerator) / Decimal(denominator), places)


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert an aware datetime to naive local time.

    Naive local time is what datetime.now() returns and what the store
    holds; naive values are taken to be on that basis already.

    Args:
        value: datetime or None

    Returns:
        Naive datetime or None
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    """
    Serialize a timestamp so that string order equals time order.

    Args:
        value: Timestamp to serialize; aware values are converted to local time

    Returns:
        Fixed-width timestamp string
    """
    return to_local_naive(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a timestamp string produced by format_timestamp or ISO 8601.

    Args:
        value: Timestamp string, datetime or None

    Returns:
        Naive local datetime or None
    """
    if value is None or isinstance(value, datetime):
        return to_local_naive(value)

    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return to_local_naive(datetime.fromisoformat(value))


def format_display_time(value: Optional[datetime]) -> str:
    """Minute-resolution timestamp for tables"""
    return value.strftime(DISPLAY_FORMAT) if value else '-'
