"""Decoding of alert dates stored as YYJJJ raster values.

Alert rasters store dates as ``year_offset * 1000 + day_of_year`` where
``year_offset`` counts years since an epoch year (2000 for RADD alerts), so
24001 is the first day of 2024 and 24366 the last day of that leap year.
"""

import calendar
import math
from datetime import MAXYEAR, MINYEAR, date, timedelta
from typing import Optional, Union

from alert_dashboard.core.config import EPOCH_YEAR
from alert_dashboard.core.errors import NoDataError


def decode_alert_date(raw: Optional[Union[int, float]], epoch_year: int = EPOCH_YEAR) -> date:
    """
    Decode a YYJJJ raster value to a calendar date.

    Args:
        raw: Sampled raster value (masked pixels arrive as None or 0)
        epoch_year: Year that year offset 0 refers to

    Returns:
        Decoded date

    Raises:
        NoDataError: If the value is missing, masked or not a valid day
    """
    if raw is None:
        raise NoDataError("No value at this point")

    if isinstance(raw, float):
        if math.isnan(raw) or not raw.is_integer():
            raise NoDataError(f"Not an encoded date: {raw}")
        raw = int(raw)

    if raw <= 0:
        raise NoDataError("No alert at this point")

    year = epoch_year + raw // 1000
    day_of_year = raw % 1000
    if not MINYEAR <= year <= MAXYEAR:
        raise NoDataError(f"Not an encoded date: {raw}")

    days_in_year = 366 if calendar.isleap(year) else 365

    if not 1 <= day_of_year <= days_in_year:
        raise NoDataError(f"Day of year {day_of_year} out of range for {year}")

    # Day 1 is January 1st
    return date(year, 1, 1) + timedelta(days=day_of_year - 1)


def encode_alert_date(value: date, epoch_year: int = EPOCH_YEAR) -> int:
    """
    Encode a date as a YYJJJ raster value.

    Args:
        value: Date to encode, not earlier than the epoch year
        epoch_year: Year that year offset 0 refers to

    Returns:
        Encoded value
    """
    if value.year < epoch_year:
        raise ValueError(f"Cannot encode {value} before epoch year {epoch_year}")
    return (value.year - epoch_year) * 1000 + value.timetuple().tm_yday


def format_alert_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")
