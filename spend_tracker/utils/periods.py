"""Month arithmetic for report and sync periods"""

import re
from datetime import datetime, date
from typing import Tuple, Union

import pandas as pd

from .errors import ValidationError

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
MIN_YEAR = 1900
MAX_YEAR = 2200  # pandas timestamps overflow past 2262


def parse_month(month: str) -> pd.Period:
    """
    Parse a YYYY-MM month identifier

    Raises:
        ValidationError: If the string is malformed or the month number is invalid
    """
    if not isinstance(month, str):
        raise ValidationError(f"Month must be a YYYY-MM string, got {month!r}")

    match = MONTH_PATTERN.match(month.strip())
    if not match:
        raise ValidationError(f"Month must be in YYYY-MM format, got {month!r}")

    year, month_number = int(match.group(1)), int(match.group(2))
    return month_period(year, month_number)


def month_period(year: int, month: int) -> pd.Period:
    """Build a monthly period from a year and a 1-based month number"""
    if isinstance(year, bool) or isinstance(month, bool):
        raise ValidationError("Year and month must be integers")
    if not isinstance(year, int) or not isinstance(month, int):
        raise ValidationError(f"Year and month must be integers, got {year!r}-{month!r}")
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Year out of range: {year}")
    return pd.Period(year=year, month=month, freq="M")


def month_of(value: Union[datetime, date]) -> str:
    """YYYY-MM bucket of a date"""
    return f"{value.year:04d}-{value.month:02d}"


def month_ordinal(month: str) -> int:
    """1-based position of a month within its calendar year (January=1)"""
    return parse_month(month).month


def prior_month(month: str) -> str:
    """Month immediately before the given one (crosses year boundaries)"""
    return str(parse_month(month) - 1)


def month_range(month: str) -> Tuple[datetime, datetime]:
    """First and last instant (microsecond precision) of a month"""
    period = parse_month(month)
    return period.start_time.to_pydatetime(), _last_instant(period)


def ytd_range(month: str) -> Tuple[datetime, datetime]:
    """January 1st of the month's year through the last instant of the month"""
    period = parse_month(month)
    year_start = pd.Period(year=period.year, month=1, freq="M").start_time
    return year_start.to_pydatetime(), _last_instant(period)


def _last_instant(period: pd.Period) -> datetime:
    return ((period + 1).start_time - pd.Timedelta(microseconds=1)).to_pydatetime()
