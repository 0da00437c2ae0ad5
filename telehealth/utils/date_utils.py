# telehealth/utils/date_utils.py

import re
from datetime import datetime, date, time, tzinfo
from typing import Union

HHMM_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_date(date_string: str, format_string: str = '%Y-%m-%d') -> date:
    """Parse date string to date object"""
    return datetime.strptime(date_string, format_string).date()


def parse_hhmm(value: str) -> time:
    """Parse a 24h ``HH:MM`` string"""
    return datetime.strptime(value, '%H:%M').time()


def is_valid_hhmm(value: str) -> bool:
    """Zero-padded 24h ``HH:MM``"""
    return isinstance(value, str) and re.match(HHMM_PATTERN, value) is not None


def weekday_name(day: Union[str, date]) -> str:
    if isinstance(day, str):
        day = parse_date(day)
    return WEEKDAYS[day.weekday()]


def combine(day: Union[str, date], hhmm: str, tz: tzinfo) -> datetime:
    """
    Scheduled instant of a slot: the calendar date plus the slot's time of
    day, in the clinic timezone.
    """
    if isinstance(day, str):
        day = parse_date(day)
    return datetime.combine(day, parse_hhmm(hhmm), tzinfo=tz)


def is_valid_date(date_string: str, format_string: str = '%Y-%m-%d') -> bool:
    """Check if date string is valid"""
    try:
        datetime.strptime(date_string, format_string)
        return True
    except ValueError:
        return False
