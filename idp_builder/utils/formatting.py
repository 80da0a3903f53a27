import datetime
import math
from typing import Optional

from dateutil import parser

from idp_builder.config import MISSING_DOUBLE

EVENT_TIME_FORMATS = ("%d/%m/%Y %H:%M", "%d/%m/%Y %H:%M:%S", "%d/%m/%Y")


def chop_trailing_zeros(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0")


def formatted_number(
    value: float,
    dec_count: int,
    chop_zeros: bool = False,
    clear_missing: bool = True,
) -> str:
    """
    Fixed point text for ``value`` with ``dec_count`` decimals.

    Very small or very large magnitudes switch to exponent notation with
    ``dec_count + 3`` significant digits. Missing values render empty
    unless ``clear_missing`` is False.
    """
    if value == MISSING_DOUBLE and clear_missing:
        return ""
    a = abs(value)
    if chop_zeros and a - math.floor(a) < 1e-8:
        dec_count = 0
    if dec_count > 0 and a != 0.0 and (a < 1.0e-5 or a > 1.0e6):
        text = f"{value:.{dec_count + 3}g}"
    else:
        text = f"{value:.{dec_count}f}"
    return chop_trailing_zeros(text) if chop_zeros else text


def gregorian_day(moment: datetime.datetime) -> float:
    """Decimal days since 0001-01-01, which is day 1."""
    seconds = moment.hour * 3600 + moment.minute * 60 + moment.second
    return moment.toordinal() + seconds / 86400.0


def parse_event_time(text: str) -> float:
    """
    Gregorian day of an event time stamp such as ``"25/12/2014 13:45"``.

    Returns the missing sentinel for empty or unreadable text.
    """
    text = text.strip()
    if not text:
        return MISSING_DOUBLE
    for fmt in EVENT_TIME_FORMATS:
        try:
            return gregorian_day(datetime.datetime.strptime(text, fmt))
        except ValueError:
            continue
    try:
        return gregorian_day(parser.parse(text, dayfirst=True))
    except (ValueError, OverflowError):
        return MISSING_DOUBLE


def moment_from_gregorian_day(day: float) -> Optional[datetime.datetime]:
    if day == MISSING_DOUBLE:
        return None
    ordinal = int(math.floor(day))
    seconds = int(round((day - ordinal) * 86400.0))
    return datetime.datetime.fromordinal(ordinal) + datetime.timedelta(seconds=seconds)


def iso_date(day: float) -> str:
    """ISO 8601 text of a Gregorian day, empty when missing."""
    moment = moment_from_gregorian_day(day)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") if moment else ""


def parse_number(text: str) -> float:
    """Float value of ``text``, or the missing sentinel if it is not numeric."""
    try:
        value = float(text)
    except (TypeError, ValueError):
        return MISSING_DOUBLE
    return MISSING_DOUBLE if math.isnan(value) else value
