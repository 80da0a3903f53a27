import datetime

from idp_builder.config import MISSING_DOUBLE
from idp_builder.utils.formatting import (
    formatted_number,
    gregorian_day,
    iso_date,
    parse_event_time,
    parse_number,
)


def test_formatted_number():
    assert formatted_number(1.5, 3) == "1.500"
    assert formatted_number(1.5, 3, True) == "1.5"
    assert formatted_number(2.0, 3, True) == "2"
    assert formatted_number(-3.14159, 2) == "-3.14"
    assert formatted_number(0.0, 2) == "0.00"


def test_formatted_number_extremes_use_exponent():
    assert formatted_number(1234567.5, 2) == "1.2346e+06"
    assert formatted_number(0.0000012, 2) == "1.2e-06"


def test_missing_renders_empty():
    assert formatted_number(MISSING_DOUBLE, 3) == ""
    assert formatted_number(MISSING_DOUBLE, 0, clear_missing=False) == "-10000000000"


def test_gregorian_day_origin():
    assert gregorian_day(datetime.datetime(1, 1, 1)) == 1.0


def test_parse_event_time():
    expected = datetime.date(2014, 12, 25).toordinal() + 0.5
    assert parse_event_time("25/12/2014 12:00") == expected
    assert parse_event_time("") == MISSING_DOUBLE
    assert parse_event_time("not a date") == MISSING_DOUBLE


def test_iso_date():
    assert iso_date(parse_event_time("25/12/2014 13:45")) == "2014-12-25T13:45:00"
    assert iso_date(MISSING_DOUBLE) == ""


def test_parse_number():
    assert parse_number("12.5") == 12.5
    assert parse_number("") == MISSING_DOUBLE
    assert parse_number("nan") == MISSING_DOUBLE
