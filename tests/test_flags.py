import pytest
from pydantic import ValidationError

from idp_builder.exceptions import UnknownQualityFlagError
from idp_builder.settings.models import QualityFlagTables
from idp_builder.stats.flags import QualityFlagCombiner


@pytest.fixture
def combiner():
    return QualityFlagCombiner(QualityFlagTables())


@pytest.mark.parametrize(
    "flags, expected",
    [
        (["0", "4"], "4"),
        (["9", "9"], "9"),
        ([], "9"),
        # '0' ranks as severity '1', which maps back to '0'
        (["9", "0"], "0"),
        (["1", "2"], "1"),
        (["1", "3"], "3"),
        (["3", "Q", "1"], "3"),
        (["A", "1"], "0"),
        (["B", "4", "9"], "4"),
    ],
)
def test_poorest_flag(combiner, flags, expected):
    assert combiner(flags) == expected


def test_result_is_never_no_data_with_reported_flags(combiner):
    for code in "012345678ABQ":
        assert combiner(["9", code]) != "9"


def test_unknown_flag_raises(combiner):
    with pytest.raises(UnknownQualityFlagError):
        combiner.combine(["1", "Z"])


def test_tables_are_passed_in():
    tables = QualityFlagTables(
        severity_by_code={"G": "0", "B": "8"},
        code_by_severity={"0": "G", "1": "G", "4": "B", "8": "B"},
    )
    combiner = QualityFlagCombiner(tables)
    assert combiner(["G", "B"]) == "B"
    assert combiner(["G"]) == "G"


def test_tables_validate_severities():
    with pytest.raises(ValidationError):
        QualityFlagTables(severity_by_code={"1": "5"})
