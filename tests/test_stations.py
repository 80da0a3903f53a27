import pytest

from conftest import make_event
from idp_builder.exceptions import StationIntegrityError
from idp_builder.stations.station import Station, StationList, station_key
from idp_builder.utils.validate import check_station_cruises, check_unique_events


def test_station_rejects_foreign_and_repeated_events():
    station = Station("JC150", [make_event(1, label="S1")])
    assert not station.add_event(make_event(2, cruise="PS100"))
    assert not station.add_event(make_event(1))
    assert station.add_event(make_event(3, label="S1b"))
    assert station.event_ids == [1, 3]
    assert station.station_label() == "S1 | S1b"
    assert station.key() == station_key("JC150", "S1 | S1b")


def test_merged_with_leaves_inputs_untouched():
    a = Station("JC150", [make_event(1, label="S1")])
    b = Station("JC150", [make_event(2)])
    merged = a.merged_with(b)
    assert merged.event_ids == [1, 2]
    assert a.event_ids == [1]


def test_spreadsheet_records():
    stations = StationList(
        [
            Station("JC150", [make_event(1, label="S1"), make_event(2, label="S1")]),
            Station("JC150", [make_event(3, label="S2", lat=31.0)]),
        ]
    )
    records = stations.spreadsheet_records()
    assert len(records) == 4
    assert records[0].startswith("Cruise\tStation\tEvent")
    assert records[3].split("\t")[:3] == ["JC150", "S2", "3"]
    assert all(len(r.split("\t")) == len(records[0].split("\t")) for r in records)


def test_replace_by_index():
    stations = StationList([Station("JC150", [make_event(1)])])
    stations.replace(0, Station("JC150", [make_event(2)]))
    assert stations[0].event_ids == [2]
    assert stations.cruises() == ["JC150"]


def test_validation_detects_repeated_events():
    stations = StationList(
        [Station("JC150", [make_event(1, label="A")]), Station("JC150", [make_event(1, label="B")])]
    )
    check_station_cruises(stations)
    with pytest.raises(StationIntegrityError):
        check_unique_events(stations)
