from conftest import DAY0, KM_PER_DEGREE, make_event
from idp_builder.stations.collator import CollationState, StationCollator
from idp_builder.tables.events import EventsTable


def collate(events, distance_tolerance=15.0, time_tolerance=5.0):
    collator = StationCollator(EventsTable(events=events), distance_tolerance, time_tolerance)
    stations = collator.collate([e.event_id for e in events])
    return collator, stations


def test_identical_events_form_one_station():
    _, stations = collate([make_event(1), make_event(2)])
    assert len(stations) == 1
    assert stations[0].event_ids == [1, 2]


def test_event_beyond_distance_tolerance_stays_apart():
    far = make_event(3, lat=30.0 + 20.0 / KM_PER_DEGREE)
    _, stations = collate([make_event(1), make_event(2), far])
    assert len(stations) == 2
    assert sorted(len(s) for s in stations) == [1, 2]


def test_event_beyond_time_tolerance_stays_apart():
    _, stations = collate([make_event(1), make_event(2, t=DAY0 + 6.0)])
    assert len(stations) == 2


def test_label_pass_groups_by_cruise_and_label():
    events = [
        make_event(1, label="S1"),
        make_event(2, label="S2", lat=10.0),
        make_event(3, label="S1", lat=5.0),
        make_event(4, cruise="PS100", label="S1"),
    ]
    _, stations = collate(events)
    assert [(s.cruise, s.station_label(), s.event_ids) for s in stations] == [
        ("JC150", "S1", [1, 3]),
        ("JC150", "S2", [2]),
        ("PS100", "S1", [4]),
    ]


def test_nearby_unlabeled_cluster_merges_into_labeled_station():
    events = [
        make_event(1, label="S1"),
        make_event(2, lat=30.0 + 5.0 / KM_PER_DEGREE, t=DAY0 + 0.5),
    ]
    collator, stations = collate(events)
    assert len(stations) == 1
    assert stations[0].station_label() == "S1"
    assert stations[0].event_ids == [1, 2]
    assert collator.states == {1: CollationState.FINALIZED, 2: CollationState.FINALIZED}


def test_merge_requires_same_cruise():
    events = [make_event(1, label="S1"), make_event(2, cruise="PS100")]
    _, stations = collate(events)
    assert len(stations) == 2
    assert stations[1].cruise == "PS100"
    assert stations[1].station_label() == "(1)"


def test_auto_labels_follow_mean_time():
    events = [
        make_event(1, lat=10.0, t=DAY0 + 20.0),
        make_event(2, lat=12.0, t=DAY0),
        make_event(3, lat=14.0, t=DAY0 + 10.0),
    ]
    _, stations = collate(events)
    labels = {s.event_ids[0]: s.station_label() for s in stations}
    assert labels == {2: "(1)", 3: "(2)", 1: "(3)"}
    assert [s.station_label() for s in stations] == ["(1)", "(2)", "(3)"]


def test_auto_labels_with_equal_mean_times_are_all_kept():
    events = [make_event(i, lat=10.0 + 2 * i) for i in range(1, 4)]
    _, stations = collate(events)
    assert sorted(s.station_label() for s in stations) == ["(1)", "(2)", "(3)"]


def test_labeled_stations_come_first():
    events = [make_event(1, lat=-40.0), make_event(2, label="S9")]
    _, stations = collate(events)
    assert [s.station_label() for s in stations] == ["S9", "(1)"]


def test_every_station_has_one_cruise():
    events = [
        make_event(1),
        make_event(2, cruise="PS100"),
        make_event(3, cruise="PS100", label="A"),
        make_event(4, label="A"),
    ]
    _, stations = collate(events)
    for station in stations:
        assert {e.cruise for e in station} == {station.cruise}
    assert sum(len(s) for s in stations) == 4


def test_unknown_events_are_skipped():
    collator = StationCollator(EventsTable(events=[make_event(1)]), 15.0, 5.0)
    stations = collator.collate([1, 99])
    assert stations.event_count() == 1
    assert any("99" in d for d in collator.diagnostics)


def test_proximity_pass_states():
    collator = StationCollator(EventsTable(events=[make_event(1), make_event(2)]), 15.0, 5.0)
    clusters = collator.collate_by_proximity([make_event(1), make_event(2)])
    assert len(clusters) == 1
    assert collator.states[1] == CollationState.PROXIMITY_CLUSTER
