import pytest

from conftest import DAY0, make_event, make_item
from idp_builder.aggregator.event_data import LEAD_LABELS, META_LABELS, EventAggregator
from idp_builder.aggregator.provenance import ProvenanceRegistry
from idp_builder.config import MISSING_DOUBLE
from idp_builder.exceptions import EventAggregationError
from idp_builder.records.models import Cruise
from idp_builder.settings.models import ArenaSettings
from idp_builder.stations.station import Station
from idp_builder.tables.cruises import CruisesTable
from idp_builder.utils.formatting import iso_date
from idp_builder.utils.geo import pressure_from_depth

FE_BOTTLE = "FE_D_CONC_BOTTLE::1001"
FE_PUMP = "FE_D_CONC_PUMP::1002"
ZN_BOTTLE = "ZN_D_CONC_BOTTLE::2001"


@pytest.fixture
def station():
    return Station("JC150", [make_event(1, label="S1", lat=40.0)])


def aggregate(station, items, **kwargs):
    return EventAggregator(station, 0, items, **kwargs)


def test_sample_index_follows_bottles_and_cells(station):
    items = [
        make_item(1, 10, FE_BOTTLE, 0.5),
        make_item(1, 11, FE_BOTTLE, 0.6, cell="a"),
        make_item(1, 11, FE_BOTTLE, 0.7, cell="b"),
        make_item(1, 12, FE_BOTTLE, 0.8),
    ]
    agg = aggregate(station, items)
    assert agg.bottle_numbers == [10, 11, 12]
    assert agg.first_sample_id(10) == 0
    assert agg.first_sample_id(11) == 1
    assert agg.sample_count(11) == 2
    assert agg.first_sample_id(12) == 3
    assert agg.sample_id(11, "b") == 2
    assert agg.sample_id(11, "z") == -1
    assert agg.sample_id(99) == -1
    assert agg.n_samples == 4
    assert [s.index for s in agg.samples()] == [0, 1, 2, 3]


def test_slot_ids_start_after_lead_slots(station):
    items = [make_item(1, 10, ZN_BOTTLE, 1.0), make_item(1, 10, FE_BOTTLE, 0.5)]
    agg = aggregate(station, items, unified=False)
    assert agg.data_id_from_extended_name(ZN_BOTTLE) == 0
    assert agg.data_id_from_extended_name(FE_BOTTLE) == 1
    assert agg.data_id_from_extended_name("CD_D_CONC_BOTTLE::9") == -1
    assert agg.quantities == [ZN_BOTTLE, FE_BOTTLE]


def test_single_contribution_passes_through(station):
    agg = aggregate(station, [make_item(1, 10, FE_BOTTLE, 0.52, flag="3", error=0.04)])
    rv = agg.get_values("FE_D_CONC", 0)
    assert (rv.value, rv.error, rv.flag) == (0.52, 0.04, "3")


def test_several_contributions_are_reconciled(station):
    items = [
        make_item(1, 10, FE_BOTTLE, 0.5, flag="1"),
        make_item(1, 10, FE_PUMP, 0.7, flag="3"),
    ]
    agg = aggregate(station, items)
    assert agg.quantities == ["FE_D_CONC"]
    rv = agg.get_values("FE_D_CONC", 0)
    assert rv.value == pytest.approx(0.6)
    assert rv.error == MISSING_DOUBLE
    assert rv.flag == "3"


def test_without_contributions_value_is_missing(station):
    items = [make_item(1, 10, FE_BOTTLE, 0.5), make_item(1, 11, ZN_BOTTLE, 1.0)]
    agg = aggregate(station, items)
    rv = agg.get_values("FE_D_CONC", 1)
    assert rv.value == MISSING_DOUBLE
    assert rv.error == MISSING_DOUBLE
    assert rv.flag == "9"


def test_no_data_flag_does_not_contribute(station):
    items = [make_item(1, 10, FE_BOTTLE, 0.5, flag="9"), make_item(1, 10, FE_PUMP, 0.7, flag="2")]
    rv = aggregate(station, items).get_values("FE_D_CONC", 0)
    assert (rv.value, rv.flag) == (0.7, "2")


def test_unknown_quantity_is_diagnosed(station):
    agg = aggregate(station, [make_item(1, 10, FE_BOTTLE, 0.5)])
    rv = agg.get_values("CD_D_CONC", 0)
    assert rv.flag == "9"
    assert agg.diagnostics


def test_missing_pressure_is_derived_from_depth(station):
    items = [make_item(1, 10, FE_BOTTLE, 0.5, depth=1000.0, pressure=MISSING_DOUBLE)]
    agg = aggregate(station, items)
    assert agg.depth(0) == 1000.0
    assert agg.pressure(0) == pytest.approx(pressure_from_depth(1000.0, 40.0))


def test_items_of_other_events_are_ignored(station):
    agg = aggregate(station, [make_item(1, 10, FE_BOTTLE, 0.5), make_item(2, 10, ZN_BOTTLE, 1.0)])
    assert agg.quantities == ["FE_D_CONC"]
    assert len(agg.diagnostics) == 1


def test_provenance_note_is_emitted_once(station):
    written = []
    registry = ProvenanceRegistry(sink=written.append)
    items = [
        make_item(1, 10, FE_BOTTLE, 0.5),
        make_item(1, 10, FE_PUMP, 0.7),
        make_item(1, 11, FE_BOTTLE, 0.4),
        make_item(1, 11, FE_PUMP, 0.6),
    ]
    agg = aggregate(station, items, provenance=registry)
    first = agg.get_values("FE_D_CONC", 0)
    second = agg.get_values("FE_D_CONC", 1)
    assert first.note_ref == second.note_ref == "lf:infos/JC150_FE_D_CONC_1001-1002.html"
    assert len(written) == 1
    assert written[0].contributors == [FE_BOTTLE, FE_PUMP]


def test_arena_failure_is_fatal_for_event(station):
    items = [make_item(1, b, FE_BOTTLE, 0.5) for b in range(10)]
    with pytest.raises(EventAggregationError):
        aggregate(station, items, arena_settings=ArenaSettings(max_bytes=64))


def test_data_lines(station):
    items = [
        make_item(1, 10, FE_BOTTLE, 0.5, geotraces_sample_id="G1"),
        make_item(1, 11, FE_BOTTLE, 0.6),
    ]
    agg = aggregate(station, items)
    lines = agg.data_lines(["FE_D_CONC", "CD_D_CONC"])
    assert len(lines) == 2
    first = lines[0].split("\t")
    assert first[0] == "unknown_cruise"
    assert first[1] == "S1"
    assert first[META_LABELS.index("Operator's Cruise Name")] == "JC150"
    assert "G1" in first
    assert "0.5" in first
    assert first[-1] == ""
    assert first[-2] == "9"
    assert lines[1].startswith("\t" * len(META_LABELS))
    assert len(lines[1].split("\t")) == len(first)
    assert len(agg.header_line(["FE_D_CONC", "CD_D_CONC"]).split("\t")) == len(first)


def test_notes_follow_contributors_across_events():
    written = []
    registry = ProvenanceRegistry(sink=written.append)
    station = Station("JC150", [make_event(1, label="S1"), make_event(2, label="S1")])
    first = EventAggregator(
        station,
        0,
        [make_item(1, 10, FE_BOTTLE, 0.5), make_item(1, 11, FE_PUMP, 0.7)],
        provenance=registry,
    )
    second = EventAggregator(
        station,
        1,
        [make_item(2, 20, FE_PUMP, 0.8), make_item(2, 21, FE_BOTTLE, 0.4)],
        provenance=registry,
    )
    first.get_values("FE_D_CONC", 0)
    pump_only = second.get_values("FE_D_CONC", 0)
    bottle_only = second.get_values("FE_D_CONC", 1)
    notes = {note.reference: note for note in written}

    assert pump_only.value == 0.8
    assert notes[pump_only.note_ref].contributors == [FE_PUMP]
    assert pump_only.note_ref == first.get_values("FE_D_CONC", 1).note_ref

    assert notes[bottle_only.note_ref].contributors == [FE_BOTTLE]
    assert len(registry) == 2


def test_unknown_flags_are_skipped(station):
    bad = make_item(1, 10, FE_PUMP, 0.7).model_copy(update={"flag": "x"})
    agg = aggregate(station, [make_item(1, 10, FE_BOTTLE, 0.5, flag="1"), bad])
    assert len(agg.data_lines(["FE_D_CONC"])) == 1
    rv = agg.get_values("FE_D_CONC", 0)
    assert (rv.value, rv.flag) == (0.5, "1")
    assert any("'x'" in d for d in agg.diagnostics)


def test_station_and_cruise_fields():
    events = [
        make_event(1, label="S1", cast_identifier="CTD001", sampling_device="CTD", bottom_depth=4100.0),
        make_event(2, label="S1", t=DAY0 + 0.5, cast_identifier="CTD002", sampling_device="CTD"),
    ]
    cruises = CruisesTable(
        cruises=[
            Cruise(
                cruise="JC150",
                ship_name="RRS James Cook",
                chief_scientist="Ann Smith",
                start_date="2014-12-20T08:00:00",
                end_date="2015-01-30T12:00:00",
                aliases="JC150a",
            )
        ]
    )
    agg = EventAggregator(
        Station("JC150", events),
        1,
        [make_item(2, 10, FE_BOTTLE, 0.5)],
        cruises=cruises,
        sections=lambda cruise: "GA13",
    )

    meta = dict(zip(META_LABELS, agg.meta_part().split("\t")))
    assert meta["Cruise"] == "GA13"
    assert meta["Station"] == "S1"
    assert meta["yyyy-mm-ddThh:mm:ss.sss"] == iso_date(DAY0 + 0.25)
    assert meta["Bot. Depth [m]"] == "4100"
    assert meta["Sampling Devices"] == "CTD"
    assert meta["Cast Identifiers"] == "CTD001 | CTD002"
    assert meta["Event IDs"] == "1 | 2"
    assert meta["Station Duration [hours]"] == "12"
    assert meta["Operator's Cruise Name"] == "JC150"
    assert meta["Ship Name"] == "RRS James Cook"
    assert meta["Cruise Period"] == "2014-12-20 - 2015-01-30"
    assert meta["Chief Scientist"] == "Ann Smith"
    assert meta["Cruise Aliases"] == "JC150a"
    assert meta["BODC Cruise Number"] == ""

    lead = dict(zip(LEAD_LABELS, agg.lead_part(0).split("\t")))
    assert lead["Cast Identifier"] == "CTD002"
    assert lead["Sampling Device"] == "CTD"
    assert lead["BODC Bottle Number"] == "10"
    assert lead["BODC Event Number"] == "2"


def test_unknown_cruise_leaves_cruise_fields_empty(station):
    agg = aggregate(station, [make_item(1, 10, FE_BOTTLE, 0.5)])
    meta = dict(zip(META_LABELS, agg.meta_part().split("\t")))
    assert meta["Cruise"] == "unknown_cruise"
    assert meta["Operator's Cruise Name"] == "JC150"
    assert meta["Ship Name"] == ""
