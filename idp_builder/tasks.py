from typing import Callable, Dict, List, Optional, Tuple

from prefect import get_run_logger, task

from idp_builder.aggregator.event_data import EventAggregator
from idp_builder.aggregator.provenance import ProvenanceNote, ProvenanceRegistry
from idp_builder.exceptions import EventAggregationError
from idp_builder.settings.main import BuildSettings
from idp_builder.stations.collator import StationCollator
from idp_builder.stations.station import StationList
from idp_builder.stats.flags import QualityFlagCombiner
from idp_builder.tables.cruises import CruisesTable
from idp_builder.tables.data_items import DataItemList, DataItemsTable
from idp_builder.tables.datasets import DatasetApprovals
from idp_builder.tables.events import EventsTable
from idp_builder.tables.params import quantity_identity
from idp_builder.utils.storage import join_path, write_records
from idp_builder.utils.validate import check_station_cruises, check_unique_events


@task
def load_tables(
    settings: BuildSettings,
) -> Tuple[EventsTable, CruisesTable, DatasetApprovals, DataItemsTable]:
    logger = get_run_logger()
    paths = settings.paths
    logger.info(f"=== Loading source tables from {paths.input_dir} ===")

    events = EventsTable.from_csv(join_path(paths.input_dir, paths.events_file))
    cruises = CruisesTable.from_csv(join_path(paths.input_dir, paths.cruises_file))
    approvals = DatasetApprovals.from_csv(
        join_path(paths.input_dir, paths.datasets_file),
        join_path(paths.input_dir, paths.removed_datasets_file),
    )
    data_items = DataItemsTable.from_csv(
        join_path(paths.input_dir, paths.data_items_file),
        approvals,
        events,
        QualityFlagCombiner(settings.quality_flags),
    )
    aggregated = data_items.aggregate_sub_samples()
    logger.info(
        f"{len(events)} events of {len(cruises)} cruises, "
        f"{len(data_items.items)} data items accepted, {aggregated} sub-sample groups aggregated"
    )
    return events, cruises, approvals, data_items


@task
def collate_stations(
    events: EventsTable,
    data_list: DataItemList,
    settings: BuildSettings,
) -> Tuple[StationList, List[str]]:
    logger = get_run_logger()
    data_type = data_list.data_type
    time_tolerance = settings.collation.time_tolerance_for(data_type.value)
    logger.info(
        f"Collating {len(data_list.event_ids)} {data_type.value} events "
        f"({settings.collation.distance_tolerance} km, {time_tolerance} days)"
    )

    collator = StationCollator(events, settings.collation.distance_tolerance, time_tolerance)
    stations = collator.collate(data_list.event_ids)
    check_station_cruises(stations)
    check_unique_events(stations)
    return stations, collator.diagnostics


@task
def aggregate_stations(
    stations: StationList,
    data_list: DataItemList,
    registry: ProvenanceRegistry,
    settings: BuildSettings,
    unified: bool = True,
    cruises: Optional[CruisesTable] = None,
    sections: Optional[Callable[[str], str]] = None,
) -> Tuple[List[str], List[str]]:
    """
    Data lines of all events of all stations.

    Events whose storage cannot be allocated are left out entirely.
    """
    logger = get_run_logger()
    combiner = QualityFlagCombiner(settings.quality_flags)
    quantities = _product_quantities(stations, data_list, unified)

    lines: List[str] = []
    diagnostics: List[str] = []
    header: Optional[str] = None
    for station in stations:
        for i in range(len(station)):
            event = station[i]
            try:
                aggregator = EventAggregator(
                    station,
                    i,
                    data_list.items_for_event(event.event_id),
                    unified=unified,
                    combiner=combiner,
                    provenance=registry,
                    arena_settings=settings.arena,
                    cruises=cruises,
                    sections=sections,
                )
            except EventAggregationError as e:
                logger.error(f"Skipping event {event.event_id}: {e}")
                diagnostics.append(str(e))
                continue
            if header is None:
                header = aggregator.header_line(quantities)
            lines.extend(aggregator.data_lines(quantities))
            diagnostics.extend(aggregator.diagnostics)

    logger.info(f"{len(lines)} {data_list.data_type.value} data lines from {len(stations)} stations")
    return ([header] if header else []) + lines, diagnostics


def _product_quantities(stations: StationList, data_list: DataItemList, unified: bool) -> List[str]:
    station_events = {e for s in stations for e in s.event_ids}
    seen: Dict[str, None] = {}
    for item in data_list.items:
        if item.event_id in station_events:
            seen.setdefault(quantity_identity(item.extended_name, unified), None)
    return list(seen)


@task
def write_output(path: str, records: List[str]) -> str:
    logger = get_run_logger()
    count = write_records(path, records)
    logger.info(f"Wrote {count} records to {path}")
    return path


def note_writer(notes_dir: str):
    def write_note(note: ProvenanceNote) -> None:
        write_records(join_path(notes_dir, f"{note.name}.html"), [note.to_html()])

    return write_note
