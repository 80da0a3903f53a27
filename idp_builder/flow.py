from typing import Dict, List, Optional

from prefect import flow, get_run_logger

from idp_builder.aggregator.provenance import ProvenanceRegistry
from idp_builder.settings.main import BuildSettings, build_settings
from idp_builder.tables.params import DataType
from idp_builder.tasks import (
    aggregate_stations,
    collate_stations,
    load_tables,
    note_writer,
    write_output,
)
from idp_builder.utils.storage import join_path


@flow
def build_product(
    config_path: Optional[str] = None,
    data_types: Optional[List[str]] = None,
    unified: bool = True,
) -> Dict[str, str]:
    """
    Build the data files of the product, one per data type.

    Returns the output path of every data type written.
    """
    logger = get_run_logger()
    settings = BuildSettings.from_yaml(config_path) if config_path else build_settings
    selected = [DataType(dt) for dt in data_types] if data_types else list(DataType)
    paths = settings.paths

    events, cruises, approvals, data_items = load_tables(settings)
    registry = ProvenanceRegistry(
        sink=note_writer(join_path(paths.output_dir, paths.info_notes_dir)),
        sections=approvals.section_for,
        generators=approvals.generators_for,
    )

    outputs = {}
    for data_type in selected:
        data_list = data_items.for_data_type(data_type)
        if not len(data_list):
            logger.info(f"No {data_type.value} data, skipping")
            continue

        stations, collation_diagnostics = collate_stations(events, data_list, settings)
        write_output(
            join_path(paths.diagnostics_dir, "stations", f"Stations_{data_type.value}.txt"),
            stations.spreadsheet_records(),
        )

        records, diagnostics = aggregate_stations(
            stations,
            data_list,
            registry,
            settings,
            unified,
            cruises=cruises,
            sections=approvals.section_for,
        )
        outputs[data_type.value] = write_output(
            join_path(paths.output_dir, f"{settings.product_name}_{data_type.value}.txt"),
            records,
        )
        write_output(
            join_path(paths.diagnostics_dir, "data", f"Diagnostics_{data_type.value}.txt"),
            collation_diagnostics + diagnostics,
        )

    write_output(
        join_path(paths.diagnostics_dir, "data", "DataItems_error_messages.txt"),
        list(data_items.diagnostics),
    )
    write_output(
        join_path(paths.diagnostics_dir, "dataset_lists", "SiApproved_PiPending.txt"),
        approvals.si_approved_pi_pending,
    )
    write_output(
        join_path(paths.diagnostics_dir, "dataset_lists", "NotSiApproved_PiApproved.txt"),
        approvals.pi_approved_not_si_approved,
    )
    logger.info(f"Product {settings.product_name} built, {len(registry)} provenance notes written")
    return outputs
