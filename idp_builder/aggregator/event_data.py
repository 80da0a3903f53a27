"""
Per event assembly and reconciliation of bottle data.

An ``EventAggregator`` indexes the samples (bottle x cell) of one event,
gives every quantity identity seen in the event an integer slot, keeps
the value, error and flag columns of all slots in three arenas and
reconciles several contributions to one quantity into a single value.
"""

from collections import OrderedDict
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from idp_builder.aggregator.provenance import ProvenanceRegistry
from idp_builder.config import (
    DEPTH_SLOT,
    INITIAL_FLAG,
    MISSING_DOUBLE,
    NO_DATA_FLAG,
    PRESSURE_SLOT,
)
from idp_builder.exceptions import ArenaGrowthError, EventAggregationError
from idp_builder.memory.arena import Arena
from idp_builder.records.models import Contribution, DataItem, ReconciledValue, Sample
from idp_builder.settings.main import build_settings
from idp_builder.settings.models import ArenaSettings
from idp_builder.stations.station import Station
from idp_builder.stations.stats import StationStats
from idp_builder.stats.flags import QualityFlagCombiner
from idp_builder.stats.robust import RobustStats
from idp_builder.tables.cruises import CruisesTable
from idp_builder.tables.params import (
    param_name_from_extended_name,
    quantity_identity,
    unified_name_label,
)
from idp_builder.utils.formatting import formatted_number, iso_date
from idp_builder.utils.geo import depth_from_pressure, pressure_from_depth

DOUBLE_SIZE = np.dtype(np.float64).itemsize
ABSENT_DATA_PART = f"\t\t\t{NO_DATA_FLAG}\t"
UNKNOWN_SECTION = "unknown_cruise"

META_LABELS = [
    "Cruise",
    "Station",
    "Type",
    "yyyy-mm-ddThh:mm:ss.sss",
    "Longitude [degrees_east]",
    "Latitude [degrees_north]",
    "Bot. Depth [m]",
    "Sampling Devices",
    "Cast Identifiers",
    "Event IDs",
    "Station Max. Distance [km]",
    "Station Duration [hours]",
    "Operator's Cruise Name",
    "Ship Name",
    "Cruise Period",
    "Chief Scientist",
    "GEOTRACES Scientist",
    "Cruise Aliases",
    "Cruise Report",
    "BODC Cruise Number",
]

LEAD_LABELS = [
    "DEPTH [m]",
    "PRESSURE [dbar]",
    "Rosette Bottle Number",
    "GEOTRACES Sample ID",
    "Bottle Flag",
    "Cast Identifier",
    "Sampling Device",
    "BODC Bottle Number",
    "BODC Event Number",
    "Cell Sample ID",
]


class EventAggregator:
    """
    Parameters
    ----------
    station : Station
        Station holding the event.
    event_index : int
        Position of the event within ``station``.
    data_items : Sequence[DataItem]
        Contributions reported for the event, in file order.
    unified : bool
        Group datasets by parameter name without sampling system suffix
        instead of by extended name.
    cruises : CruisesTable, optional
        Operator metadata written with the station fields.
    sections : callable, optional
        Section name of a cruise, used as the first station field.
    """

    def __init__(
        self,
        station: Station,
        event_index: int,
        data_items: Sequence[DataItem],
        unified: bool = True,
        combiner: Optional[QualityFlagCombiner] = None,
        provenance: Optional[ProvenanceRegistry] = None,
        arena_settings: Optional[ArenaSettings] = None,
        station_stats: Optional[StationStats] = None,
        cruises: Optional[CruisesTable] = None,
        sections: Optional[Callable[[str], str]] = None,
    ):
        self.station = station
        self.event = station[event_index]
        self.unified = unified
        self.combiner = combiner or QualityFlagCombiner(build_settings.quality_flags)
        self.provenance = provenance if provenance is not None else ProvenanceRegistry()
        self.arena_settings = arena_settings or build_settings.arena
        self.station_stats = station_stats or StationStats(station)
        self.cruises = cruises if cruises is not None else CruisesTable()
        self.sections = sections
        self.diagnostics: List[str] = []

        self.items: List[DataItem] = []
        for item in data_items:
            if item.event_id != self.event.event_id:
                self._diagnose(f"Data item of event {item.event_id} ignored for event {self.event.event_id}")
                continue
            if not self.combiner.knows(item.flag):
                self._diagnose(
                    f"Unknown quality flag {item.flag!r} of {item.extended_name} in event {item.event_id}"
                )
                continue
            self.items.append(item)

        self.bottle_numbers: List[int] = []
        self.cell_ids_by_bottle: Dict[int, List[str]] = OrderedDict()
        self.first_sample_ids: Dict[int, int] = {}
        self.sample_items: Dict[int, DataItem] = {}
        self._build_sample_index()

        self._last_data_id = DEPTH_SLOT
        self.data_ids_by_quantity: Dict[str, List[int]] = OrderedDict()
        self.ext_names_by_quantity: Dict[str, List[str]] = OrderedDict()
        self.data_id_by_ext_name: Dict[str, int] = {}
        self._build_identity_table()

        try:
            self._allocate()
        except ArenaGrowthError as e:
            logger.error(f"Out of memory aggregating event {self.event.event_id}: {e}")
            raise EventAggregationError(
                f"Event {self.event.event_id} of {self.event.cruise} could not be aggregated"
            ) from e
        self._fill()

    def _diagnose(self, message: str) -> None:
        logger.warning(message)
        self.diagnostics.append(message)

    @property
    def reference_latitude(self) -> float:
        for lat in (self.station_stats.mean_lat, self.event.lat):
            if lat != MISSING_DOUBLE:
                return lat
        return 0.0

    # samples

    def _build_sample_index(self) -> None:
        for item in self.items:
            if item.bottle_number not in self.cell_ids_by_bottle:
                self.bottle_numbers.append(item.bottle_number)
                self.cell_ids_by_bottle[item.bottle_number] = []
            cells = self.cell_ids_by_bottle[item.bottle_number]
            if item.cell_id and item.cell_id not in cells:
                cells.append(item.cell_id)

        first = 0
        for bottle in self.bottle_numbers:
            self.first_sample_ids[bottle] = first
            first += self.sample_count(bottle)

        for item in self.items:
            smpl = self.sample_id(item.bottle_number, item.cell_id)
            if smpl > -1 and smpl not in self.sample_items:
                self.sample_items[smpl] = item

    @property
    def n_samples(self) -> int:
        return sum(self.sample_count(b) for b in self.bottle_numbers)

    def sample_count(self, bottle_number: int) -> int:
        return max(1, len(self.cell_ids_by_bottle.get(bottle_number, [])))

    def first_sample_id(self, bottle_number: int) -> int:
        return self.first_sample_ids.get(bottle_number, -1)

    def sample_id(self, bottle_number: int, cell_id: str = "") -> int:
        """Sample index of a bottle and cell, -1 if unknown."""
        first = self.first_sample_id(bottle_number)
        if first < 0 or not cell_id:
            return first
        cells = self.cell_ids_by_bottle[bottle_number]
        if cell_id not in cells:
            return -1
        return first + cells.index(cell_id)

    def samples(self) -> List[Sample]:
        samples = []
        for bottle in self.bottle_numbers:
            cells = self.cell_ids_by_bottle[bottle] or [""]
            first = self.first_sample_ids[bottle]
            for i, cell in enumerate(cells):
                samples.append(Sample(bottle_number=bottle, cell_id=cell, index=first + i))
        return samples

    # quantity identities

    def _build_identity_table(self) -> None:
        for item in self.items:
            ext_name = item.extended_name
            if ext_name in self.data_id_by_ext_name:
                continue
            quantity = quantity_identity(ext_name, self.unified)
            self._last_data_id += 1
            self.data_id_by_ext_name[ext_name] = self._last_data_id
            self.data_ids_by_quantity.setdefault(quantity, []).append(self._last_data_id)
            self.ext_names_by_quantity.setdefault(quantity, []).append(ext_name)

    @property
    def quantities(self) -> List[str]:
        return list(self.data_ids_by_quantity)

    @property
    def max_data_id(self) -> int:
        return self._last_data_id

    def data_id_from_extended_name(self, extended_name: str) -> int:
        return self.data_id_by_ext_name.get(extended_name, -1)

    # storage

    def _new_arena(self) -> Arena:
        return Arena(
            n_bytes=self.arena_settings.initial_bytes,
            fast_path_size=max(self.arena_settings.fast_path_size, self.max_data_id + 1),
            max_bytes=self.arena_settings.max_bytes,
        )

    def _allocate(self) -> None:
        n = self.n_samples
        self.values = self._new_arena()
        self.errors = self._new_arena()
        self.flags = self._new_arena()
        self.values.request_multi(PRESSURE_SLOT, self.max_data_id, n * DOUBLE_SIZE)
        self.errors.request_multi(PRESSURE_SLOT, self.max_data_id, n * DOUBLE_SIZE)
        self.flags.request_multi(PRESSURE_SLOT, self.max_data_id, n)
        for data_id in range(PRESSURE_SLOT, self.max_data_id + 1):
            self.values.data(data_id, np.float64)[:] = MISSING_DOUBLE
            self.errors.data(data_id, np.float64)[:] = MISSING_DOUBLE
            self.flags.data(data_id)[:] = ord(INITIAL_FLAG)

    def _columns(self, data_id: int):
        return (
            self.values.data(data_id, np.float64),
            self.errors.data(data_id, np.float64),
            self.flags.data(data_id),
        )

    def _fill(self) -> None:
        lat = self.reference_latitude
        pressures, _, _ = self._columns(PRESSURE_SLOT)
        depths, _, _ = self._columns(DEPTH_SLOT)
        for item in self.items:
            smpl = self.sample_id(item.bottle_number, item.cell_id)
            if smpl < 0:
                self._diagnose(
                    f"Unknown sample bottle {item.bottle_number} cell {item.cell_id!r} in event {item.event_id}"
                )
                continue

            pressure, depth = item.pressure, item.depth
            if pressure == MISSING_DOUBLE and depth != MISSING_DOUBLE:
                pressure = pressure_from_depth(depth, lat)
            elif depth == MISSING_DOUBLE and pressure != MISSING_DOUBLE:
                depth = depth_from_pressure(pressure, lat)
            if pressures[smpl] == MISSING_DOUBLE:
                pressures[smpl] = pressure
            if depths[smpl] == MISSING_DOUBLE:
                depths[smpl] = depth

            data_id = self.data_id_from_extended_name(item.extended_name)
            values, errors, flags = self._columns(data_id)
            if values is None:
                self._diagnose(f"No storage for {item.extended_name} in event {item.event_id}")
                continue
            # a value flagged as not reported does not count as a contribution
            if item.flag == NO_DATA_FLAG:
                continue
            values[smpl] = item.value
            errors[smpl] = item.error
            flags[smpl] = ord(item.flag)

    def pressure(self, smpl: int) -> float:
        return float(self.values.data(PRESSURE_SLOT, np.float64)[smpl])

    def depth(self, smpl: int) -> float:
        return float(self.values.data(DEPTH_SLOT, np.float64)[smpl])

    # reconciliation

    def contributions(self, quantity: str, smpl: int) -> List[Contribution]:
        contributions = []
        data_ids = self.data_ids_by_quantity.get(quantity, [])
        ext_names = self.ext_names_by_quantity.get(quantity, [])
        for data_id, ext_name in zip(data_ids, ext_names):
            values, errors, flags = self._columns(data_id)
            if values is None or values[smpl] == MISSING_DOUBLE:
                continue
            contributions.append(
                Contribution(
                    extended_name=ext_name,
                    value=float(values[smpl]),
                    error=float(errors[smpl]),
                    flag=chr(flags[smpl]),
                )
            )
        return contributions

    def note_label(self, quantity: str) -> str:
        name, _ = param_name_from_extended_name(quantity)
        return unified_name_label(name)

    def get_values(self, quantity: str, smpl: int) -> ReconciledValue:
        if quantity not in self.data_ids_by_quantity or not 0 <= smpl < self.n_samples:
            self._diagnose(f"Cannot resolve {quantity} at sample {smpl} in event {self.event.event_id}")
            return ReconciledValue()

        contributions = self.contributions(quantity, smpl)
        if not contributions:
            return ReconciledValue()

        note = self.provenance.note_for(
            self.event.cruise,
            self.note_label(quantity),
            [c.extended_name for c in contributions],
        )
        if len(contributions) == 1:
            c = contributions[0]
            return ReconciledValue(value=c.value, error=c.error, flag=c.flag, note_ref=note.reference)

        return ReconciledValue(
            value=RobustStats([c.value for c in contributions]).median(),
            error=MISSING_DOUBLE,
            flag=self.combiner([c.flag for c in contributions]),
            note_ref=note.reference,
        )

    # output

    def header_line(self, quantities: Optional[Sequence[str]] = None) -> str:
        labels = META_LABELS + LEAD_LABELS
        for quantity in quantities if quantities is not None else self.quantities:
            labels += [quantity, "STANDARD_DEVIATION", "QV:SEADATANET", "INFOS"]
        return "\t".join(labels)

    def section(self) -> str:
        section = self.sections(self.event.cruise) if self.sections else ""
        return section or UNKNOWN_SECTION

    def meta_part(self) -> str:
        """Station and cruise fields, one per entry of ``META_LABELS``."""
        stats = self.station_stats
        cruise = self.cruises.cruise_info_of(self.station.cruise)
        return "\t".join(
            [
                self.section(),
                self.station.station_label(),
                "B",
                iso_date(stats.mean_time),
                formatted_number(stats.mean_lon, 5, True),
                formatted_number(stats.mean_lat, 5, True),
                formatted_number(stats.max_bottom_depth, 1, True),
                " | ".join(stats.sampling_devices),
                " | ".join(stats.cast_identifiers),
                " | ".join(str(event_id) for event_id in self.station.event_ids),
                formatted_number(stats.max_dist, 2, True),
                formatted_number(stats.duration, 2, True),
                self.station.cruise,
                cruise.ship_name,
                cruise.period,
                cruise.chief_scientist,
                cruise.geotraces_pi,
                cruise.aliases,
                cruise.report_url,
                cruise.bodc_cruise_number,
            ]
        )

    def lead_part(self, smpl: int) -> str:
        item = self.sample_items.get(smpl)
        return "\t".join(
            [
                formatted_number(self.depth(smpl), 3, True),
                formatted_number(self.pressure(smpl), 3, True),
                item.rosette_bottle_number if item else "",
                item.geotraces_sample_id if item else "",
                item.bottle_flag if item else "",
                self.event.cast_identifier,
                self.event.sampling_device,
                str(item.bottle_number) if item else "",
                str(self.event.event_id),
                item.cell_id if item else "",
            ]
        )

    def data_part(self, quantity: str, smpl: int) -> str:
        rv = self.get_values(quantity, smpl)
        return "\t{}\t{}\t{}\t{}".format(
            formatted_number(rv.value, 6, True),
            formatted_number(rv.error, 6, True),
            rv.flag,
            rv.note_ref,
        )

    def data_lines(self, quantities: Optional[Sequence[str]] = None) -> List[str]:
        """
        One tab separated line per sample, bottles in encounter order.

        Station metadata is only written on the first line of the event.
        """
        quantities = list(quantities) if quantities is not None else self.quantities
        meta = self.meta_part()
        empty_meta = "\t" * (len(META_LABELS) - 1)
        lines = []
        for sample in self.samples():
            parts = [meta if not lines else empty_meta, self.lead_part(sample.index)]
            for quantity in quantities:
                if quantity in self.data_ids_by_quantity:
                    parts.append(self.data_part(quantity, sample.index))
                else:
                    parts.append(ABSENT_DATA_PART)
            lines.append("\t".join(parts[:2]) + "".join(parts[2:]))
        return lines
