"""
Reported bottle data, filtered down to the contributions that may enter
the product.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger

from idp_builder.config import MISSING_DOUBLE, NO_DATA_FLAG
from idp_builder.exceptions import TableFormatError
from idp_builder.records.models import DataItem
from idp_builder.stats.flags import QualityFlagCombiner
from idp_builder.stats.robust import RobustStats
from idp_builder.tables.datasets import CRUISE, DatasetApprovals
from idp_builder.tables.events import EventsTable
from idp_builder.tables.keyed import read_delimited
from idp_builder.tables.params import DataType, data_type_of, param_name_from_extended_name
from idp_builder.utils.formatting import parse_number

DATA_ITEM_COLUMNS = {
    "event_id": "BODC_EVENT_NUMBER",
    "bottle_number": "BODC_BOTTLE_NUMBER",
    "rosette_bottle_number": "ROSETTE_BOTTLE_NUMBER",
    "bottle_flag": "BODC_BOTTLE_FLAG",
    "cell_id": "SAMPLE_CELL_ID",
    "sub_sample": "SUB_SAMPLE_NUMBER",
    "geotraces_sample_id": "GEOTRACES_SAMPLE_ID",
    "depth": "DEPTH",
    "pressure": "PRESSURE",
    "extended_name": "PARAMETER",
    "value": "PARAMETER_VALUE",
    "error": "1SD::PARAMETER_VALUE",
    "flag": "FLAG",
    "unit": "UNIT",
}

NUMERIC_FIELDS = ("depth", "pressure", "value", "error")


def data_item_from_row(row: Dict[str, str], cruise: str = "") -> DataItem:
    fields = {"cruise": cruise}
    for name, label in DATA_ITEM_COLUMNS.items():
        text = row.get(label, "")
        if name in ("event_id", "bottle_number"):
            fields[name] = int(text)
        elif name in NUMERIC_FIELDS:
            fields[name] = parse_number(text)
        elif name == "flag":
            fields[name] = text[:1] or NO_DATA_FLAG
        else:
            fields[name] = text
    return DataItem(**fields)


class DataItemsTable:
    """
    Approved, not removed data items.

    Items of unknown datasets or events and items with an unreadable
    quality flag are dropped with a diagnostic. Items whose dataset
    cruise differs from the event cruise are kept but reported.
    """

    def __init__(
        self,
        approvals: DatasetApprovals,
        events: EventsTable,
        combiner: Optional[QualityFlagCombiner] = None,
    ):
        self.approvals = approvals
        self.events = events
        self.combiner = combiner if combiner is not None else QualityFlagCombiner()
        self.items: List[DataItem] = []
        self.diagnostics: Dict[str, int] = OrderedDict()

    def _diagnose(self, message: str) -> None:
        if message not in self.diagnostics:
            logger.warning(message)
        self.diagnostics[message] = self.diagnostics.get(message, 0) + 1

    @classmethod
    def from_csv(
        cls,
        path: str,
        approvals: DatasetApprovals,
        events: EventsTable,
        combiner: Optional[QualityFlagCombiner] = None,
        sep: str = ",",
    ) -> "DataItemsTable":
        table = cls(approvals, events, combiner)
        table.append_frame(read_delimited(path, sep=sep))
        logger.info(f"Accepted {len(table.items)} data items from {path}")
        return table

    def append_frame(self, frame: pd.DataFrame) -> None:
        missing = [c for c in ("BODC_EVENT_NUMBER", "PARAMETER") if c not in frame.columns]
        if missing:
            raise TableFormatError(f"Data item columns {missing} not found")
        self.append_rows(frame.to_dict(orient="records"))

    def append_rows(self, rows: Iterable[Dict[str, str]]) -> None:
        for row in rows:
            ext_name = row.get("PARAMETER", "")
            if self.approvals.table is not None and not self.approvals.is_known(ext_name):
                self._diagnose(f"Dataset not found {ext_name}")
                continue
            cruise = ""
            if self.approvals.table is not None:
                cruise = self.approvals.table.value(ext_name, CRUISE)
            try:
                item = data_item_from_row(row, cruise)
            except ValueError as e:
                self._diagnose(f"Unreadable data item for {ext_name}: {e}")
                continue
            self.append(item)

    def append(self, item: DataItem) -> bool:
        event = self.events.event_info_of(item.event_id)
        if event is None:
            self._diagnose(f"Event not found {item.event_id} {item.extended_name}")
            return False
        if not self.combiner.knows(item.flag):
            self._diagnose(f"Unknown quality flag {item.flag!r} event#: {item.event_id} {item.extended_name}")
            return False
        cruise = item.cruise or event.cruise
        if cruise != event.cruise:
            self._diagnose(
                f"Cruise mismatch ({cruise},{event.cruise}) event#: {item.event_id} {item.extended_name}"
            )

        prm_name, _ = param_name_from_extended_name(item.extended_name)
        approved = self.approvals.has_approvals_for_extended_param_name(item.extended_name)
        if not approved or self.approvals.is_removed_dataset(cruise, prm_name):
            return False
        self.items.append(item)
        return True

    def aggregate_sub_samples(self) -> int:
        """
        Replace repeated sub-samples of one bottle, cell and dataset by
        their median, flagged with the poorest contributing flag.

        Returns the number of groups aggregated.
        """
        groups: Dict[tuple, List[int]] = OrderedDict()
        for i, item in enumerate(self.items):
            key = (item.bottle_number, item.cell_id, item.extended_name)
            groups.setdefault(key, []).append(i)

        dropped = set()
        aggregated = 0
        for idxs in groups.values():
            if len(idxs) < 2:
                continue
            members = [self.items[i] for i in idxs]
            self.items[idxs[0]] = members[0].model_copy(
                update={
                    "value": RobustStats([m.value for m in members]).median(),
                    "error": MISSING_DOUBLE,
                    "flag": self.combiner([m.flag for m in members]),
                }
            )
            dropped.update(idxs[1:])
            aggregated += 1

        if dropped:
            self.items = [item for i, item in enumerate(self.items) if i not in dropped]
            logger.info(f"Aggregated {aggregated} multi sub-sample groups")
        return aggregated

    def for_data_type(self, data_type: DataType) -> "DataItemList":
        selected = []
        for item in self.items:
            prm_name, _ = param_name_from_extended_name(item.extended_name)
            item_type = data_type_of(prm_name)
            if item_type is None:
                self._diagnose(f"Unknown sampling system for {prm_name}")
                continue
            if item_type == data_type:
                selected.append(item)
        return DataItemList(data_type, selected)


class DataItemList:
    """Data items of one data type grouped by event number."""

    def __init__(self, data_type: DataType, items: Iterable[DataItem]):
        self.data_type = data_type
        self.items = list(items)
        self._by_event: Dict[int, List[DataItem]] = OrderedDict()
        for item in self.items:
            self._by_event.setdefault(item.event_id, []).append(item)

    def items_for_event(self, event_id: int) -> List[DataItem]:
        return self._by_event.get(event_id, [])

    @property
    def event_ids(self) -> List[int]:
        return list(self._by_event)

    def extended_names(self) -> List[str]:
        return list(OrderedDict.fromkeys(item.extended_name for item in self.items))

    def __len__(self) -> int:
        return len(self.items)
