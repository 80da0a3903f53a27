from typing import Dict, Iterable, List, Optional

from loguru import logger

from idp_builder.records.models import Event
from idp_builder.tables.keyed import KeyedTable
from idp_builder.utils.formatting import parse_event_time, parse_number

EVENT_COLUMNS = {
    "cruise": "CRUISE",
    "station_label": "STATION",
    "event_id": "BODC_EVENT_NUMBER",
    "cast_identifier": "CAST_IDENTIFIER",
    "sampling_device": "SAMPLING_DEVICE",
    "start_time": "EVENT_START_TIME_DATE",
    "end_time": "EVENT_END_TIME_DATE",
    "start_lon": "EVENT_START_LONGITUDE",
    "start_lat": "EVENT_START_LATITUDE",
    "end_lon": "EVENT_END_LONGITUDE",
    "end_lat": "EVENT_END_LATITUDE",
    "lon": "LONGITUDE",
    "lat": "LATITUDE",
    "bottom_depth": "BOTTOM DEPTH [M]",
}

TIME_FIELDS = ("start_time", "end_time")
TEXT_FIELDS = ("cruise", "station_label", "cast_identifier", "sampling_device")


def event_from_row(row: Dict[str, str]) -> Event:
    fields = {}
    for name, label in EVENT_COLUMNS.items():
        text = row.get(label, "")
        if name == "event_id":
            fields[name] = int(text)
        elif name in TEXT_FIELDS:
            fields[name] = text
        elif name in TIME_FIELDS:
            fields[name] = parse_event_time(text)
        else:
            fields[name] = parse_number(text)
    return Event(**fields)


class EventsTable:
    """Sampling events keyed by their event number."""

    def __init__(self, table: Optional[KeyedTable] = None, events: Iterable[Event] = ()):
        self.table = table
        self._events: Dict[int, Event] = {e.event_id: e for e in events}

    @classmethod
    def from_csv(cls, path: str, sep: str = ",") -> "EventsTable":
        return cls(KeyedTable.from_csv(path, EVENT_COLUMNS["event_id"], sep=sep))

    def event_info_of(self, event_id: int) -> Optional[Event]:
        if event_id in self._events:
            return self._events[event_id]
        if self.table is None:
            return None
        row = self.table.lookup(str(event_id))
        if row is None:
            return None
        try:
            event = event_from_row(row)
        except ValueError as e:
            logger.warning(f"Unreadable event row {event_id}: {e}")
            return None
        self._events[event_id] = event
        return event

    def ids(self) -> List[int]:
        if self.table is None:
            return list(self._events)
        ids = []
        for key in self.table.keys():
            try:
                ids.append(int(key))
            except ValueError:
                logger.warning(f"Ignoring event with non-numeric id {key!r}")
        return ids

    def __contains__(self, event_id: int) -> bool:
        return self.event_info_of(event_id) is not None

    def __len__(self) -> int:
        return len(self.ids())
