from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from idp_builder.records.models import Event
from idp_builder.stations.stats import StationStats
from idp_builder.utils.formatting import formatted_number, iso_date


def station_key(cruise: str, label: str) -> str:
    return f"{cruise}::{label}"


class Station:
    """
    Events of one cruise grouped as one physical sampling location.

    Events keep their insertion order. Events of other cruises and
    repeated events are rejected.
    """

    def __init__(self, cruise: str, events: Iterable[Event] = (), labels: Iterable[str] = ()):
        self.cruise = cruise
        self._events: List[Event] = []
        self.labels: List[str] = []
        for event in events:
            self.add_event(event)
        for label in labels:
            self.add_label(label)

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    @property
    def event_ids(self) -> List[int]:
        return [e.event_id for e in self._events]

    @property
    def is_labeled(self) -> bool:
        return bool(self.labels)

    def add_event(self, event: Event) -> bool:
        if event.cruise != self.cruise or event.event_id in self.event_ids:
            return False
        self._events.append(event)
        if event.station_label:
            self.add_label(event.station_label)
        return True

    def add_label(self, label: str) -> None:
        if label and label not in self.labels:
            self.labels.append(label)

    def merged_with(self, other: "Station") -> "Station":
        merged = Station(self.cruise, self._events, self.labels)
        for event in other.events:
            merged.add_event(event)
        return merged

    def station_label(self) -> str:
        return " | ".join(self.labels)

    def key(self) -> str:
        return station_key(self.cruise, self.station_label())

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __getitem__(self, index: int) -> Event:
        return self._events[index]

    def __repr__(self) -> str:
        return f"Station({self.cruise!r}, labels={self.labels}, events={self.event_ids})"


class StationList:
    """Ordered stations of a product. Stations are only replaced by index."""

    def __init__(self, stations: Iterable[Station] = ()):
        self._stations: List[Station] = list(stations)

    def append(self, station: Station) -> None:
        self._stations.append(station)

    def extend(self, stations: Iterable[Station]) -> None:
        self._stations.extend(stations)

    def replace(self, index: int, station: Station) -> None:
        self._stations[index] = station

    def cruises(self) -> List[str]:
        return sorted({s.cruise for s in self._stations})

    def stations_of(self, cruise: str) -> List[Station]:
        return [s for s in self._stations if s.cruise == cruise]

    def event_count(self) -> int:
        return sum(len(s) for s in self._stations)

    def spreadsheet_records(self, stats_of: Optional[Callable] = None) -> List[str]:
        """One tab separated summary line per event, preceded by a header."""
        stats_of = stats_of or StationStats
        records = [
            "\t".join(
                [
                    "Cruise",
                    "Station",
                    "Event",
                    "Cast Identifier",
                    "Sampling Device",
                    "Event Start",
                    "Longitude [degrees_east]",
                    "Latitude [degrees_north]",
                    "Bottom Depth [m]",
                    "Station Longitude [degrees_east]",
                    "Station Latitude [degrees_north]",
                    "Station Time",
                    "Max Distance [km]",
                    "Duration [hours]",
                ]
            )
        ]
        for station in self._stations:
            stats = stats_of(station)
            for event in station:
                records.append(
                    "\t".join(
                        [
                            station.cruise,
                            station.station_label(),
                            str(event.event_id),
                            event.cast_identifier,
                            event.sampling_device,
                            iso_date(event.start_time),
                            formatted_number(event.lon, 4, True),
                            formatted_number(event.lat, 4, True),
                            formatted_number(event.bottom_depth, 1, True),
                            formatted_number(stats.mean_lon, 4, True),
                            formatted_number(stats.mean_lat, 4, True),
                            iso_date(stats.mean_time),
                            formatted_number(stats.max_dist, 2, True),
                            formatted_number(stats.duration, 2, True),
                        ]
                    )
                )
        return records

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self) -> Iterator[Station]:
        return iter(self._stations)

    def __getitem__(self, index: int) -> Station:
        return self._stations[index]
