"""
Grouping of sampling events into stations.

Events are first grouped by their (cruise, station label). Events
without a label are clustered by proximity in time and space, clusters
close to a labeled station are merged into it and the remaining
clusters are labeled ``(1)``, ``(2)``, ... per cruise in time order.
"""

from collections import OrderedDict
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from idp_builder.config import MISSING_DOUBLE
from idp_builder.records.models import Event
from idp_builder.stations.station import Station, StationList, station_key
from idp_builder.stations.stats import StationStats
from idp_builder.tables.events import EventsTable

AUTO_LABEL_TIME_STEP = 0.01


class CollationState(str, Enum):
    UNPROCESSED = "Unprocessed"
    LABELED_GROUP = "LabeledGroup"
    PROXIMITY_CLUSTER = "ProximityCluster"
    MERGED_INTO_LABELED = "MergedIntoLabeled"
    FINALIZED = "Finalized"


def within_tolerance(
    stats: StationStats,
    lon: float,
    lat: float,
    t: float,
    distance_tolerance: float,
    time_tolerance: float,
) -> bool:
    dt = stats.time_from(t)
    if dt == MISSING_DOUBLE or abs(dt) >= time_tolerance:
        return False
    dist = stats.distance_from(lon, lat)
    return dist != MISSING_DOUBLE and dist < distance_tolerance


class StationCollator:
    """
    Parameters
    ----------
    events : EventsTable
        Source of event information.
    distance_tolerance : float
        Maximal distance in km of an event from a cluster centroid.
    time_tolerance : float
        Maximal time difference in days from the cluster mean time.
    """

    def __init__(self, events: EventsTable, distance_tolerance: float, time_tolerance: float):
        self.events = events
        self.distance_tolerance = distance_tolerance
        self.time_tolerance = time_tolerance
        self.states: Dict[int, CollationState] = {}
        self.diagnostics: List[str] = []

    def _diagnose(self, message: str) -> None:
        logger.warning(message)
        self.diagnostics.append(message)

    def _resolve(self, event_ids: Iterable[int]) -> List[Event]:
        resolved = []
        for event_id in event_ids:
            if event_id in self.states:
                continue
            event = self.events.event_info_of(event_id)
            if event is None:
                self._diagnose(f"Unknown event {event_id} skipped during collation")
                continue
            self.states[event_id] = CollationState.UNPROCESSED
            resolved.append(event)
        return resolved

    def _set_state(self, station: Station, state: CollationState) -> None:
        for event_id in station.event_ids:
            self.states[event_id] = state

    def collate(self, event_ids: Iterable[int]) -> StationList:
        self.states = {}
        events = self._resolve(event_ids)
        labeled, unlabeled = self.collate_by_station_label(events)
        clusters = self.collate_by_proximity(unlabeled)
        standalone = self.merge_into_labeled(labeled, clusters)
        stations = StationList(labeled)
        stations.extend(self.auto_label(standalone))
        for station in stations:
            self._set_state(station, CollationState.FINALIZED)
        logger.info(
            f"Collated {stations.event_count()} events into {len(stations)} stations "
            f"({len(labeled)} labeled, {len(standalone)} auto-labeled)"
        )
        return stations

    def collate_by_station_label(self, events: Iterable[Event]) -> Tuple[StationList, List[Event]]:
        groups: Dict[str, Station] = {}
        unlabeled = []
        for event in events:
            if not event.station_label:
                unlabeled.append(event)
                continue
            key = station_key(event.cruise, event.station_label)
            groups.setdefault(key, Station(event.cruise)).add_event(event)

        labeled = StationList(groups[key] for key in sorted(groups))
        for station in labeled:
            self._set_state(station, CollationState.LABELED_GROUP)
        return labeled, unlabeled

    def collate_by_proximity(self, events: Iterable[Event]) -> List[Station]:
        remaining = list(events)
        clusters = []
        while remaining:
            seed = remaining.pop(0)
            cluster = Station(seed.cruise, [seed])
            stats = StationStats(cluster)
            others = []
            for event in remaining:
                if event.cruise == cluster.cruise and within_tolerance(
                    stats,
                    event.lon,
                    event.lat,
                    event.mean_time,
                    self.distance_tolerance,
                    self.time_tolerance,
                ):
                    cluster.add_event(event)
                    stats = StationStats(cluster)
                else:
                    others.append(event)
            remaining = others
            self._set_state(cluster, CollationState.PROXIMITY_CLUSTER)
            clusters.append(cluster)
        return clusters

    def merge_into_labeled(self, labeled: StationList, clusters: List[Station]) -> List[Station]:
        """
        Append each cluster to the first labeled station of its cruise within
        tolerance. Clusters are visited last to first, labeled stations in
        list order, so the outcome depends on both orders.

        Returns the clusters that were not merged.
        """
        labeled_stats: Dict[int, StationStats] = {}
        standalone = []
        for cluster in reversed(clusters):
            cluster_stats = StationStats(cluster)
            target: Optional[int] = None
            for i, station in enumerate(labeled):
                if station.cruise != cluster.cruise:
                    continue
                if i not in labeled_stats:
                    labeled_stats[i] = StationStats(station)
                if within_tolerance(
                    labeled_stats[i],
                    cluster_stats.mean_lon,
                    cluster_stats.mean_lat,
                    cluster_stats.mean_time,
                    self.distance_tolerance,
                    self.time_tolerance,
                ):
                    target = i
                    break
            if target is None:
                standalone.insert(0, cluster)
                continue
            labeled.replace(target, labeled[target].merged_with(cluster))
            labeled_stats.pop(target)
            self._set_state(cluster, CollationState.MERGED_INTO_LABELED)
        return standalone

    def auto_label(self, stations: Iterable[Station]) -> List[Station]:
        """Label stations ``(1)``, ``(2)``, ... per cruise in mean time order."""
        by_cruise: Dict[str, Dict[float, Station]] = {}
        for station in stations:
            keyed = by_cruise.setdefault(station.cruise, {})
            t = StationStats(station).mean_time
            while t in keyed:
                t += AUTO_LABEL_TIME_STEP
            keyed[t] = station

        labeled = []
        for cruise in sorted(by_cruise):
            ordered = OrderedDict(sorted(by_cruise[cruise].items()))
            for k, station in enumerate(ordered.values(), start=1):
                station.add_label(f"({k})")
                labeled.append(station)
        return labeled
