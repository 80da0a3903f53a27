"""
Centroid and extent statistics of a group of events.
"""

from collections import Counter
from typing import Dict, Iterable, List

from idp_builder.config import MISSING_DOUBLE
from idp_builder.records.models import Event
from idp_builder.stats.robust import RobustStats
from idp_builder.utils.geo import distance, mean_of


def _shifted(lon: float, shift: bool) -> float:
    if shift and lon != MISSING_DOUBLE and lon < 0.0:
        return lon + 360.0
    return lon


class StationStats:
    """
    Statistics of the events of one station.

    Longitudes of stations straddling the antimeridian (main longitudes
    both above 100 and below -100 degrees) are moved to [0, 360) before
    any averaging. ``duration`` is in hours, ``max_dist`` in km.
    """

    def __init__(self, events: Iterable[Event]):
        self.events: List[Event] = list(events)
        main_lons = [e.lon for e in self.events if e.lon != MISSING_DOUBLE]
        self.crosses_antimeridian = any(lon > 100.0 for lon in main_lons) and any(
            lon < -100.0 for lon in main_lons
        )
        shift = self.crosses_antimeridian

        lons = RobustStats([_shifted(e.lon, shift) for e in self.events])
        lats = RobustStats([e.lat for e in self.events])
        times = RobustStats([mean_of(e.start_time, e.end_time) for e in self.events])
        bottom = RobustStats([e.bottom_depth for e in self.events])

        self.mean_lon = lons.mean()
        self.sd_lon = lons.standard_deviation()
        self.min_lon = lons.min()
        self.max_lon = lons.max()
        self.mean_lat = lats.mean()
        self.sd_lat = lats.standard_deviation()
        self.min_lat = lats.min()
        self.max_lat = lats.max()
        self.mean_time = times.mean()
        self.sd_time = times.standard_deviation()
        self.max_bottom_depth = bottom.max()
        self.sd_bottom_depth = bottom.standard_deviation()

        all_times = RobustStats(
            [t for e in self.events for t in (e.start_time, e.end_time)]
        )
        if all_times.non_missing_count():
            self.duration = (all_times.max() - all_times.min()) * 24.0
        else:
            self.duration = MISSING_DOUBLE

        self.max_dist = self._max_distance(shift)
        self.cast_identifiers: Dict[str, int] = dict(
            sorted(Counter(e.cast_identifier for e in self.events if e.cast_identifier).items())
        )
        self.sampling_devices: Dict[str, int] = dict(
            sorted(Counter(e.sampling_device for e in self.events if e.sampling_device).items())
        )

    def _max_distance(self, shift: bool) -> float:
        if self.mean_lon == MISSING_DOUBLE or self.mean_lat == MISSING_DOUBLE:
            return MISSING_DOUBLE
        max_dist = 0.0
        for e in self.events:
            for lon, lat in ((e.lon, e.lat), (e.start_lon, e.start_lat), (e.end_lon, e.end_lat)):
                if lon == MISSING_DOUBLE or lat == MISSING_DOUBLE:
                    continue
                d = distance(self.mean_lon, self.mean_lat, _shifted(lon, shift), lat)
                max_dist = max(max_dist, d)
        return max_dist

    def distance_from(self, lon: float, lat: float) -> float:
        if MISSING_DOUBLE in (lon, lat, self.mean_lon, self.mean_lat):
            return MISSING_DOUBLE
        lon = _shifted(lon, self.crosses_antimeridian)
        return distance(self.mean_lon, self.mean_lat, lon, lat)

    def time_from(self, t: float) -> float:
        if t == MISSING_DOUBLE or self.mean_time == MISSING_DOUBLE:
            return MISSING_DOUBLE
        return self.mean_time - t
