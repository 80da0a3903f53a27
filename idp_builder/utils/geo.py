"""
Geographic and oceanographic helpers used to build stations and to fill
in missing lead variables.
"""

import math

from idp_builder.config import MISSING_DOUBLE

KM_PER_DEGREE = 111.194929
LATITUDE_STEP = 1.0


def distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Distance in km between two positions given in decimal degrees.

    The path is integrated in one degree latitude steps, each step combining
    the north-south distance with an east-west distance evaluated at the
    step's mid latitude. Output must stay identical to earlier station
    boundaries, so this is not replaced by an exact geodesic.
    """
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    if dlon == 0.0:
        return abs(KM_PER_DEGREE * dlat)

    n = int(abs(dlat) / LATITUDE_STEP) + 1
    dx = dlon / n
    dy = dlat / n
    dist = 0.0
    for i in range(1, n + 1):
        east = KM_PER_DEGREE * math.cos(math.radians(lat1 + (i - 0.5) * dy)) * dx
        north = KM_PER_DEGREE * dy
        dist += math.sqrt(north * north + east * east)
    return dist


def mean_of(d1: float, d2: float, missing: float = MISSING_DOUBLE) -> float:
    if d1 != missing and d2 != missing:
        return 0.5 * (d1 + d2)
    if d1 != missing:
        return d1
    return d2


def depth_from_pressure(pressure: float, latitude: float) -> float:
    """EOS-80 depth in m from pressure in dbar."""
    if pressure == MISSING_DOUBLE:
        return MISSING_DOUBLE
    x = math.sin(math.radians(latitude)) ** 2
    a = 5.2788e-3 + 2.36e-5 * x
    gr = 9.780318 * (1.0 + a * x) + 1.092e-6 * pressure
    a = -1.82e-15 * pressure + 2.279e-10
    b = (a * pressure - 2.2512e-5) * pressure
    d = (b + 9.72659) * pressure
    return d / gr


def pressure_from_depth(depth: float, latitude: float) -> float:
    """EOS-80 pressure in dbar from depth in m."""
    if depth == MISSING_DOUBLE:
        return MISSING_DOUBLE
    d = math.sin(abs(math.radians(latitude)))
    c = 1.0 - (5.92e-3 + 5.25e-3 * d * d)
    return (c - math.sqrt(c * c - 8.84e-6 * depth)) * 226244.3
