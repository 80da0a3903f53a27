"""
Descriptive statistics over value arrays that mark gaps with a sentinel.
"""

import math
from typing import Iterable, Optional, Tuple

import numpy as np

from idp_builder.config import MISSING_DOUBLE


class RobustStats:
    """
    Lazily evaluated statistics of the non-missing entries of ``values``.

    Every statistic is computed on first access and cached. Statistics
    that are undefined for the number of valid values return the
    missing sentinel.
    """

    def __init__(self, values: Iterable[float], missing: float = MISSING_DOUBLE):
        self.missing = missing
        if not isinstance(values, np.ndarray):
            values = list(values)
        self._values = np.asarray(values, dtype=float)
        self._valid: Optional[np.ndarray] = None
        self._cache = {}

    def _valid_values(self) -> np.ndarray:
        if self._valid is None:
            self._valid = self._values[self._values != self.missing]
        return self._valid

    def _cached(self, key, compute):
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def non_missing_count(self) -> int:
        return int(self._valid_values().size)

    def mean(self) -> float:
        def compute():
            valid = self._valid_values()
            return float(valid.sum() / valid.size) if valid.size else self.missing

        return self._cached("mean", compute)

    def variance(self) -> float:
        """Sample variance with divisor n-1, clamped at zero."""

        def compute():
            valid = self._valid_values()
            n = valid.size
            if n < 1:
                return self.missing
            if n == 1:
                return 0.0
            s = valid.sum()
            s2 = (valid * valid).sum()
            return float(max(0.0, (s2 - s * s / n) / (n - 1)))

        return self._cached("variance", compute)

    def standard_deviation(self) -> float:
        var = self.variance()
        return self.missing if var == self.missing else math.sqrt(var)

    def min(self) -> float:
        return self._cached(
            "min",
            lambda: float(self._valid_values().min()) if self.non_missing_count() else self.missing,
        )

    def max(self) -> float:
        return self._cached(
            "max",
            lambda: float(self._valid_values().max()) if self.non_missing_count() else self.missing,
        )

    def median(self) -> float:
        def compute():
            ordered = np.sort(self._valid_values())
            n = ordered.size
            if n == 0:
                return self.missing
            mid = n // 2
            if n % 2:
                return float(ordered[mid])
            return float(0.5 * (ordered[mid - 1] + ordered[mid]))

        return self._cached("median", compute)

    def properties(self) -> Tuple[int, float, float, float, float]:
        """(count, mean, standard deviation, min, max)"""
        return (
            self.non_missing_count(),
            self.mean(),
            self.standard_deviation(),
            self.min(),
            self.max(),
        )
