from typing import Dict, Iterable, Optional

import fsspec
from loguru import logger

from idp_builder.records.models import Cruise
from idp_builder.tables.keyed import KeyedTable

CRUISE_COLUMNS = {
    "cruise": "CRUISE",
    "aliases": "ALIASES",
    "country": "COUNTRY",
    "ship_name": "SHIP_NAME",
    "chief_scientist": "CHIEF_SCIENTIST",
    "start_date": "CRUISE_START_TIME_DATE",
    "end_date": "CRUISE_END_TIME_DATE",
    "location": "LOCATION",
    "geotraces_pi": "GEOTRACES_PI",
    "report_url": "CRUISE_REPORT_URL",
    "bodc_cruise_number": "BODC_CRUISE_NUMBER",
}


def cruise_from_row(row: Dict[str, str]) -> Cruise:
    return Cruise(**{name: row.get(label, "") for name, label in CRUISE_COLUMNS.items()})


class CruisesTable:
    """Cruise metadata keyed by the operator's cruise name."""

    def __init__(self, table: Optional[KeyedTable] = None, cruises: Iterable[Cruise] = ()):
        self.table = table
        self._cruises: Dict[str, Cruise] = {c.cruise: c for c in cruises}

    @classmethod
    def from_csv(cls, path: str, sep: str = ",") -> "CruisesTable":
        fs, fs_path = fsspec.core.url_to_fs(path)
        if not fs.exists(fs_path):
            logger.warning(f"No cruise table at {path}, cruise metadata will be empty")
            return cls()
        return cls(KeyedTable.from_csv(path, CRUISE_COLUMNS["cruise"], sep=sep))

    def cruise_info_of(self, cruise: str) -> Cruise:
        """Metadata of ``cruise``, empty apart from the name when unknown."""
        if cruise in self._cruises:
            return self._cruises[cruise]
        row = self.table.lookup(cruise) if self.table is not None else None
        if row is None:
            logger.debug(f"Cruise {cruise} not in cruise table")
            return Cruise(cruise=cruise)
        info = cruise_from_row(row)
        self._cruises[cruise] = info
        return info

    def __contains__(self, cruise: str) -> bool:
        return cruise in self._cruises or (self.table is not None and cruise in self.table)

    def __len__(self) -> int:
        if self.table is None:
            return len(self._cruises)
        return len(self.table)
