"""
Approval state of submitted datasets.

A dataset is identified by its extended parameter name
``PARAMETER::BARCODE``. Only datasets with both S&I approval and PI
permission, or sensor datasets, are used in the product. Datasets can
additionally be withdrawn per cruise through a removed-datasets list.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import fsspec
from loguru import logger

from idp_builder.exceptions import TableFormatError
from idp_builder.tables.keyed import KeyedTable, read_delimited
from idp_builder.tables.params import param_name_from_extended_name

CRUISE = "CRUISE"
GEOTRACES_CRUISE = "GEOTRACES CRUISE"
PARAM_BARCODE = "PARAMETER::BARCODE"
SI_STATUS = "S&I STATUS"
PERMISSION = "PERMISSION"
DATA_GENERATORS = "DATA GENERATOR(S)"

WILDCARD = "*"


def is_approved(status: str) -> bool:
    return status.lower().startswith("approved")


def read_removed_datasets(path: str, sep: str = ",") -> List[Tuple[str, str]]:
    """Read the ``cruise,parameter`` pairs below the header line."""
    fs, fs_path = fsspec.core.url_to_fs(path)
    if not fs.exists(fs_path):
        logger.info(f"No removed-datasets list at {path}")
        return []
    frame = read_delimited(path, sep=sep)
    if len(frame.columns) < 2:
        raise TableFormatError(f"Removed-datasets list {path} needs cruise and parameter columns")
    removed = []
    for cruise, param in frame.iloc[:, :2].fillna("").itertuples(index=False):
        if not cruise or not param:
            logger.warning(f"Ignoring incomplete removed-dataset entry {cruise!r},{param!r}")
            continue
        removed.append((cruise, param))
    return removed


class DatasetApprovals:
    def __init__(
        self,
        table: Optional[KeyedTable] = None,
        removed: Iterable[Tuple[str, str]] = (),
    ):
        self.table = table
        self.removed = list(removed)
        self.si_approved = set()
        self.pi_approved = set()
        self.sections_by_cruise: Dict[str, str] = {}
        self.generators_by_dataset: Dict[str, List[str]] = {}
        self.si_approved_pi_pending: List[str] = []
        self.pi_approved_not_si_approved: List[str] = []
        if table is not None:
            self._index()

    @classmethod
    def from_csv(cls, path: str, removed_path: Optional[str] = None, sep: str = ","):
        removed = read_removed_datasets(removed_path) if removed_path else []
        return cls(KeyedTable.from_csv(path, PARAM_BARCODE, sep=sep), removed)

    def _index(self) -> None:
        for ext_name, row in self.table.rows():
            cruise = row.get(CRUISE, "")
            prm_name, _ = param_name_from_extended_name(ext_name)
            is_sensor = "_SENSOR" in ext_name
            si_ok = is_approved(row.get(SI_STATUS, ""))
            pi_ok = is_approved(row.get(PERMISSION, ""))
            pi_pending = row.get(PERMISSION, "").lower().startswith("pending")

            if si_ok:
                self.si_approved.add(ext_name)
            if pi_ok:
                self.pi_approved.add(ext_name)

            if not self.is_removed_dataset(cruise, prm_name) and (is_sensor or (si_ok and pi_ok)):
                self.generators_by_dataset[ext_name] = [
                    g.strip() for g in row.get(DATA_GENERATORS, "").split("|") if g.strip()
                ]
                self.sections_by_cruise[cruise] = row.get(GEOTRACES_CRUISE, "").split(" ")[0]

            if not is_sensor and si_ok and pi_pending:
                self.si_approved_pi_pending.append(ext_name)
            elif not is_sensor and not si_ok and pi_ok:
                self.pi_approved_not_si_approved.append(ext_name)

        logger.info(
            f"{len(self.generators_by_dataset)} of {len(self.table)} datasets accepted"
        )

    def has_approvals_for_extended_param_name(self, extended_name: str) -> bool:
        return "_SENSOR" in extended_name or (
            extended_name in self.si_approved and extended_name in self.pi_approved
        )

    def is_removed_dataset(self, cruise: str, param_name: str) -> bool:
        for removed_cruise, removed_param in self.removed:
            if cruise == removed_cruise and removed_param in (WILDCARD, param_name):
                return True
        return False

    def is_known(self, extended_name: str) -> bool:
        return self.table is not None and extended_name in self.table

    def section_for(self, cruise: str) -> str:
        return self.sections_by_cruise.get(cruise, "")

    def generators_for(self, extended_name: str) -> List[str]:
        return self.generators_by_dataset.get(extended_name, [])
