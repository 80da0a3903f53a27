from typing import Iterable, Optional

from loguru import logger

from idp_builder.exceptions import UnknownQualityFlagError
from idp_builder.settings.models import QualityFlagTables


class QualityFlagCombiner:
    """
    Reduce a list of quality flags to the poorest one.

    Codes are mapped to severities, the worst severity is taken and mapped
    back to a representative code. The no-data flag is ignored unless it
    is all there is.

    Parameters
    ----------
    tables : QualityFlagTables
        Code to severity table, severity ranking and back-mapping.
    """

    def __init__(self, tables: Optional[QualityFlagTables] = None):
        self.tables = tables if tables is not None else QualityFlagTables()
        self._rank = {sev: i for i, sev in enumerate(self.tables.severity_order)}

    def knows(self, flag: str) -> bool:
        return flag == self.tables.no_data or flag in self.tables.severity_by_code

    def combine(self, flags: Iterable[str]) -> str:
        worst = None
        for flag in flags:
            if flag == self.tables.no_data:
                continue
            severity = self.tables.severity_by_code.get(flag)
            if severity is None:
                logger.error(f"Unknown quality flag {flag!r}")
                raise UnknownQualityFlagError(f"{flag!r} is not a known quality flag")
            if worst is None or self._rank[severity] > self._rank[worst]:
                worst = severity
        if worst is None:
            return self.tables.no_data
        return self.tables.code_by_severity[worst]

    __call__ = combine
