"""
Read-only keyed access to delimited text tables.
"""

from typing import Dict, Iterator, List, Optional, Tuple

import pandas as pd
from loguru import logger

from idp_builder.exceptions import TableFormatError


def read_delimited(path: str, sep: str = ",") -> pd.DataFrame:
    frame = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False, skipinitialspace=True)
    frame.columns = [str(c).strip() for c in frame.columns]
    return frame.apply(lambda col: col.str.strip())


class KeyedTable:
    """
    Rows of a delimited file indexed by the text of one key column.

    Later rows replace earlier rows with the same key. All cells are kept
    as stripped text.
    """

    def __init__(self, frame: pd.DataFrame, key_label: str):
        if key_label not in frame.columns:
            raise TableFormatError(f"Key column {key_label!r} not found in {list(frame.columns)}")
        self.key_label = key_label
        self._frame = frame.drop_duplicates(subset=key_label, keep="last").set_index(
            key_label, drop=False
        )

    @classmethod
    def from_csv(cls, path: str, key_label: str, sep: str = ",") -> "KeyedTable":
        frame = read_delimited(path, sep=sep)
        logger.info(f"Read {len(frame)} rows from {path}")
        return cls(frame, key_label)

    def insert_file(self, path: str, sep: str = ",") -> int:
        """Add the rows of another file with the same columns, returns the row count read."""
        frame = read_delimited(path, sep=sep)
        if list(frame.columns) != self.column_labels:
            raise TableFormatError(f"Columns of {path} differ from the existing table")
        combined = pd.concat([self._frame.reset_index(drop=True), frame], ignore_index=True)
        self._frame = combined.drop_duplicates(subset=self.key_label, keep="last").set_index(
            self.key_label, drop=False
        )
        return len(frame)

    @property
    def column_labels(self) -> List[str]:
        return list(self._frame.columns)

    def column_index_of(self, label: str) -> int:
        try:
            return self.column_labels.index(label)
        except ValueError:
            return -1

    def lookup(self, key: str) -> Optional[Dict[str, str]]:
        if key not in self._frame.index:
            return None
        return self._frame.loc[key].to_dict()

    def value(self, key: str, label: str, default: str = "") -> str:
        row = self.lookup(key)
        if row is None:
            return default
        return row.get(label, default)

    def keys(self) -> List[str]:
        return list(self._frame.index)

    def rows(self) -> Iterator[Tuple[str, Dict[str, str]]]:
        for key, row in self._frame.iterrows():
            yield key, row.to_dict()

    def __contains__(self, key: str) -> bool:
        return key in self._frame.index

    def __len__(self) -> int:
        return len(self._frame)
