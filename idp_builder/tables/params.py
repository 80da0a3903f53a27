"""
Resolution of extended parameter names (``NAME_SUFFIX::BARCODE``) into
quantity identities and data types.
"""

from enum import Enum
from typing import Tuple


class DataType(str, Enum):
    SEAWATER = "Seawater"
    AEROSOLS = "Aerosols"
    PRECIPITATION = "Precipitation"
    CRYOSPHERE = "Cryosphere"


# order matters: _PUMP must come after the more specific pump suffixes
SAMPLING_SYSTEMS = (
    "_SENSOR",
    "_BOTTLE",
    "_BOAT_PUMP",
    "_MELTPOND_PUMP",
    "_SUBICE_PUMP",
    "_PUMP",
    "_UWAY",
    "_FISH",
    "_HIVOL",
    "_LOWVOL",
    "_COARSE_IMPACTOR",
    "_FINE_IMPACTOR",
    "_AUTO",
    "_MAN",
    "_GRAB",
    "_CORER",
)

DATA_TYPE_BY_SYSTEM = {
    "_SENSOR": DataType.SEAWATER,
    "_BOTTLE": DataType.SEAWATER,
    "_BOAT_PUMP": DataType.SEAWATER,
    "_SUBICE_PUMP": DataType.SEAWATER,
    "_PUMP": DataType.SEAWATER,
    "_UWAY": DataType.SEAWATER,
    "_FISH": DataType.SEAWATER,
    "_HIVOL": DataType.AEROSOLS,
    "_LOWVOL": DataType.AEROSOLS,
    "_COARSE_IMPACTOR": DataType.AEROSOLS,
    "_FINE_IMPACTOR": DataType.AEROSOLS,
    "_AUTO": DataType.PRECIPITATION,
    "_MAN": DataType.PRECIPITATION,
    "_GRAB": DataType.CRYOSPHERE,
    "_CORER": DataType.CRYOSPHERE,
    "_MELTPOND_PUMP": DataType.CRYOSPHERE,
}

BARCODE_SEPARATOR = "::"


def param_name_from_extended_name(extended_name: str) -> Tuple[str, str]:
    """Split ``NAME::BARCODE`` into its parameter name and barcode."""
    name, _, barcode = extended_name.partition(BARCODE_SEPARATOR)
    return name, barcode


def sampling_system(param_name: str) -> str:
    for suffix in SAMPLING_SYSTEMS:
        if suffix in param_name:
            return suffix
    return ""


def unified_name_label(param_name: str) -> str:
    """Parameter name with its sampling system suffix and anything after it removed."""
    suffix = sampling_system(param_name)
    if not suffix or suffix == "_SENSOR":
        return param_name
    return param_name[: param_name.index(suffix)]


def data_type_of(param_name: str):
    return DATA_TYPE_BY_SYSTEM.get(sampling_system(param_name))


def quantity_identity(extended_name: str, unified: bool) -> str:
    if not unified:
        return extended_name
    name, _ = param_name_from_extended_name(extended_name)
    return unified_name_label(name)
