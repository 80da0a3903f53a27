from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CollationSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True)

    distance_tolerance: float = Field(15.0, validation_alias="idp_distance_tolerance")
    # days, keyed by data type
    time_tolerances: Dict[str, float] = {
        "seawater": 5.0,
        "aerosols": 1.0,
        "precipitation": 1.0,
        "cryosphere": 1.0,
    }

    def time_tolerance_for(self, data_type: str) -> float:
        return self.time_tolerances.get(data_type.lower(), 1.0)


class ArenaSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True)

    fast_path_size: int = Field(0, validation_alias="idp_arena_fast_path_size")
    initial_bytes: int = Field(0, validation_alias="idp_arena_initial_bytes")
    max_bytes: Optional[int] = Field(None, validation_alias="idp_arena_max_bytes")


class QualityFlagTables(BaseModel):
    """
    Vocabulary of sample quality flags and the severity scale used
    to find the poorest of a set of flags.
    """

    model_config = ConfigDict(frozen=True)

    no_data: str = "9"
    severity_by_code: Dict[str, str] = {
        "0": "1",
        "1": "0",
        "2": "0",
        "3": "4",
        "4": "8",
        "5": "1",
        "6": "1",
        "7": "1",
        "8": "1",
        "A": "1",
        "B": "1",
        "Q": "0",
    }
    # best to worst
    severity_order: List[str] = ["0", "1", "4", "8"]
    code_by_severity: Dict[str, str] = {"0": "1", "1": "0", "4": "3", "8": "4"}

    @model_validator(mode="after")
    def severities_are_ranked(self):
        unknown = set(self.severity_by_code.values()) - set(self.severity_order)
        if unknown:
            raise ValueError(f"severities {sorted(unknown)} missing from severity_order")
        missing_back = set(self.severity_order) - set(self.code_by_severity)
        if missing_back:
            raise ValueError(f"no flag code for severities {sorted(missing_back)}")
        return self


class PathSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True)

    input_dir: str = Field("./input", validation_alias="idp_input_dir")
    output_dir: str = Field("./output", validation_alias="idp_output_dir")
    diagnostics_dir: str = Field("./diagnostics", validation_alias="idp_diagnostics_dir")
    events_file: str = "events.csv"
    cruises_file: str = "cruises.csv"
    data_items_file: str = "data_items.csv"
    datasets_file: str = "datasets.csv"
    removed_datasets_file: str = "removed_datasets.csv"
    info_notes_dir: str = "infos"
