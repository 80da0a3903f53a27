from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from idp_builder.config import MISSING_DOUBLE, NO_DATA_FLAG
from idp_builder.settings.main import build_settings
from idp_builder.utils.geo import mean_of


class Event(BaseModel):
    """One sampling occasion: a cast, tow or deployment."""

    model_config = ConfigDict(frozen=True)

    event_id: int
    cruise: str
    station_label: str = ""
    cast_identifier: str = ""
    sampling_device: str = ""
    start_time: float = MISSING_DOUBLE
    end_time: float = MISSING_DOUBLE
    start_lon: float = MISSING_DOUBLE
    start_lat: float = MISSING_DOUBLE
    end_lon: float = MISSING_DOUBLE
    end_lat: float = MISSING_DOUBLE
    lon: float = MISSING_DOUBLE
    lat: float = MISSING_DOUBLE
    bottom_depth: float = MISSING_DOUBLE

    @model_validator(mode="before")
    @classmethod
    def derive_mean_position(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for coord in ("lon", "lat"):
            start = data.get(f"start_{coord}", MISSING_DOUBLE)
            end = data.get(f"end_{coord}", MISSING_DOUBLE)
            if start != MISSING_DOUBLE and end != MISSING_DOUBLE:
                data[coord] = 0.5 * (start + end)
            elif data.get(coord, MISSING_DOUBLE) == MISSING_DOUBLE:
                data[coord] = mean_of(start, end)
        return data

    @property
    def mean_time(self) -> float:
        return mean_of(self.start_time, self.end_time)


class DataItem(BaseModel):
    """One reported value of one dataset for one bottle."""

    model_config = ConfigDict(frozen=True)

    event_id: int
    cruise: str = ""
    bottle_number: int
    rosette_bottle_number: str = ""
    bottle_flag: str = ""
    cell_id: str = ""
    sub_sample: str = ""
    geotraces_sample_id: str = ""
    depth: float = MISSING_DOUBLE
    pressure: float = MISSING_DOUBLE
    extended_name: str
    value: float = MISSING_DOUBLE
    error: float = MISSING_DOUBLE
    flag: str = NO_DATA_FLAG
    unit: str = ""

    @field_validator("flag")
    @classmethod
    def known_flag(cls, v):
        tables = build_settings.quality_flags
        if v != tables.no_data and v not in tables.severity_by_code:
            raise ValueError(f"{v!r} is not a known quality flag")
        return v


class Sample(BaseModel):
    bottle_number: int
    cell_id: str = ""
    index: int


class Contribution(BaseModel):
    extended_name: str
    value: float
    error: float
    flag: str


class ReconciledValue(BaseModel):
    value: float = MISSING_DOUBLE
    error: float = MISSING_DOUBLE
    flag: str = NO_DATA_FLAG
    note_ref: str = ""

    @property
    def is_missing(self) -> bool:
        return self.value == MISSING_DOUBLE


class Cruise(BaseModel):
    """Operator metadata of one cruise."""

    model_config = ConfigDict(frozen=True)

    cruise: str
    aliases: str = ""
    country: str = ""
    ship_name: str = ""
    chief_scientist: str = ""
    start_date: str = ""
    end_date: str = ""
    location: str = ""
    geotraces_pi: str = ""
    report_url: str = ""
    bodc_cruise_number: str = ""

    @property
    def period(self) -> str:
        return f"{self.start_date[:10]} - {self.end_date[:10]}"
