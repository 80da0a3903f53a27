from pathlib import Path
from typing import Union

import fsspec
import yaml
from pydantic_settings import BaseSettings

from idp_builder.settings.models import (
    ArenaSettings,
    CollationSettings,
    PathSettings,
    QualityFlagTables,
)


class BuildSettings(BaseSettings):
    product_name: str = "IDP"
    collation: CollationSettings = CollationSettings()
    arena: ArenaSettings = ArenaSettings()
    quality_flags: QualityFlagTables = QualityFlagTables()
    paths: PathSettings = PathSettings()

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "BuildSettings":
        with fsspec.open(str(path), mode="r") as f:
            overrides = yaml.safe_load(f) or {}
        return cls(**overrides)


build_settings = BuildSettings()
