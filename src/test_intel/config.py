"""Configuration management for Test Intel."""

from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file at import time
load_dotenv()


class DuplicateConfig(BaseModel):
    """Duplicate clustering thresholds."""

    similarity_threshold: float = Field(default=80.0, ge=0, le=100)
    cross_type_floor: float = Field(default=70.0, ge=0, le=100)
    cross_type_penalty: float = Field(default=0.8, ge=0, le=1)


class FlakinessConfig(BaseModel):
    """Flaky test detection configuration."""

    min_runs: int = Field(default=3, ge=1)
    min_score: int = Field(default=20, ge=0, le=100)
    recent_failures: int = Field(default=5, ge=0)


class TrendConfig(BaseModel):
    """Failure trend configuration."""

    min_runs: int = Field(default=4, ge=2)
    stable_band: float = Field(default=0.05, ge=0, le=1)


class OutputConfig(BaseModel):
    """CLI rendering configuration."""

    format: Literal["table", "json"] = "table"
    max_rows: int = Field(default=50, ge=1)


class Config(BaseSettings):
    """Main configuration for Test Intel."""

    model_config = SettingsConfigDict(
        env_prefix="TEST_INTEL_",
        env_nested_delimiter="__",
    )

    duplicates: DuplicateConfig = Field(default_factory=DuplicateConfig)
    flakiness: FlakinessConfig = Field(default_factory=FlakinessConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over values read from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


CONFIG_FILE_NAMES = ["test_intel.yaml", "test_intel.yml", ".test_intel.yaml"]


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file and environment variables."""
    config_data: dict = {}

    if config_path is None:
        for name in CONFIG_FILE_NAMES:
            if Path(name).exists():
                config_path = Path(name)
                break

    if config_path and config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if raw and "test_intel" in raw:
                config_data = raw["test_intel"]
            elif raw:
                config_data = raw

    # Environment variables override YAML
    return Config(**config_data)
