"""
Platform configuration.

Values come from defaults, then an optional JSON file, then ``STUDYPLAN_*``
environment variables, later sources winning. Command line flags are applied
last through ``apply_overrides``.
"""

import json
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.enums import CreditPolicy, StoreType, DEFAULT_CREDITS
from .core.exceptions import ConfigurationError

ENV_PREFIX = "STUDYPLAN_"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class PlannerConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="forbid",
        validate_assignment=True,
    )

    store_type: StoreType = StoreType.MEMORY
    database_path: str = "studyplan.db"
    seed_path: Optional[str] = None
    credit_policy: CreditPolicy = CreditPolicy.FIXED
    default_credits: int = Field(DEFAULT_CREDITS, gt=0)
    strict_records: bool = False
    seed_demo_data: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(8000, gt=0, lt=65536)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings,
                                   dotenv_settings, file_secret_settings):
        # Environment variables beat values passed in from the config file.
        return env_settings, init_settings


def _config_error(e: ValidationError) -> ConfigurationError:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in e.errors()
    )
    return ConfigurationError(f"Invalid configuration: {problems}",
                              details={'errors': e.errors(include_url=False)})


def load_config(path: Optional[str] = None) -> PlannerConfig:
    """Build the configuration from an optional JSON file and the environment."""
    file_values = {}
    if path:
        try:
            with open(path, 'r') as f:
                file_values = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}")
        except ValueError as e:
            raise ConfigurationError(f"Config file {path} is not valid JSON: {e}")
        if not isinstance(file_values, dict):
            raise ConfigurationError(f"Config file {path} must hold a JSON object")

    try:
        return PlannerConfig(**file_values)
    except ValidationError as e:
        raise _config_error(e)


def apply_overrides(config: PlannerConfig, **overrides: Any) -> PlannerConfig:
    """Set the given fields on ``config``, skipping ``None`` values."""
    try:
        for name, value in overrides.items():
            if value is not None:
                setattr(config, name, value)
    except ValidationError as e:
        raise _config_error(e)
    return config
