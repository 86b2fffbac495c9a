"""
Configuration for selectgraph.

Settings come from (later wins): defaults, a YAML file, environment
variables (SELECTGRAPH_*). Components take an explicit SelectGraphConfig;
the process-wide default from get_config() is used when none is given.

Example selectgraph.yaml:
    input_field_formatter: camel_case
    output_field_formatter: camel_case
    default_page_limit: 20
    log_level: WARNING
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .core.errors import ConfigurationError
from .core.pagination import DEFAULT_LIMIT
from .core.query_types import describe_validation_error
from .core.utils import CONVENTIONS, FieldFormatter

ENV_PREFIX = "SELECTGRAPH_"


class SelectGraphConfig(BaseSettings):
    """Main selectgraph configuration."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, case_sensitive=False, extra="ignore")

    input_field_formatter: str = "camel_case"
    output_field_formatter: str = "camel_case"
    default_page_limit: int = Field(DEFAULT_LIMIT, ge=1)
    log_level: str = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment overrides values read from the YAML file
        return env_settings, init_settings

    @field_validator("input_field_formatter", "output_field_formatter")
    @classmethod
    def check_formatter(cls, v: str) -> str:
        if v not in CONVENTIONS:
            raise ValueError(f"must be one of {', '.join(CONVENTIONS)}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "SelectGraphConfig":
        """
        Create config from a dictionary; unknown keys are ignored.

        Raises:
            ConfigurationError: if a value does not validate
        """
        try:
            return cls(**(data or {}))
        except ValidationError as e:
            raise ConfigurationError(describe_validation_error(e)) from e

    @classmethod
    def from_env(cls, base: Optional["SelectGraphConfig"] = None) -> "SelectGraphConfig":
        """
        Apply SELECTGRAPH_* environment variables on top of `base`.

        Example:
            SELECTGRAPH_OUTPUT_FIELD_FORMATTER=snake_case
            SELECTGRAPH_DEFAULT_PAGE_LIMIT=50
        """
        return cls.from_dict(base.to_dict() if base is not None else None)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for YAML serialization."""
        return self.model_dump()

    def formatter(self) -> FieldFormatter:
        return FieldFormatter(self.input_field_formatter, self.output_field_formatter)

    def save(self, path: Path | str = "selectgraph.yaml") -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        content = yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        path.write_text(content)


def load_config(path: Path | str = "selectgraph.yaml") -> SelectGraphConfig | None:
    """Load configuration from YAML file; environment variables still win."""
    path = Path(path)
    if not path.exists():
        return None

    data = yaml.safe_load(path.read_text())
    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping, got {type(data).__name__}")
    return SelectGraphConfig.from_dict(data)


_config: Optional[SelectGraphConfig] = None


def get_config() -> SelectGraphConfig:
    """Process-wide default configuration (environment applied on first use)."""
    global _config
    if _config is None:
        _config = SelectGraphConfig.from_env()
    return _config


def set_config(config: Optional[SelectGraphConfig]) -> None:
    """Replace the process-wide default; None resets it."""
    global _config
    _config = config


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the "selectgraph" logger for applications that want library logs."""
    level = (level or get_config().log_level).upper()
    logger = logging.getLogger("selectgraph")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
