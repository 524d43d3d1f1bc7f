"""Configuration management for Binks."""

from __future__ import annotations

import shlex
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class BinksSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    categories_path: Path | None = Field(default=None, validation_alias="BINKS_CATEGORIES_PATH")
    git_dir: Path = Field(default=Path(".git"), validation_alias="BINKS_GIT_DIR")
    runner_wrapper: str = Field(default="bundle exec spring", validation_alias="BINKS_RUNNER_WRAPPER")
    runner_stop: str = Field(default="stop", validation_alias="BINKS_RUNNER_STOP")
    debounce_seconds: float = Field(default=0.05, validation_alias="BINKS_DEBOUNCE_SECONDS")
    interrupt_grace_seconds: float = Field(
        default=0.1, validation_alias="BINKS_INTERRUPT_GRACE_SECONDS"
    )
    settle_seconds: float = Field(default=0.5, validation_alias="BINKS_SETTLE_SECONDS")
    shutdown_timeout_seconds: float = Field(
        default=2.0, validation_alias="BINKS_SHUTDOWN_TIMEOUT_SECONDS"
    )
    console_sentinel: str = Field(default=":", validation_alias="BINKS_CONSOLE_SENTINEL")
    log_level: str = Field(default="WARNING", validation_alias="BINKS_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError("BINKS_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return normalized

    @field_validator("runner_wrapper", mode="before")
    @classmethod
    def _join_wrapper(cls, value):
        if isinstance(value, (list, tuple)):
            value = shlex.join(str(item) for item in value)
        if not isinstance(value, str) or not shlex.split(value):
            raise ValueError("BINKS_RUNNER_WRAPPER must name at least the wrapper executable")
        return value

    @field_validator(
        "debounce_seconds", "interrupt_grace_seconds", "settle_seconds", "shutdown_timeout_seconds"
    )
    @classmethod
    def _validate_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("delays must be >= 0")
        return value

    @field_validator("console_sentinel")
    @classmethod
    def _validate_sentinel(cls, value: str) -> str:
        if len(value) != 1 or value.isspace():
            raise ValueError("BINKS_CONSOLE_SENTINEL must be a single visible character")
        return value

    @property
    def wrapper_args(self) -> tuple[str, ...]:
        """Executable and leading arguments every run is prefixed with."""

        return tuple(shlex.split(self.runner_wrapper))

    @property
    def stop_args(self) -> tuple[str, ...]:
        return self.wrapper_args + tuple(shlex.split(self.runner_stop))

    @property
    def head_path(self) -> Path:
        return self.git_dir / "HEAD"


def resolve_categories_path(path: str | Path) -> Path:
    """Expand ``~`` and anchor a category file path at the working directory."""

    return Path(path).expanduser().resolve()


@lru_cache(maxsize=1)
def get_settings() -> BinksSettings:
    """Return cached settings instance."""

    settings = BinksSettings()
    if settings.categories_path is not None:
        settings.categories_path = resolve_categories_path(settings.categories_path)
    settings.git_dir = settings.git_dir.expanduser()
    return settings


__all__ = ["BinksSettings", "get_settings", "resolve_categories_path"]
