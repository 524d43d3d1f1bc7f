"""Watch category models."""

from __future__ import annotations

import re
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WatchCategory(BaseModel):
    """A watched root together with the file names it admits."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Stable identifier used in logs and status lines.")
    root: str = Field(..., description="Directory watched recursively, relative to the working directory.")
    pattern: str = Field(..., description="Regular expression matched against paths relative to the root.")
    ignore_case: bool = Field(default=True, description="Match the pattern case-insensitively.")
    runner: str | None = Field(
        default=None,
        description="Runner invoked through the wrapper; derived from the file suffix when unset.",
    )
    flags: tuple[str, ...] = Field(
        default=(),
        description="Arguments appended after the file path when 'runner' is set.",
    )

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Watch category name must not be empty")
        return normalized

    @field_validator("root")
    @classmethod
    def _normalize_root(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Watch category root must not be empty")
        return normalized if normalized.endswith("/") else normalized + "/"

    @field_validator("runner")
    @classmethod
    def _normalize_runner(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError("Watch category runner must not be empty")
        return normalized

    @field_validator("pattern")
    @classmethod
    def _compile_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid pattern {value!r}: {exc}") from exc
        return value

    def matches(self, relpath: str) -> bool:
        """Inclusion predicate for paths relative to :attr:`root`."""

        flags = re.IGNORECASE if self.ignore_case else 0
        return re.search(self.pattern, relpath, flags) is not None


@dataclass(frozen=True, slots=True)
class ChangeBatch:
    """Files reported together by one watch event, relative to the category root."""

    category: WatchCategory
    files: tuple[str, ...]


DEFAULT_CATEGORIES: tuple[WatchCategory, ...] = (
    WatchCategory(
        name="features",
        root="./features/",
        pattern=r"\.feature$",
        runner="cucumber",
        flags=("--color", "--no-source"),
    ),
    WatchCategory(name="spec", root="./spec/", pattern=r"_spec\.rb$", runner="rspec"),
)


__all__ = ["ChangeBatch", "DEFAULT_CATEGORIES", "WatchCategory"]
