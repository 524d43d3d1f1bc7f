"""Category file loading utilities."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DEFAULT_CATEGORIES, WatchCategory


class CategoryLoadError(RuntimeError):
    """Raised when a category file cannot be parsed."""


class CategoryLoader:
    """Loads watch categories from a YAML file on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else None

    @property
    def path(self) -> Path | None:
        return self._path

    def load(self) -> tuple[WatchCategory, ...]:
        """Return the configured categories, or the defaults when none are configured.

        The file holds a mapping with a ``categories`` list; each entry is
        validated as a :class:`WatchCategory`.
        """

        if self._path is None:
            return DEFAULT_CATEGORIES

        try:
            document = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise CategoryLoadError(f"Category file not found: {self._path}") from exc
        except yaml.YAMLError as exc:
            raise CategoryLoadError(f"Failed to parse YAML in {self._path}: {exc}") from exc

        if document is None:
            return DEFAULT_CATEGORIES
        if not isinstance(document, dict) or not isinstance(document.get("categories"), list):
            raise CategoryLoadError(f"{self._path} must contain a 'categories' list")

        categories: list[WatchCategory] = []
        errors: list[str] = []
        for index, entry in enumerate(document["categories"]):
            try:
                categories.append(WatchCategory.model_validate(entry))
            except ValidationError as exc:
                errors.append(f"Category #{index} in {self._path}: {exc}")

        names = [category.name for category in categories]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            errors.append(f"Duplicate category names in {self._path}: {', '.join(duplicates)}")

        if errors:
            raise CategoryLoadError("; ".join(errors))

        return tuple(categories) or DEFAULT_CATEGORIES


def load_categories(path: Path | None = None) -> tuple[WatchCategory, ...]:
    """Convenience wrapper for loading categories from ``path``."""

    return CategoryLoader(path).load()


__all__ = ["CategoryLoadError", "CategoryLoader", "load_categories"]
