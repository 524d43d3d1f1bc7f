from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from binks.categories import DEFAULT_CATEGORIES, CategoryLoader, CategoryLoadError, WatchCategory, load_categories


def write_categories(path: Path, body: str) -> Path:
    path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")
    return path


def test_defaults_without_file() -> None:
    categories = load_categories(None)

    assert categories == DEFAULT_CATEGORIES
    assert [category.root for category in categories] == ["./features/", "./spec/"]


def test_default_patterns_match_case_insensitively() -> None:
    features, spec = DEFAULT_CATEGORIES

    assert features.matches("login/Sign_In.FEATURE")
    assert spec.matches("models/user_spec.rb")
    assert not spec.matches("spec_helper.rb")


def test_loader_reads_yaml(tmp_path: Path) -> None:
    path = write_categories(
        tmp_path / "binks.yml",
        """
        categories:
          - name: engine
            root: engines/billing/spec
            pattern: '_spec\\.rb$'
            ignore_case: false
        """,
    )

    [category] = CategoryLoader(path).load()

    assert category.name == "engine"
    assert category.root == "engines/billing/spec/"
    assert category.matches("invoice_spec.rb")
    assert not category.matches("invoice_SPEC.rb")


def test_empty_document_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "binks.yml"
    path.write_text("", encoding="utf-8")

    assert CategoryLoader(path).load() == DEFAULT_CATEGORIES


def test_loader_reports_validation_error(tmp_path: Path) -> None:
    path = write_categories(
        tmp_path / "binks.yml",
        """
        categories:
          - name: broken
            root: spec
            pattern: '(unclosed'
        """,
    )

    with pytest.raises(CategoryLoadError, match="Category #0"):
        CategoryLoader(path).load()


def test_loader_rejects_duplicate_names(tmp_path: Path) -> None:
    path = write_categories(
        tmp_path / "binks.yml",
        """
        categories:
          - {name: spec, root: spec, pattern: '_spec\\.rb$'}
          - {name: spec, root: other, pattern: '_spec\\.rb$'}
        """,
    )

    with pytest.raises(CategoryLoadError, match="Duplicate category names"):
        CategoryLoader(path).load()


def test_loader_rejects_wrong_shape(tmp_path: Path) -> None:
    path = tmp_path / "binks.yml"
    path.write_text("- spec\n", encoding="utf-8")

    with pytest.raises(CategoryLoadError, match="'categories' list"):
        CategoryLoader(path).load()


def test_loader_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CategoryLoadError, match="not found"):
        CategoryLoader(tmp_path / "missing.yml").load()


def test_categories_are_immutable() -> None:
    category = WatchCategory(name="spec", root="spec", pattern="x")

    with pytest.raises(ValidationError):
        category.root = "other/"


def test_loader_reads_runner_and_flags(tmp_path: Path) -> None:
    path = write_categories(
        tmp_path / "binks.yml",
        """
        categories:
          - name: minitest
            root: test
            pattern: '_test\\.rb$'
            runner: rails
            flags: [test, --verbose]
        """,
    )

    [category] = CategoryLoader(path).load()

    assert category.runner == "rails"
    assert category.flags == ("test", "--verbose")


def test_empty_runner_is_rejected() -> None:
    with pytest.raises(ValidationError):
        WatchCategory(name="spec", root="spec", pattern="x", runner="  ")
