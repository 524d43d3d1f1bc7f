from __future__ import annotations

import io
import textwrap
from pathlib import Path

from binks.categories import DEFAULT_CATEGORIES, CategoryLoader, ChangeBatch, WatchCategory
from binks.commands import Command, CommandBuilder
from binks.status import StatusPrinter

FEATURES = WatchCategory(name="features", root="./features/", pattern=r"\.feature$")
SPEC = WatchCategory(name="spec", root="./spec/", pattern=r"_spec\.rb$")


def make_builder(tmp_path: Path) -> tuple[CommandBuilder, io.StringIO]:
    (tmp_path / "features").mkdir(exist_ok=True)
    (tmp_path / "spec").mkdir(exist_ok=True)
    output = io.StringIO()
    builder = CommandBuilder(("bundle", "exec", "spring"), status=StatusPrinter(output, width=10), cwd=str(tmp_path))
    return builder, output


def test_plain_example_file(tmp_path: Path) -> None:
    builder, _ = make_builder(tmp_path)
    (tmp_path / "spec" / "foo_spec.rb").write_text("describe Foo do\nend\n", encoding="utf-8")

    commands = builder.build(ChangeBatch(SPEC, ("foo_spec.rb",)))

    assert commands == [
        Command(
            file_path="foo_spec.rb",
            base="bundle",
            args=("exec", "spring", "rspec", str(tmp_path / "spec" / "foo_spec.rb")),
        )
    ]
    assert builder.focus is None


def test_plain_acceptance_file(tmp_path: Path) -> None:
    builder, _ = make_builder(tmp_path)
    (tmp_path / "features" / "bar.feature").write_text("Feature: Bar\n", encoding="utf-8")

    [command] = builder.build(ChangeBatch(FEATURES, ("bar.feature",)))

    assert command.argv == (
        "bundle",
        "exec",
        "spring",
        "cucumber",
        str(tmp_path / "features" / "bar.feature"),
        "--color",
        "--no-source",
    )


def test_acceptance_focus_adds_tags_and_sets_focus(tmp_path: Path) -> None:
    builder, output = make_builder(tmp_path)
    (tmp_path / "features" / "bar.feature").write_text("@focus\nFeature: Bar\n", encoding="utf-8")

    [command] = builder.build(ChangeBatch(FEATURES, ("bar.feature",)))

    assert command.args[-3:] == ("--tags", "@focus", "--fail-fast")
    assert builder.focus == "bar.feature"
    assert "Focus set on bar.feature" in output.getvalue()

    # saving the focused file again is not a new transition
    builder.build(ChangeBatch(FEATURES, ("bar.feature",)))
    assert output.getvalue().count("Focus set on bar.feature") == 1


def test_example_focus_inserts_tag_before_path(tmp_path: Path) -> None:
    builder, _ = make_builder(tmp_path)
    path = tmp_path / "spec" / "foo_spec.rb"
    path.write_text("it 'runs', focus: true do\nend\n", encoding="utf-8")

    [command] = builder.build(ChangeBatch(SPEC, ("foo_spec.rb",)))

    assert command.args == ("exec", "spring", "rspec", "--tag", "focus", str(path))
    assert builder.focus == "foo_spec.rb"


def test_focus_removal_emits_notice_and_no_command(tmp_path: Path) -> None:
    builder, output = make_builder(tmp_path)
    feature = tmp_path / "features" / "bar.feature"
    feature.write_text("@focus\nFeature: Bar\n", encoding="utf-8")
    builder.build(ChangeBatch(FEATURES, ("bar.feature",)))

    feature.write_text("Feature: Bar\n", encoding="utf-8")
    commands = builder.build(ChangeBatch(FEATURES, ("bar.feature",)))

    assert commands == []
    assert builder.focus is None
    assert output.getvalue().count("Focus removed bar.feature") == 1

    # the next save is an ordinary run again
    assert len(builder.build(ChangeBatch(FEATURES, ("bar.feature",)))) == 1


def test_new_focus_supersedes_previous(tmp_path: Path) -> None:
    builder, output = make_builder(tmp_path)
    feature = tmp_path / "features" / "bar.feature"
    feature.write_text("@focus\n", encoding="utf-8")
    (tmp_path / "spec" / "foo_spec.rb").write_text("it 'x', focus: true do\nend\n", encoding="utf-8")

    builder.build(ChangeBatch(FEATURES, ("bar.feature",)))
    builder.build(ChangeBatch(SPEC, ("foo_spec.rb",)))
    assert "Focus set on foo_spec.rb" in output.getvalue()
    assert builder.focus == "foo_spec.rb"

    feature.write_text("Feature: Bar\n", encoding="utf-8")
    [command] = builder.build(ChangeBatch(FEATURES, ("bar.feature",)))

    assert "--tags" not in command.args
    assert builder.focus == "foo_spec.rb"
    assert "Focus removed" not in output.getvalue()


def test_batch_keeps_order_and_skips_unknown_files(tmp_path: Path) -> None:
    builder, _ = make_builder(tmp_path)
    for name in ("a_spec.rb", "b_spec.rb"):
        (tmp_path / "spec" / name).write_text("", encoding="utf-8")

    commands = builder.build(ChangeBatch(SPEC, ("b_spec.rb", "notes.txt", "a_spec.rb")))

    assert [command.file_path for command in commands] == ["b_spec.rb", "a_spec.rb"]


def test_custom_wrapper(tmp_path: Path) -> None:
    (tmp_path / "spec").mkdir()
    (tmp_path / "spec" / "foo_spec.rb").write_text("", encoding="utf-8")
    builder = CommandBuilder(("bin/spring",), cwd=str(tmp_path))

    [command] = builder.build(ChangeBatch(SPEC, ("foo_spec.rb",)))

    assert command.base == "bin/spring"
    assert command.args[0] == "rspec"


def test_default_categories_carry_their_runner(tmp_path: Path) -> None:
    builder, _ = make_builder(tmp_path)
    features, spec = DEFAULT_CATEGORIES
    (tmp_path / "features" / "bar.feature").write_text("Feature: Bar\n", encoding="utf-8")
    (tmp_path / "spec" / "foo_spec.rb").write_text("", encoding="utf-8")

    [feature_command] = builder.build(ChangeBatch(features, ("bar.feature",)))
    [spec_command] = builder.build(ChangeBatch(spec, ("foo_spec.rb",)))

    assert feature_command.args[2:] == (
        "cucumber",
        str(tmp_path / "features" / "bar.feature"),
        "--color",
        "--no-source",
    )
    assert spec_command.args[2:] == ("rspec", str(tmp_path / "spec" / "foo_spec.rb"))


def test_configured_category_uses_its_runner(tmp_path: Path) -> None:
    builder, _ = make_builder(tmp_path)
    (tmp_path / "test" / "models").mkdir(parents=True)
    (tmp_path / "test" / "models" / "user_test.rb").write_text("class UserTest\nend\n", encoding="utf-8")
    config = tmp_path / "binks.yml"
    config.write_text(
        textwrap.dedent(
            """
            categories:
              - name: minitest
                root: test
                pattern: '_test\\.rb$'
                runner: rails
                flags: ["test", "--verbose"]
            """
        ).strip(),
        encoding="utf-8",
    )
    [category] = CategoryLoader(config).load()

    [command] = builder.build(ChangeBatch(category, ("models/user_test.rb",)))

    assert command.argv == (
        "bundle",
        "exec",
        "spring",
        "rails",
        str(tmp_path / "test" / "models" / "user_test.rb"),
        "test",
        "--verbose",
    )


def test_configured_runner_keeps_focus_handling(tmp_path: Path) -> None:
    builder, output = make_builder(tmp_path)
    category = WatchCategory(
        name="spec", root="spec", pattern=r"_spec\.rb$", runner="rspec", flags=("--fail-fast",)
    )
    path = tmp_path / "spec" / "foo_spec.rb"
    path.write_text("it 'runs', focus: true do\nend\n", encoding="utf-8")

    [command] = builder.build(ChangeBatch(category, ("foo_spec.rb",)))

    assert command.args == ("exec", "spring", "rspec", "--tag", "focus", str(path), "--fail-fast")
    assert "Focus set on foo_spec.rb" in output.getvalue()
