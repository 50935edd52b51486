"""
Tests for the `tabol` command line.
Run with: pytest src/tabol/test_cli.py
"""

import logging

import pytest
from typer.testing import CliRunner

from tabol.cli import app
from tabol.config import settings

runner = CliRunner()

COLOR = "---\nid: color\ntitle: Color\n---\n1: Red\n1: Blue\n1: Green\n"

TAVERN = """---
id: tavern
title: Tavern Names
---
1: The {{animal|capitalize}}

---
id: animal
title: Animals
---
1: goose

---
id: keeper
title: Keepers
---
1: old {{keeper}}
1: {{animal}} herder
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI callback installs handlers on the captured stderr; drop them afterwards."""
    yield
    logger = logging.getLogger("tabol")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def tables_dir(tmp_path, monkeypatch):
    (tmp_path / "color.tbl").write_text(COLOR, encoding="utf-8")
    (tmp_path / "tavern.tbl").write_text(TAVERN, encoding="utf-8")
    monkeypatch.setattr(settings, "tables_dir", tmp_path)
    monkeypatch.setattr(settings, "seed", None)
    return tmp_path


def results(output: str) -> list:
    return [line for line in output.splitlines() if line]


def test_gen_from_definition_name(tables_dir):
    result = runner.invoke(app, ["gen", "color", "--count", "5", "--seed", "1"])

    assert result.exit_code == 0, result.output
    lines = results(result.output)
    assert len(lines) == 5
    assert set(lines) <= {"Red", "Blue", "Green"}
    print("✓ gen prints one result per draw")


def test_gen_is_reproducible_with_seed(tables_dir):
    first = runner.invoke(app, ["gen", "color", "-c", "20", "--seed", "42"])
    second = runner.invoke(app, ["gen", "color", "-c", "20", "--seed", "42"])
    assert first.output == second.output


def test_gen_default_count(tables_dir, monkeypatch):
    monkeypatch.setattr(settings, "default_count", 3)
    result = runner.invoke(app, ["gen", "color"])

    assert result.exit_code == 0, result.output
    assert len(results(result.output)) == 3


def test_gen_table_option_and_file(tables_dir, tmp_path):
    path = tmp_path / "elsewhere.txt"
    path.write_text(TAVERN, encoding="utf-8")
    result = runner.invoke(app, ["gen", "ignored", "--file", str(path), "--table", "tavern", "-c", "2"])

    assert result.exit_code == 0, result.output
    assert results(result.output) == ["The Goose", "The Goose"]


def test_gen_unknown_table(tables_dir):
    result = runner.invoke(app, ["gen", "color", "--table", "colour"])

    assert result.exit_code == 1
    assert "No table found with id colour" in result.output


def test_gen_missing_definition(tables_dir):
    result = runner.invoke(app, ["gen", "nowhere"])

    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_gen_parse_error_reports_location(tables_dir):
    (tables_dir / "broken.tbl").write_text(COLOR + "1: {{x|shout}}\n", encoding="utf-8")
    result = runner.invoke(app, ["gen", "broken"])

    assert result.exit_code == 1
    assert "unknown filter" in result.output
    assert "line 8" in result.output


def test_tables_lists_structure(tables_dir):
    result = runner.invoke(app, ["tables", "tavern"])

    assert result.exit_code == 0, result.output
    assert "tavern: Tavern Names (1 rules)  [uses animal]" in result.output
    assert "animal: Animals (1 rules)  [used by keeper, tavern]" in result.output
    assert "keeper: Keepers (2 rules)  [cyclic; uses animal, keeper]" in result.output
    assert "3 tables, 3 references, 1 cycles; entry points: keeper, tavern" in result.output


def test_dice(tables_dir):
    result = runner.invoke(app, ["dice", "3d6", "--count", "50", "--seed", "5"])

    assert result.exit_code == 0, result.output
    rolls = [int(line) for line in results(result.output)]
    assert len(rolls) == 50
    assert all(3 <= value <= 18 for value in rolls)


def test_dice_bad_formula(tables_dir):
    result = runner.invoke(app, ["dice", "three"])

    assert result.exit_code == 1
    assert "Invalid dice formula" in result.output


def test_gen_depth_cap_reports_error(tables_dir, monkeypatch):
    """A runaway cycle under a deep cap exits 1 with an ERROR line, not a traceback."""
    (tables_dir / "loop.tbl").write_text(
        "---\nid: loop\ntitle: Loop\n---\n1: {{echo}}\n\n---\nid: echo\ntitle: Echo\n---\n1: {{loop}}\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(settings, "max_depth", 1000)
    result = runner.invoke(app, ["gen", "loop", "--count", "1"])

    assert result.exit_code == 1
    assert "Interpolation depth exceeded 1000" in result.output
    assert not isinstance(result.exception, RecursionError)
