"""
Tests for building the table registry.
Run with: pytest src/tabol/core/test_registry.py  (or python -m tabol.core.test_registry)
"""

import logging
import math

import pytest

from tabol.core.exceptions import DefinitionError, ParseError
from tabol.core.parser import parse
from tabol.core.registry import TableRegistry
from tabol.core.resolution_engine import ResolutionEngine


def table(table_id: str, *rules: str) -> str:
    return f"---\nid: {table_id}\ntitle: {table_id.title()}\n---\n" + "\n".join(rules) + "\n"


SOURCE = "\n".join([
    table("tavern", "2: The {{adjective|capitalize}} {{animal|capitalize}}", "1: {{animal|capitalize}} and {{d4}} Barrels"),
    table("adjective", "1: red", "1: drunken", "2: sleepy"),
    table("animal", "1: boar", "1: eel"),
])


def test_build_indexes_every_table():
    """Tables are reachable by id and kept in definition order."""
    registry = TableRegistry.from_source(SOURCE)

    assert registry.ids() == {"tavern", "adjective", "animal"}
    assert [t.id for t in registry.tables()] == ["tavern", "adjective", "animal"]
    assert list(registry) == ["tavern", "adjective", "animal"]
    assert len(registry) == 3
    assert "animal" in registry
    assert "dragon" not in registry
    assert registry.get("animal").title == "Animal"
    assert registry.get("dragon") is None
    print("✓ Registry indexes tables by id")


def test_build_from_parsed_definitions():
    registry = TableRegistry.build(parse(SOURCE))
    assert registry.ids() == {"tavern", "adjective", "animal"}
    assert repr(registry) == "TableRegistry(tables=3)"


def test_probabilities_sum_to_one():
    registry = TableRegistry.from_source(SOURCE)
    for t in registry.tables():
        assert math.isclose(sum(t.probabilities), 1.0)
    assert registry.get("adjective").probabilities == [0.25, 0.25, 0.5]
    assert registry.get("adjective").cumulative_weights == (1.0, 2.0, 4.0)


def test_duplicate_table_id():
    source = SOURCE + "\n" + table("animal", "1: newt")
    with pytest.raises(DefinitionError) as exc_info:
        TableRegistry.from_source(source)

    assert exc_info.value.table_id == "animal"
    assert "Duplicate" in str(exc_info.value)
    print("✓ Duplicate ids rejected")


def test_all_zero_weights():
    with pytest.raises(DefinitionError) as exc_info:
        TableRegistry.from_source(table("never", "0: a", "0.0: b"))
    assert exc_info.value.table_id == "never"


def test_zero_weight_rule_alongside_others_is_allowed():
    registry = TableRegistry.from_source(table("some", "0: never", "1: always"))
    assert registry.get("some").probabilities == [0.0, 1.0]


def test_missing_interpolation_target():
    """Every rule is checked at build time, not only the ones a generation happens to pick."""
    source = table("weapon", "100: sword", "0.01: {{legendary_weapon}}")
    with pytest.raises(DefinitionError) as exc_info:
        TableRegistry.from_source(source)

    error = exc_info.value
    assert error.table_id == "weapon"
    assert error.rule == "{{legendary_weapon}}"
    assert "legendary_weapon" in str(error)
    print("✓ Unknown interpolation targets rejected")


def test_parse_errors_pass_through():
    with pytest.raises(ParseError):
        TableRegistry.from_source(table("bad", "1: {{x|shout}}"))


def test_cycles_are_allowed():
    source = table("a", "1: {{b}}", "1: done") + table("b", "1: {{a}}")
    registry = TableRegistry.from_source(source)

    assert registry.graph.find_cycles() == [["a", "b"]]
    assert registry.graph.non_terminating() == set()


def test_non_terminating_table_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="tabol.core.registry"):
        registry = TableRegistry.from_source(table("loop", "1: {{loop}}"))

    assert registry.ids() == {"loop"}
    assert any("loop" in record.getMessage() for record in caplog.records)


def test_custom_engine_is_kept():
    engine = ResolutionEngine(max_depth=7)
    registry = TableRegistry.from_source(SOURCE, engine)
    assert registry.engine is engine


def main():
    print("=" * 60)
    print("Registry Tests")
    print("=" * 60)

    test_build_indexes_every_table()
    test_duplicate_table_id()
    test_missing_interpolation_target()

    print("All registry checks passed! ✓")


if __name__ == "__main__":
    main()
