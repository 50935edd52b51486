"""
tabol: weighted random tables.

A small language for describing random tables (names, items, descriptions)
and an engine that evaluates them into text.

Usage:
    from tabol import build, generate

    registry = build(source)
    print(generate(registry, "tavern"))

A table is a frontmatter block followed by weighted rules:

    ---
    id: tavern
    title: Tavern Names
    ---
    2: The {{adjective|capitalize}} {{animal|capitalize}}
    1: {{animal|capitalize}} and {{d4}} Barrels

Rules can interpolate other tables (`{{animal}}`), roll dice (`{{2d6}}`) and
pipe interpolated text through filters (`definite`, `indefinite`, `capitalize`).
"""

import random
from typing import List, Set

from tabol.core import (
    CallError,
    DefinitionError,
    ParseError,
    RecursionLimitError,
    ResolutionEngine,
    TableRegistry,
    TabolError,
    parse,
    resolution_engine,
)
from tabol.models import DiceRoll, FilterOp, Interpolation, Literal, Rule, TableDefinition

__version__ = "0.1.0"


def build(source: str, max_depth: int | None = None) -> TableRegistry:
    """
    Parse table source and build a validated registry.

    Args:
        source: The full table definition document.
        max_depth: Interpolation depth cap for generation. Defaults to
            ResolutionEngine.DEFAULT_MAX_DEPTH.

    Raises:
        ParseError: the source is not valid table syntax.
        DefinitionError: the tables are inconsistent (duplicate id, zero
            weights, unknown interpolation target).
    """
    engine = resolution_engine if max_depth is None else ResolutionEngine(max_depth)
    return TableRegistry.from_source(source, engine)


def registry_ids(registry: TableRegistry) -> Set[str]:
    return registry.ids()


def generate(registry: TableRegistry, table_id: str, rng: random.Random | None = None) -> str:
    """Generate one string from `table_id`. Raises CallError for an unknown id."""
    return registry.generate(table_id, rng)


def generate_many(
    registry: TableRegistry,
    table_id: str,
    count: int,
    rng: random.Random | None = None,
) -> List[str]:
    """Generate exactly `count` strings, or raise without returning any."""
    return registry.generate_many(table_id, count, rng)


__all__ = [
    # Main API
    "build",
    "registry_ids",
    "generate",
    "generate_many",
    "parse",
    "TableRegistry",
    "ResolutionEngine",
    # Models
    "TableDefinition",
    "Rule",
    "Literal",
    "Interpolation",
    "DiceRoll",
    "FilterOp",
    # Errors
    "TabolError",
    "ParseError",
    "DefinitionError",
    "CallError",
    "RecursionLimitError",
]
