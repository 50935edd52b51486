from .schemas import (
    FilterOp,
    Literal,
    Interpolation,
    DiceRoll,
    RulePart,
)

from .tables import (
    Rule,
    TableDefinition,
)

__all__ = [
    # Schemas
    "FilterOp",
    "Literal",
    "Interpolation",
    "DiceRoll",
    "RulePart",

    # Tables
    "Rule",
    "TableDefinition",
]
