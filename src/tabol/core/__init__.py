from tabol.core.exceptions import (
    TabolError,
    ParseError,
    DefinitionError,
    CallError,
    RecursionLimitError,
)
from tabol.core.parser import parse
from tabol.core.dice import roll, roll_formula
from tabol.core.filters import apply_filter, apply_filters
from tabol.core.reference_graph import ReferenceGraph
from tabol.core.resolution_engine import ResolutionEngine
from tabol.core.registry import TableRegistry

resolution_engine = ResolutionEngine()

__all__ = [
    'TabolError',
    'ParseError',
    'DefinitionError',
    'CallError',
    'RecursionLimitError',
    'parse',
    'roll',
    'roll_formula',
    'apply_filter',
    'apply_filters',
    'ReferenceGraph',
    'ResolutionEngine',
    'TableRegistry',
    'resolution_engine',
]
