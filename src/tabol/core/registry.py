import logging
import random
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Set

from tabol.core.exceptions import DefinitionError
from tabol.core.parser import parse
from tabol.core.reference_graph import ReferenceGraph
from tabol.core.resolution_engine import ResolutionEngine
from tabol.models import TableDefinition

logger = logging.getLogger(__name__)


class TableRegistry:
    """
    The validated, read-only set of tables available for generation.

    All cross-table references go through id lookup here, so cyclic tables
    never need cyclic object links. Build a new registry to reload; there is
    no incremental mutation.
    """

    def __init__(
        self,
        tables: Mapping[str, TableDefinition],
        engine: ResolutionEngine | None = None,
    ):
        self._tables: Mapping[str, TableDefinition] = MappingProxyType(dict(tables))
        self.engine = engine or ResolutionEngine()
        self.graph = ReferenceGraph.from_tables(self._tables.values())

    @classmethod
    def build(
        cls,
        definitions: Iterable[TableDefinition],
        engine: ResolutionEngine | None = None,
    ) -> "TableRegistry":
        """
        Index and validate a document's tables.

        Raises:
            DefinitionError: duplicate id, a table whose weights sum to zero,
                or a rule that fails to resolve (e.g. a missing interpolation target).
        """
        tables: dict[str, TableDefinition] = {}
        for definition in definitions:
            if definition.id in tables:
                raise DefinitionError(f"Duplicate table id `{definition.id}`", table_id=definition.id)
            if definition.total_weight <= 0:
                raise DefinitionError(
                    f"Table `{definition.id}` cannot be sampled: its rule weights sum to zero",
                    table_id=definition.id,
                )
            tables[definition.id] = definition

        registry = cls(tables, engine)

        # Full validation pass: every rule of every table, once
        for table in registry.tables():
            for rule in table.rules:
                registry.engine.validate_rule(registry, table, rule)

        for cycle in registry.graph.find_cycles():
            logger.debug("Reference cycle: %s", " -> ".join(cycle + cycle[:1]))
        for table_id in sorted(registry.graph.non_terminating()):
            logger.warning(
                "Table %s can never finish resolving: every rule recurses without end", table_id
            )

        logger.debug("Table IDs: %s", registry.ids())
        return registry

    @classmethod
    def from_source(cls, source: str, engine: ResolutionEngine | None = None) -> "TableRegistry":
        """Parse and build in one step. Raises ParseError or DefinitionError."""
        return cls.build(parse(source), engine)

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def get(self, table_id: str) -> TableDefinition | None:
        return self._tables.get(table_id)

    def ids(self) -> Set[str]:
        return set(self._tables)

    def tables(self) -> List[TableDefinition]:
        """Tables in definition order."""
        return list(self._tables.values())

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"TableRegistry(tables={len(self)})"

    # =========================================================================
    # GENERATION
    # =========================================================================

    def generate(self, table_id: str, rng: random.Random | None = None) -> str:
        return self.engine.generate(self, table_id, rng)

    def generate_many(self, table_id: str, count: int, rng: random.Random | None = None) -> List[str]:
        return self.engine.generate_many(self, table_id, count, rng)
