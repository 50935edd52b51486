import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Tuple

from tabol.core.dice import roll
from tabol.core.exceptions import CallError, DefinitionError, RecursionLimitError
from tabol.core.filters import apply_filters
from tabol.models import DiceRoll, FilterOp, Interpolation, Literal, Rule, RulePart, TableDefinition

if TYPE_CHECKING:
    from tabol.core.registry import TableRegistry

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """One table being resolved: the rule it picked and the text produced so far."""
    table_id: str
    parts: Tuple[RulePart, ...]
    filters: Tuple[FilterOp, ...] = ()      # Applied to the finished text before it joins the parent
    index: int = 0                          # Next part to evaluate
    pieces: List[str] = field(default_factory=list)


class ResolutionEngine:
    """
    Evaluates table invocations into text. No state of its own beyond the
    depth cap: the registry is read-only and every call carries its own
    random generator, so one engine can serve concurrent callers.

    Nested interpolations are resolved with an explicit stack of frames
    rather than Python recursion, so `max_depth` is the only limit on how
    deep a generation may go.
    """

    DEFAULT_MAX_DEPTH = 100

    def __init__(self, max_depth: int | None = None):
        self.max_depth = self.DEFAULT_MAX_DEPTH if max_depth is None else max_depth
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")

    def generate(
        self,
        registry: "TableRegistry",
        table_id: str,
        rng: random.Random | None = None,
    ) -> str:
        """
        Generate one string from the table `table_id`.

        Raises:
            CallError: no table has that id.
            RecursionLimitError: interpolations nested deeper than `max_depth`.
        """
        return self._generate(registry, table_id, rng or random.Random())

    def generate_many(
        self,
        registry: "TableRegistry",
        table_id: str,
        count: int,
        rng: random.Random | None = None,
    ) -> List[str]:
        """
        Generate `count` independent strings from `table_id`.

        All or nothing: if any generation fails the error propagates and no
        partial list is returned.
        """
        if count < 0:
            raise CallError(f"Cannot generate a negative number of results: {count}", table_id=table_id)

        self._lookup(registry, table_id, chain=())
        rng = rng or random.Random()
        return [self._generate(registry, table_id, rng) for _ in range(count)]

    def validate_rule(self, registry: "TableRegistry", table: TableDefinition, rule: Rule) -> None:
        """
        Check a rule without generating from it: every interpolation target
        must exist in `registry` and every dice roll must be in bounds.
        Nothing is rolled and no other table is visited, so cyclic tables
        and huge dice counts validate in constant time per part.

        Raises:
            DefinitionError: naming the table and the offending rule.
        """
        for part in rule.parts:
            if isinstance(part, Interpolation) and part.target not in registry:
                raise DefinitionError(
                    f"Table `{table.id}` interpolates unknown table `{part.target}` in rule `{rule.raw}`",
                    table_id=table.id,
                    rule=rule.raw,
                )
            if isinstance(part, DiceRoll) and (part.count < 0 or part.sides < 1):
                raise DefinitionError(
                    f"Table `{table.id}` has an invalid dice roll {part.count}d{part.sides} in rule `{rule.raw}`",
                    table_id=table.id,
                    rule=rule.raw,
                )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _lookup(self, registry: "TableRegistry", table_id: str, chain: Tuple[str, ...]) -> TableDefinition:
        table = registry.get(table_id)
        if table is None:
            via = f" (via {' -> '.join(chain)})" if chain else ""
            raise CallError(f"No table found with id {table_id}{via}", table_id=table_id)
        return table

    def _enter(
        self,
        registry: "TableRegistry",
        stack: List[_Frame],
        table_id: str,
        filters: Tuple[FilterOp, ...],
        rng: random.Random,
    ) -> None:
        """Pick a rule of `table_id` and push it as the innermost frame."""
        chain = tuple(frame.table_id for frame in stack)
        table = self._lookup(registry, table_id, chain)

        chain += (table_id,)
        if len(chain) > self.max_depth:
            raise RecursionLimitError(
                f"Interpolation depth exceeded {self.max_depth} while generating `{chain[0]}`",
                chain=chain,
            )

        index = table.sample_index(rng)
        logger.debug("Table %s picked rule %d at depth %d", table_id, index, len(chain))
        stack.append(_Frame(table_id, table.rules[index].parts, filters))

    def _generate(self, registry: "TableRegistry", table_id: str, rng: random.Random) -> str:
        """
        Evaluate parts left to right; an interpolation suspends the current
        frame until the nested table's text is finished and filtered.
        """
        stack: List[_Frame] = []
        self._enter(registry, stack, table_id, (), rng)

        while True:
            frame = stack[-1]

            if frame.index < len(frame.parts):
                part = frame.parts[frame.index]
                frame.index += 1
                if isinstance(part, Literal):
                    frame.pieces.append(part.text)
                elif isinstance(part, DiceRoll):
                    frame.pieces.append(str(roll(part.count, part.sides, rng)))
                else:
                    self._enter(registry, stack, part.target, part.filters, rng)
                continue

            stack.pop()
            value = apply_filters("".join(frame.pieces), frame.filters)
            if not stack:
                return value
            stack[-1].pieces.append(value)
