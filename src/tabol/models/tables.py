import random
from itertools import accumulate
from typing import Any, List, Set, Tuple
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from tabol.models.schemas import Interpolation, RulePart

# ============================================================
# TABLE STRUCTURES
# ============================================================
class Rule(BaseModel):
    """One weighted alternative of a table."""
    model_config = ConfigDict(frozen=True)

    raw: str                                                # Source text of the rule body, for diagnostics
    weight: float = Field(ge=0, allow_inf_nan=False)        # Relative chance of being picked
    parts: Tuple[RulePart, ...] = Field(min_length=1)

    @property
    def references(self) -> Set[str]:
        """Ids of every table this rule interpolates."""
        return {part.target for part in self.parts if isinstance(part, Interpolation)}


class TableDefinition(BaseModel):
    """
    A named, weighted collection of rules.

    The cumulative weights are computed once here so that sampling a rule is
    a bisection over a precomputed list rather than a pass over every weight.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str
    rules: Tuple[Rule, ...] = Field(min_length=1)

    _cumulative_weights: Tuple[float, ...] = PrivateAttr(default=())

    def model_post_init(self, __context: Any) -> None:
        self._cumulative_weights = tuple(accumulate(rule.weight for rule in self.rules))

    @property
    def weights(self) -> List[float]:
        return [rule.weight for rule in self.rules]

    @property
    def cumulative_weights(self) -> Tuple[float, ...]:
        return self._cumulative_weights

    @property
    def total_weight(self) -> float:
        return self._cumulative_weights[-1]

    @property
    def probabilities(self) -> List[float]:
        """Chance of each rule being picked: weight_i / sum(weights)."""
        total = self.total_weight
        return [rule.weight / total for rule in self.rules]

    @property
    def references(self) -> Set[str]:
        """Ids of every table any rule of this table interpolates."""
        return set().union(*(rule.references for rule in self.rules))

    def sample_index(self, rng: random.Random) -> int:
        """Pick a rule index according to the table's weights."""
        return rng.choices(range(len(self.rules)), cum_weights=self._cumulative_weights)[0]
