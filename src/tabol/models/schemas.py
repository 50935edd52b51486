import typing
from typing import Annotated, Tuple, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

# ============================================================
# FILTERS: Text transforms applied to an interpolated value, in pipeline order.
# ============================================================
class FilterOp(str, Enum):
    DEFINITE_ARTICLE = "definite"           # the sword
    INDEFINITE_ARTICLE = "indefinite"       # a bear / an apple
    CAPITALIZE = "capitalize"               # elf -> Elf

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]


# ============================================================
# RULE PARTS: A rule's text is an ordered sequence of these.
# ============================================================
class Literal(BaseModel):
    """Text copied verbatim into the output."""
    model_config = ConfigDict(frozen=True)

    kind: typing.Literal["literal"] = "literal"
    text: str = Field(min_length=1)


class Interpolation(BaseModel):
    """`{{target|filter|...}}`: the output of another table, post-processed by filters."""
    model_config = ConfigDict(frozen=True)

    kind: typing.Literal["interpolation"] = "interpolation"
    target: str = Field(min_length=1)      # Table id, looked up in the registry at resolution time
    filters: Tuple[FilterOp, ...] = ()     # Applied left to right


class DiceRoll(BaseModel):
    """`{{2d6}}`: the decimal sum of `count` dice with `sides` faces."""
    model_config = ConfigDict(frozen=True)

    kind: typing.Literal["dice"] = "dice"
    count: int = Field(default=1, ge=0)    # `{{d6}}` rolls one die; zero dice sum to 0
    sides: int = Field(ge=1)


RulePart = Annotated[Union[Literal, Interpolation, DiceRoll], Field(discriminator="kind")]
