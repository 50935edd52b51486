"""Text filters applied to interpolated values, e.g. `{{animal|capitalize|indefinite}}`."""

from typing import Callable, Dict, Iterable

from tabol.models import FilterOp

VOWELS = frozenset("aeiouAEIOU")


def definite(value: str) -> str:
    return f"the {value}"


def indefinite(value: str) -> str:
    """Prefix `an` before a leading vowel, `a` otherwise."""
    article = "an" if value[:1] in VOWELS else "a"
    return f"{article} {value}"


def capitalize(value: str) -> str:
    """
    Uppercase the first character only; unlike str.capitalize the rest is untouched.

    A character whose uppercase form is several characters (`ß` -> `SS`) is
    left as it is, so the result always has the same length as the input.
    """
    first = value[:1].upper()
    if len(first) != 1:
        first = value[:1]
    return first + value[1:]


FILTERS: Dict[FilterOp, Callable[[str], str]] = {
    FilterOp.DEFINITE_ARTICLE: definite,
    FilterOp.INDEFINITE_ARTICLE: indefinite,
    FilterOp.CAPITALIZE: capitalize,
}


def apply_filter(value: str, op: FilterOp) -> str:
    return FILTERS[op](value)


def apply_filters(value: str, ops: Iterable[FilterOp]) -> str:
    """Run a filter pipeline in declared order; each filter sees the previous one's output."""
    for op in ops:
        value = apply_filter(value, op)
    return value
