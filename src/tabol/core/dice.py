import re
import random

# ============================================================
# DICE
# ============================================================

# `NdS` or `dS`; an omitted count means one die
DICE_FORMULA = re.compile(r"([0-9]*)d([0-9]+)")


def roll(count: int, sides: int, rng: random.Random | None = None) -> int:
    """
    Sum of `count` independent draws from the closed interval [1, sides].

    Rolling zero dice yields 0. A fresh `random.Random` is used when no
    generator is given, so callers never share sampling state by accident.
    """
    if count < 0:
        raise ValueError(f"Cannot roll a negative number of dice: {count}")
    if sides < 1:
        raise ValueError(f"A die needs at least one side, got {sides}")

    rng = rng or random.Random()

    total = 0
    for _ in range(count):
        total += rng.randint(1, sides)

    return total


def parse_formula(formula: str) -> tuple[int, int]:
    """Parses a dice string (e.g. '2d6', 'd20') into (count, sides)."""
    match = DICE_FORMULA.fullmatch(formula.strip())

    if not match:
        raise ValueError(f"Invalid dice formula format: {formula}")

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    return count, sides


def roll_formula(formula: str, rng: random.Random | None = None) -> int:
    """Parses a dice string and rolls it."""
    count, sides = parse_formula(formula)
    return roll(count, sides, rng)
