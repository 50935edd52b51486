"""
Recursive-descent parser for table definition source.

```
document      := blank* table (blank* table)* blank*
table         := frontmatter rule_line+
frontmatter   := "---" NEWLINE attr+ "---" NEWLINE
attr          := IDENT ": " REST_OF_LINE NEWLINE      (must include `id` and `title`)
rule_line     := WEIGHT (": " | ". ") rule_body (NEWLINE | EOF)
rule_body     := rule_part+
rule_part     := dice_roll | interpolation | literal
dice_roll     := "{{" DIGITS? "d" DIGITS "}}"
interpolation := "{{" IDENT ("|" FILTER_NAME)* "}}"
literal       := any non-empty run of characters up to the next "{{" or line end
```

Each grammar rule is one method. Methods push a label while they run, so a
failure is reported against the most specific rule that was being parsed,
together with the line and column where it happened.
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from tabol.core.exceptions import ParseError
from tabol.models import DiceRoll, FilterOp, Interpolation, Literal, Rule, RulePart, TableDefinition

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

IDENT = re.compile(r"\w+")
DIGITS = re.compile(r"[0-9]+")
WEIGHT = re.compile(r"[0-9]+(?:\.[0-9]+)?|\.[0-9]+")
# `{{`, optional count, `d`, and then anything but a letter or `_`: `{{d6}}`
# and `{{d}}` are dice (the latter malformed), `{{dragon}}` is an interpolation.
DICE_HEAD = re.compile(r"\{\{([0-9]*)d(?![^\W\d])")

FRONTMATTER_FENCE = "---"
RULE_SEPARATORS = (": ", ". ")
REQUIRED_ATTRIBUTES = ("id", "title")


class _Parser:
    """Single-use cursor over one source document."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self._labels: List[str] = []

    # =========================================================================
    # DOCUMENT
    # =========================================================================

    def parse_document(self) -> List[TableDefinition]:
        tables: List[TableDefinition] = []

        self._skip_blank_lines()
        if self._at_end():
            self._fail("expected at least one table definition", label="empty document")

        while not self._at_end():
            tables.append(self._table())
            self._skip_blank_lines()

        return tables

    # =========================================================================
    # TABLE
    # =========================================================================

    def _table(self) -> TableDefinition:
        with self._context("table definition"):
            start = self.pos
            attributes = self._frontmatter()

            if not self._more_rules():
                self._fail(f"table `{attributes['id']}` needs at least one rule", label="missing rules")
            rules = [self._rule_line()]
            while self._more_rules():
                rules.append(self._rule_line())

            table = self._model(
                TableDefinition,
                start,
                id=attributes["id"],
                title=attributes["title"],
                rules=rules,
            )
            logger.debug("Parsed table %s (%d rules)", table.id, len(table.rules))
            return table

    def _frontmatter(self) -> Dict[str, str]:
        with self._context("frontmatter"):
            start = self.pos
            self._fence("expected `---` to open the table attributes")

            attributes: Dict[str, str] = {}
            while not self._startswith(FRONTMATTER_FENCE):
                if self._at_end():
                    self._fail("unterminated frontmatter, expected a closing `---`")
                key, value = self._attribute()
                attributes[key] = value

            if not attributes:
                self._fail("frontmatter needs at least one `name: value` attribute", label="empty frontmatter")
            self._fence("expected `---` to close the table attributes")

            for key in REQUIRED_ATTRIBUTES:
                if not attributes.get(key):
                    self._fail(
                        f"table attributes must include a non-empty `{key}`",
                        label=f"missing frontmatter {key}",
                        at=start,
                    )

            return attributes

    def _fence(self, message: str) -> None:
        self._expect(FRONTMATTER_FENCE, message)
        if not (self._newline() or self._at_end()):
            self._fail("expected a line break after `---`")

    def _attribute(self) -> Tuple[str, str]:
        with self._context("frontmatter attribute"):
            key = self._ident(
                "table attributes can only contain letters, digits and `_`",
                label="invalid attribute name",
            )
            self._expect(": ", "missing attribute separator, expected `: `")
            value = self.source[self.pos:self._line_end()]
            self.pos = self._line_end()
            if not self._newline():
                self._fail("unterminated frontmatter, expected a closing `---`")
            return key, value.strip()

    # =========================================================================
    # RULES
    # =========================================================================

    def _more_rules(self) -> bool:
        """A rule block runs until the end of input, a blank line or the next `---`."""
        if self._at_end():
            return False
        line = self.source[self.pos:self._line_end()]
        return bool(line.strip()) and not line.startswith(FRONTMATTER_FENCE)

    def _rule_line(self) -> Rule:
        with self._context("rule"):
            start = self.pos
            weight = self._weight()

            if not any(self._startswith(sep) for sep in RULE_SEPARATORS):
                self._fail("missing rule separator, expected `: ` or `. `", label="invalid rule separator")
            self.pos += 2

            body_start = self.pos
            parts = self._rule_body()
            raw = self.source[body_start:self.pos]

            if not (self._newline() or self._at_end()):
                self._fail("expected the end of the line")

            return self._model(Rule, start, raw=raw, weight=weight, parts=parts)

    def _weight(self) -> float:
        match = WEIGHT.match(self.source, self.pos)
        if not match:
            self._fail(
                "rule should start with a non-negative integer or decimal weight",
                label="invalid rule weight",
            )
        self.pos = match.end()
        return float(match.group())

    def _rule_body(self) -> List[RulePart]:
        with self._context("rule text"):
            end = self._line_end()
            parts: List[RulePart] = []

            while self.pos < end:
                parts.append(self._rule_part(end))

            if not parts:
                self._fail(
                    "expected a dice roll (`{{2d4}}`), an interpolation (`{{other}}`) or literal text",
                    label="empty rule",
                )
            return parts

    def _rule_part(self, end: int) -> RulePart:
        part = self._dice_roll(end)
        if part is None:
            part = self._interpolation(end)
        if part is None:
            part = self._literal(end)
        return part

    # =========================================================================
    # RULE PARTS
    # =========================================================================

    def _dice_roll(self, end: int) -> DiceRoll | None:
        head = DICE_HEAD.match(self.source, self.pos, end)
        if not head:
            return None

        with self._context("dice roll"):
            start = self.pos
            self.pos = head.end()
            count = int(head.group(1)) if head.group(1) else 1

            sides_at = self.pos
            sides = DIGITS.match(self.source, self.pos, end)
            if not sides:
                self._fail("expected the number of sides after `d`", label="malformed dice roll")
            self.pos = sides.end()

            if int(sides.group()) < 1:
                self._fail("a die needs at least one side", label="malformed dice roll", at=sides_at)
            if not self._startswith("}}", end):
                self._fail("expected `}}` to close the dice roll", label="unterminated dice roll")
            self.pos += 2

            return self._model(DiceRoll, start, count=count, sides=int(sides.group()))

    def _interpolation(self, end: int) -> Interpolation | None:
        if not self._startswith("{{", end):
            return None

        with self._context("interpolation"):
            start = self.pos
            self.pos += 2
            target = self._ident(
                "expected a table id (letters, digits and `_`) after `{{`",
                label="invalid interpolation target",
                end=end,
            )

            filters: List[FilterOp] = []
            while self._startswith("|", end):
                self.pos += 1
                filters.append(self._filter(end))

            if not self._startswith("}}", end):
                self._fail("expected `}}` to close the interpolation", label="unterminated interpolation")
            self.pos += 2

            return self._model(Interpolation, start, target=target, filters=tuple(filters))

    def _filter(self, end: int) -> FilterOp:
        with self._context("filter"):
            start = self.pos
            name = self._ident("expected a filter name after `|`", label="invalid filter", end=end)
            if name not in FilterOp.names():
                self._fail(
                    f"unknown filter `{name}`, expected one of {', '.join(FilterOp.names())}",
                    label="unknown filter",
                    at=start,
                )
            return FilterOp(name)

    def _literal(self, end: int) -> Literal:
        with self._context("literal"):
            stop = self.source.find("{{", self.pos, end)
            if stop == -1:
                stop = end
            if stop == self.pos:
                self._fail("expected literal text")

            start, self.pos = self.pos, stop
            return self._model(Literal, start, text=self.source[start:stop])

    # =========================================================================
    # HELPERS
    # =========================================================================

    @contextmanager
    def _context(self, label: str) -> Iterator[None]:
        self._labels.append(label)
        try:
            yield
        finally:
            self._labels.pop()

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _startswith(self, token: str, end: int | None = None) -> bool:
        if end is None:
            return self.source.startswith(token, self.pos)
        return self.source.startswith(token, self.pos, end)

    def _expect(self, token: str, message: str) -> None:
        if not self._startswith(token):
            self._fail(message)
        self.pos += len(token)

    def _ident(self, message: str, *, label: str, end: int | None = None) -> str:
        match = IDENT.match(self.source, self.pos, len(self.source) if end is None else end)
        if not match:
            self._fail(message, label=label)
        self.pos = match.end()
        return match.group()

    def _line_end(self) -> int:
        """Index of the line break ending the current line (before any `\\r`)."""
        end = self.source.find("\n", self.pos)
        if end == -1:
            return len(self.source)
        if end > self.pos and self.source[end - 1] == "\r":
            return end - 1
        return end

    def _newline(self) -> bool:
        for token in ("\r\n", "\n"):
            if self._startswith(token):
                self.pos += len(token)
                return True
        return False

    def _skip_blank_lines(self) -> None:
        while not self._at_end():
            end = self._line_end()
            if self.source[self.pos:end].strip():
                return
            self.pos = end
            if not self._newline():
                return

    def _model(self, model: Type[M], at: int, **fields: Any) -> M:
        try:
            return model(**fields)
        except ValidationError as e:
            error = e.errors()[0]
            self._fail(f"invalid {model.__name__}: {error['msg']}", at=at)

    def _location(self, at: int) -> Tuple[int, int]:
        line = self.source.count("\n", 0, at) + 1
        line_start = self.source.rfind("\n", 0, at) + 1
        return line, at - line_start + 1

    def _excerpt(self, line: int) -> List[Tuple[int, str]]:
        lines = [text.rstrip("\r") for text in self.source.split("\n")]
        first = max(1, line - 1)
        return [(number, lines[number - 1]) for number in range(first, line + 1)]

    def _fail(self, message: str, *, label: str | None = None, at: int | None = None):
        at = self.pos if at is None else at
        line, column = self._location(at)
        raise ParseError(
            message,
            line=line,
            column=column,
            label=label or (self._labels[-1] if self._labels else "document"),
            context=self._labels,
            excerpt=self._excerpt(line),
        )


def parse(source: str) -> List[TableDefinition]:
    """
    Parse a table definition document into its tables, in source order.

    Raises:
        ParseError: the source does not match the grammar.
    """
    tables = _Parser(source).parse_document()
    logger.debug("Parsed %d table definitions", len(tables))
    return tables
