# ============================================================
# TABLE EXCEPTIONS
# ============================================================
from typing import List, Sequence, Tuple


class TabolError(Exception):
    """Base exception for table definition and generation errors"""
    pass


class ParseError(TabolError):
    """
    Table source text does not match the grammar.

    Carries the 1-based line and column of the failure, the label of the most
    specific grammar rule that failed, the trail of enclosing rules, and the
    offending source line(s) so the error can be rendered with a caret.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int,
        column: int,
        label: str,
        context: Sequence[str] = (),
        excerpt: Sequence[Tuple[int, str]] = (),
    ):
        self.message = message
        self.line = line
        self.column = column
        self.label = label
        self.context = tuple(context)
        self.excerpt = tuple(excerpt)
        super().__init__(self.render())

    @property
    def snippet(self) -> str:
        """The excerpt lines, numbered, with a caret under the failure column."""
        if not self.excerpt:
            return ""

        width = len(str(self.excerpt[-1][0]))
        rendered: List[str] = []
        for number, text in self.excerpt:
            rendered.append(f"{number:>{width}} | {text}")
            if number == self.line:
                # Keep tabs so the caret lines up with the source as displayed
                padding = "".join("\t" if c == "\t" else " " for c in text[: self.column - 1])
                rendered.append(f"{' ' * width} | {padding}^")
        return "\n".join(rendered)

    def render(self) -> str:
        header = f"{self.label}: {self.message} (line {self.line}, column {self.column})"
        snippet = self.snippet
        return f"{header}\n{snippet}" if snippet else header


class DefinitionError(TabolError):
    """Source parsed, but the tables it defines cannot form a valid registry"""

    def __init__(self, message: str, *, table_id: str | None = None, rule: str | None = None):
        self.table_id = table_id
        self.rule = rule
        super().__init__(message)


class CallError(TabolError):
    """A generation request names a table that does not exist"""

    def __init__(self, message: str, *, table_id: str | None = None):
        self.table_id = table_id
        super().__init__(message)


class RecursionLimitError(TabolError):
    """Interpolations nested deeper than the engine's depth cap"""

    def __init__(self, message: str, *, chain: Sequence[str] = ()):
        self.chain = tuple(chain)
        super().__init__(message)
