"""Exceptions raised by catalog loading and lookup."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for translation catalog errors."""

    pass


class ParseError(CatalogError):
    """A serialized catalog could not be parsed.

    Attributes:
        line: 1-based line of the offending element, if known.
        column: 0-based column of the offending element, if known.
        element: Name of the offending element, if known.
        source: Path or description of the parsed input.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        element: str | None = None,
        source: str | None = None,
    ) -> None:
        self.reason = message
        self.line = line
        self.column = column
        self.element = element
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.source:
            parts.append(self.source)
        if self.line is not None:
            parts.append(f"line {self.line}")
            if self.column is not None:
                parts.append(f"column {self.column}")
        location = ", ".join(parts)
        if self.element:
            reason = f"<{self.element}>: {self.reason}"
        else:
            reason = self.reason
        return f"{location}: {reason}" if location else reason

    def with_source(self, source: str) -> "ParseError":
        """Return a copy of this error tagged with an input description."""
        return ParseError(
            self.reason,
            line=self.line,
            column=self.column,
            element=self.element,
            source=source,
        )


class LookupMiss(CatalogError):
    """No message exists for a (context, source) pair.

    Distinct from a message that exists but is not translated yet, which
    resolves to its source text without raising.
    """

    def __init__(self, context: str, source: str, comment: str = "") -> None:
        self.context = context
        self.source = source
        self.comment = comment
        if comment:
            message = f"No message {source!r} ({comment}) in context {context!r}"
        else:
            message = f"No message {source!r} in context {context!r}"
        super().__init__(message)
