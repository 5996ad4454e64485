"""Translation coverage reporting.

Two views of coverage are provided:

- :func:`compute_coverage` walks a loaded catalog and counts translated,
  missing and stale messages per context.
- :class:`MissTracker` counts lookups that found no message at all, as
  reported at runtime by the registry.

Example:
    from tscatalog import load_file
    from tscatalog.coverage import compute_coverage

    report = compute_coverage(load_file("awattar-de_DE.ts"))
    print(report)              # rich table
    df = report.to_frame()     # polars DataFrame
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import polars as pl
from rich.console import Console
from rich.table import Table

from tscatalog.errors import LookupMiss
from tscatalog.models import Catalog, Context


@dataclass(frozen=True)
class ContextCoverage:
    """Translation counts for one context."""

    name: str
    total: int
    translated: int
    stale: int = 0

    @property
    def missing(self) -> int:
        return self.total - self.translated

    @property
    def ratio(self) -> float:
        if self.total == 0:
            return 1.0
        return self.translated / self.total

    @classmethod
    def from_context(cls, context: Context) -> "ContextCoverage":
        return cls(
            name=context.name,
            total=len(context),
            translated=sum(1 for m in context if m.is_translated),
            stale=sum(1 for m in context if m.state.is_stale),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.name,
            "total": self.total,
            "translated": self.translated,
            "missing": self.missing,
            "stale": self.stale,
            "ratio": round(self.ratio, 4),
        }


@dataclass
class CoverageReport:
    """Coverage of a whole catalog, one entry per context."""

    language: str
    contexts: list[ContextCoverage] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(c.total for c in self.contexts)

    @property
    def translated(self) -> int:
        return sum(c.translated for c in self.contexts)

    @property
    def missing(self) -> int:
        return sum(c.missing for c in self.contexts)

    @property
    def stale(self) -> int:
        return sum(c.stale for c in self.contexts)

    @property
    def ratio(self) -> float:
        if self.total == 0:
            return 1.0
        return self.translated / self.total

    @property
    def complete(self) -> bool:
        return self.missing == 0

    def get(self, name: str) -> ContextCoverage | None:
        for context in self.contexts:
            if context.name == name:
                return context
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "total": self.total,
            "translated": self.translated,
            "missing": self.missing,
            "stale": self.stale,
            "ratio": round(self.ratio, 4),
            "contexts": [c.to_dict() for c in self.contexts],
        }

    def to_frame(self) -> pl.DataFrame:
        """One row per context."""
        return pl.DataFrame(
            [c.to_dict() for c in self.contexts],
            schema={
                "context": pl.String,
                "total": pl.Int64,
                "translated": pl.Int64,
                "missing": pl.Int64,
                "stale": pl.Int64,
                "ratio": pl.Float64,
            },
        )

    def __str__(self) -> str:
        """Return a formatted string representation using Rich."""
        console = Console(force_terminal=True, width=100)
        with console.capture() as capture:
            self.print_to_console(console)
        return capture.get()

    def print_to_console(self, console: Console | None = None) -> None:
        """Print the report to a Rich console."""
        console = console or Console()
        console.print()
        title = f"Translation coverage ({self.language})" if self.language else "Translation coverage"
        console.print(f"[bold]{title}[/bold]")
        console.print("━" * 70)

        if not self.contexts:
            console.print("[dim]Catalog has no contexts[/dim]")
            console.print()
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Context", style="cyan")
        table.add_column("Messages", justify="right")
        table.add_column("Translated", justify="right")
        table.add_column("Missing", justify="right")
        table.add_column("Stale", justify="right", style="dim")
        table.add_column("Coverage", justify="right")

        for c in self.contexts:
            style = _ratio_style(c.ratio)
            table.add_row(
                c.name,
                str(c.total),
                str(c.translated),
                str(c.missing),
                str(c.stale),
                f"[{style}]{c.ratio:.1%}[/{style}]",
            )

        console.print(table)
        style = _ratio_style(self.ratio)
        console.print(
            f"Total: {self.translated}/{self.total} translated "
            f"([{style}]{self.ratio:.1%}[/{style}])"
        )
        console.print()


def _ratio_style(ratio: float) -> str:
    if ratio >= 1.0:
        return "green"
    if ratio >= 0.5:
        return "yellow"
    return "red"


def compute_coverage(catalog: Catalog) -> CoverageReport:
    """Count translated and missing messages per context."""
    return CoverageReport(
        language=catalog.language,
        contexts=[ContextCoverage.from_context(c) for c in catalog.contexts],
    )


def messages_frame(catalog: Catalog) -> pl.DataFrame:
    """One row per message, for export and ad-hoc analysis."""
    rows = [
        {
            "context": context,
            "source": message.source,
            "comment": message.comment,
            "translation": message.translation,
            "state": message.state.value,
            "translated": message.is_translated,
            "numerus": message.numerus,
            "numerus_forms": list(message.numerus_forms),
            "locations": [str(location) for location in message.locations],
            "extra_comment": message.extra_comment,
        }
        for context, message in catalog.messages()
    ]
    return pl.DataFrame(
        rows,
        schema={
            "context": pl.String,
            "source": pl.String,
            "comment": pl.String,
            "translation": pl.String,
            "state": pl.String,
            "translated": pl.Boolean,
            "numerus": pl.Boolean,
            "numerus_forms": pl.List(pl.String),
            "locations": pl.List(pl.String),
            "extra_comment": pl.String,
        },
    )


class MissTracker:
    """Thread-safe counter of lookups that found no message.

    Keys are (locale, context, source) triples.
    """

    def __init__(self) -> None:
        self._counts: Counter[tuple[str, str, str]] = Counter()
        self._lock = threading.Lock()

    def record(self, locale: str, miss: LookupMiss) -> bool:
        """Count a miss.

        Returns:
            True when this is the first miss for the key.
        """
        key = (locale, miss.context, miss.source)
        with self._lock:
            self._counts[key] += 1
            return self._counts[key] == 1

    def count(self, locale: str, context: str, source: str) -> int:
        with self._lock:
            return self._counts.get((locale, context, source), 0)

    def snapshot(self) -> dict[tuple[str, str, str], int]:
        with self._lock:
            return dict(self._counts)

    def clear(self) -> None:
        with self._lock:
            self._counts.clear()

    def to_frame(self) -> pl.DataFrame:
        """One row per missed key, most frequent first."""
        rows = [
            {"locale": locale, "context": context, "source": source, "count": count}
            for (locale, context, source), count in self.snapshot().items()
        ]
        frame = pl.DataFrame(
            rows,
            schema={
                "locale": pl.String,
                "context": pl.String,
                "source": pl.String,
                "count": pl.Int64,
            },
        )
        return frame.sort("count", descending=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
