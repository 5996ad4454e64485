"""Consistency checks for translation catalogs.

The checks flag problems a translator or a release pipeline should look
at before shipping a catalog. None of them make a catalog unusable:
lookups keep working and fall back to source text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator

from tscatalog.models import Catalog, Context, Message
from tscatalog.plural import numerus_form_count


class Severity(str, Enum):
    """Severity levels for catalog issues."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __ge__(self, other: "Severity") -> bool:
        order = [Severity.LOW, Severity.MEDIUM, Severity.HIGH]
        return order.index(self) >= order.index(other)

    def __gt__(self, other: "Severity") -> bool:
        order = [Severity.LOW, Severity.MEDIUM, Severity.HIGH]
        return order.index(self) > order.index(other)

    def __le__(self, other: "Severity") -> bool:
        order = [Severity.LOW, Severity.MEDIUM, Severity.HIGH]
        return order.index(self) <= order.index(other)

    def __lt__(self, other: "Severity") -> bool:
        order = [Severity.LOW, Severity.MEDIUM, Severity.HIGH]
        return order.index(self) < order.index(other)


@dataclass(frozen=True)
class CatalogIssue:
    """A single problem found in a catalog."""

    context: str
    source: str
    issue_type: str
    severity: Severity
    details: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "source": self.source,
            "issue_type": self.issue_type,
            "severity": self.severity.value,
            "details": self.details,
        }


MessageCheck = Callable[[Catalog, Context, Message], Iterator[CatalogIssue]]


def _empty_finished(catalog: Catalog, context: Context, message: Message) -> Iterator[CatalogIssue]:
    if message.state.is_complete and not message.state.is_stale and not message.is_translated:
        yield CatalogIssue(
            context.name,
            message.source,
            "empty_translation",
            Severity.MEDIUM,
            "marked finished but has no text",
        )


def _comment_segments(catalog: Catalog, context: Context, message: Message) -> Iterator[CatalogIssue]:
    segments = message.comment_segments()
    if len(segments) > 1 and len(segments) != len(message.locations):
        yield CatalogIssue(
            context.name,
            message.source,
            "comment_location_mismatch",
            Severity.LOW,
            f"{len(segments)} comment segments for {len(message.locations)} locations",
        )


def _numerus_forms(catalog: Catalog, context: Context, message: Message) -> Iterator[CatalogIssue]:
    if not message.numerus or not catalog.language or not message.numerus_forms:
        return
    expected = numerus_form_count(catalog.language)
    if len(message.numerus_forms) != expected:
        yield CatalogIssue(
            context.name,
            message.source,
            "numerus_form_count",
            Severity.MEDIUM,
            f"{len(message.numerus_forms)} forms, {catalog.language} uses {expected}",
        )


def _no_location(catalog: Catalog, context: Context, message: Message) -> Iterator[CatalogIssue]:
    if not message.locations and not message.state.is_stale:
        yield CatalogIssue(
            context.name,
            message.source,
            "no_location",
            Severity.LOW,
            "message is not referenced from any source file",
        )


MESSAGE_CHECKS: list[MessageCheck] = [
    _empty_finished,
    _comment_segments,
    _numerus_forms,
    _no_location,
]


def _duplicates(context: Context) -> Iterator[CatalogIssue]:
    seen: set[tuple[str, str]] = set()
    for message in context:
        if message.key in seen:
            yield CatalogIssue(
                context.name,
                message.source,
                "duplicate_message",
                Severity.HIGH,
                "only the first message with this source is used",
            )
        seen.add(message.key)


def check_catalog(
    catalog: Catalog,
    *,
    min_severity: Severity = Severity.LOW,
) -> list[CatalogIssue]:
    """Run all checks on a catalog.

    Args:
        catalog: Catalog to check.
        min_severity: Drop issues below this severity.

    Returns:
        Issues in catalog order.
    """
    issues: list[CatalogIssue] = []
    for context in catalog.contexts:
        issues.extend(_duplicates(context))
        for message in context:
            for check in MESSAGE_CHECKS:
                issues.extend(check(catalog, context, message))
    return [issue for issue in issues if issue.severity >= min_severity]
