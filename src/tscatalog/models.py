"""In-memory model of a translation catalog.

A catalog mirrors one ``.ts`` file: an ordered sequence of contexts, each
holding ordered messages. All classes are frozen dataclasses, so a loaded
catalog can be shared between threads and looked up without locking.

Example:
    from tscatalog import load_file

    catalog = load_file("awattar-de_DE.ts")
    catalog.lookup("awattar", "Online")      # translated or "Online"
    catalog.translate("awattar", "Unknown")  # "Unknown", miss is logged
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator

from tscatalog.errors import LookupMiss
from tscatalog.plural import numerus_index

logger = logging.getLogger(__name__)

# Separator lupdate writes between per-location extra comment segments
COMMENT_SEPARATOR = "----------"


class TranslationState(str, Enum):
    """Completion state of a translation, from the ``type`` attribute."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"
    OBSOLETE = "obsolete"
    VANISHED = "vanished"

    @classmethod
    def from_attribute(cls, value: str | None) -> "TranslationState":
        """Map a ``type`` attribute value to a state.

        An absent or unrecognized value means the translation is complete.
        """
        if not value:
            return cls.FINISHED
        try:
            return cls(value)
        except ValueError:
            return cls.FINISHED

    @property
    def attribute(self) -> str | None:
        """The ``type`` attribute value to write, None for finished."""
        if self is TranslationState.FINISHED:
            return None
        return self.value

    @property
    def is_complete(self) -> bool:
        return self is not TranslationState.UNFINISHED

    @property
    def is_stale(self) -> bool:
        return self in (TranslationState.OBSOLETE, TranslationState.VANISHED)


@dataclass(frozen=True)
class Location:
    """Source position that emits a message. Informational only."""

    filename: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.filename
        return f"{self.filename}:{self.line}"


@dataclass(frozen=True)
class Message:
    """One translatable unit.

    Attributes:
        source: Untranslated text, the lookup key within a context.
        translation: Translated text, empty when not translated yet.
        state: Completion state of the translation.
        comment: Disambiguation that is part of the lookup key.
        extra_comment: Guidance for translators, unused at runtime.
        translator_comment: Note left by a translator.
        locations: Emission sites of the message.
        numerus: Whether the message has plural forms.
        numerus_forms: Translated plural forms, in the language's order.
    """

    source: str
    translation: str = ""
    state: TranslationState = TranslationState.UNFINISHED
    comment: str = ""
    extra_comment: str = ""
    translator_comment: str = ""
    locations: tuple[Location, ...] = ()
    numerus: bool = False
    numerus_forms: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.comment)

    @property
    def is_translated(self) -> bool:
        """Complete and carrying non-empty text."""
        if not self.state.is_complete:
            return False
        if self.numerus:
            return bool(self.numerus_forms) and all(self.numerus_forms)
        return bool(self.translation)

    def comment_segments(self) -> list[str]:
        """Split the extra comment into its per-location segments."""
        if not self.extra_comment:
            return []
        segments: list[list[str]] = [[]]
        for line in self.extra_comment.split("\n"):
            if line.strip() == COMMENT_SEPARATOR:
                segments.append([])
            else:
                segments[-1].append(line)
        return ["\n".join(lines).strip() for lines in segments]

    def annotated_locations(self) -> list[tuple[Location, str | None]]:
        """Pair each location with its extra comment segment.

        The pairing is positional and best effort: when the number of
        segments differs from the number of locations, every location is
        returned with None.
        """
        segments = self.comment_segments()
        if len(segments) != len(self.locations):
            return [(location, None) for location in self.locations]
        return list(zip(self.locations, segments))

    def resolve(self, language: str = "", n: int | None = None) -> str:
        """Return the text to display for this message.

        Falls back to the source text whenever the translation is not
        complete or the selected text is empty. ``%n`` is replaced by
        ``n`` when a count is given.
        """
        text = ""
        if self.state.is_complete:
            if self.numerus and self.numerus_forms:
                index = numerus_index(n if n is not None else 1, language)
                text = self.numerus_forms[min(index, len(self.numerus_forms) - 1)]
            else:
                text = self.translation
        if not text:
            text = self.source
        if n is not None:
            text = text.replace("%n", str(n))
        return text


@dataclass(frozen=True)
class Context:
    """Named group of messages, e.g. one per plugin or thing class."""

    name: str
    messages: tuple[Message, ...] = ()
    _index: dict[tuple[str, str], Message] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index: dict[tuple[str, str], Message] = {}
        for message in self.messages:
            # first occurrence wins
            index.setdefault(message.key, message)
        object.__setattr__(self, "_index", index)

    def find(self, source: str, comment: str = "") -> Message | None:
        """Find a message by source text and disambiguation comment.

        A comment that matches nothing falls back to the message with an
        empty comment.
        """
        message = self._index.get((source, comment))
        if message is None and comment:
            message = self._index.get((source, ""))
        return message

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def __contains__(self, source: str) -> bool:
        return any(key[0] == source for key in self._index)


@dataclass(frozen=True)
class Catalog:
    """All contexts of one translation file (or one locale).

    Attributes:
        version: Format version of the file, e.g. ``"2.1"``.
        language: Target locale identifier, e.g. ``"de_DE"``.
        source_language: Locale of the source texts, if declared.
        contexts: Contexts in file order; names are unique.
    """

    version: str = "2.1"
    language: str = ""
    source_language: str = ""
    contexts: tuple[Context, ...] = ()
    _index: dict[str, Context] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index: dict[str, Context] = {}
        for context in self.contexts:
            if context.name in index:
                raise ValueError(f"Duplicate context name: {context.name!r}")
            index[context.name] = context
        object.__setattr__(self, "_index", index)

    @classmethod
    def empty(cls, language: str = "") -> "Catalog":
        """Catalog without messages: every lookup misses."""
        return cls(language=language)

    def context(self, name: str) -> Context | None:
        return self._index.get(name)

    def context_names(self) -> list[str]:
        return [context.name for context in self.contexts]

    def find(self, context: str, source: str, comment: str = "") -> Message | None:
        ctx = self._index.get(context)
        if ctx is None:
            return None
        return ctx.find(source, comment)

    def lookup(
        self,
        context: str,
        source: str,
        comment: str = "",
        *,
        n: int | None = None,
    ) -> str:
        """Resolve a (context, source) pair to display text.

        Args:
            context: Context name.
            source: Source text.
            comment: Disambiguation comment.
            n: Count for numerus messages; replaces ``%n``.

        Returns:
            The complete translation, or the source text when the message
            is not translated yet.

        Raises:
            LookupMiss: No message exists for the pair.
        """
        message = self.find(context, source, comment)
        if message is None:
            raise LookupMiss(context, source, comment)
        return message.resolve(self.language, n)

    def translate(
        self,
        context: str,
        source: str,
        comment: str = "",
        *,
        n: int | None = None,
    ) -> str:
        """Like :meth:`lookup`, but a miss is logged and falls back to source."""
        try:
            return self.lookup(context, source, comment, n=n)
        except LookupMiss as e:
            logger.debug("%s (language=%s)", e, self.language or "-")
            if n is not None:
                return source.replace("%n", str(n))
            return source

    def messages(self) -> Iterator[tuple[str, Message]]:
        """Iterate over (context name, message) pairs in file order."""
        for context in self.contexts:
            for message in context.messages:
                yield context.name, message

    def merged(self, *others: "Catalog") -> "Catalog":
        """Return a new catalog with the contexts of ``others`` appended.

        Contexts with an existing name are extended. Metadata of this
        catalog is kept, an empty language is taken from the first other
        catalog that declares one.
        """
        contexts: dict[str, list[Message]] = {
            ctx.name: list(ctx.messages) for ctx in self.contexts
        }
        language = self.language
        source_language = self.source_language
        for other in others:
            language = language or other.language
            source_language = source_language or other.source_language
            for ctx in other.contexts:
                contexts.setdefault(ctx.name, []).extend(ctx.messages)
        return replace(
            self,
            language=language,
            source_language=source_language,
            contexts=tuple(
                Context(name, tuple(messages)) for name, messages in contexts.items()
            ),
        )

    def __len__(self) -> int:
        return sum(len(context) for context in self.contexts)

    def __iter__(self) -> Iterator[Context]:
        return iter(self.contexts)

    def __contains__(self, name: str) -> bool:
        return name in self._index
