"""Loading of serialized translation catalogs.

Catalogs are Qt Linguist ``.ts`` documents:

    <TS version="2.1" language="de_DE">
    <context>
        <name>awattar</name>
        <message>
            <location filename="../plugininfo.h" line="45"/>
            <source>Online</source>
            <extracomment>The name of the StateType ...</extracomment>
            <translation type="unfinished"></translation>
        </message>
    </context>
    </TS>

The document is parsed with a streaming SAX handler so that errors can be
reported with the position of the offending element. Elements the loader
does not know are skipped together with their text.

Example:
    from tscatalog.loader import CatalogLoader

    loader = CatalogLoader()
    catalog = loader.load_file(Path("translations/awattar-de_DE.ts"))
    catalogs = loader.load_directory(Path("translations"))
"""

from __future__ import annotations

import io
import logging
import re
from contextlib import closing
from dataclasses import replace
from pathlib import Path
from typing import IO, Any
from xml.sax import SAXException, SAXParseException, make_parser
from xml.sax.handler import (
    ContentHandler,
    feature_external_ges,
    feature_external_pes,
)
from xml.sax.xmlreader import AttributesImpl, Locator

from tscatalog.errors import ParseError
from tscatalog.models import Catalog, Context, Location, Message, TranslationState

logger = logging.getLogger(__name__)

_LOCALE_SUFFIX = re.compile(r"[-_.]([a-z]{2,3}(?:_[A-Z]{2})?)$")

# Message children whose text is captured
_MESSAGE_TEXT_FIELDS = {
    "source": "source",
    "comment": "comment",
    "extracomment": "extra_comment",
    "translatorcomment": "translator_comment",
    "translation": "translation",
}


def locale_from_filename(path: str | Path) -> str | None:
    """Infer the locale from a catalog file name.

    ``9c261c33-...-en_US.ts`` gives ``"en_US"``, ``app_de.ts`` gives
    ``"de"``. The locale must follow a separator, so ``hue.ts`` has
    none. Returns None when the name carries no locale suffix.
    """
    match = _LOCALE_SUFFIX.search(Path(path).stem)
    if match:
        return match.group(1)
    return None


class _MessageBuilder:
    """Accumulates the fields of one ``<message>`` element."""

    def __init__(self, numerus: bool, line: int | None, column: int | None) -> None:
        self.numerus = numerus
        self.line = line
        self.column = column
        self.fields: dict[str, Any] = {}
        self.state = TranslationState.UNFINISHED
        self.locations: list[Location] = []
        self.forms: list[str] = []
        self.variants: list[str] = []

    def build(self) -> Message:
        if "source" not in self.fields:
            raise ParseError(
                "message has no source text",
                line=self.line,
                column=self.column,
                element="message",
            )
        return Message(
            source=self.fields["source"],
            translation="" if self.numerus else self._translation(),
            state=self.state,
            comment=self.fields.get("comment", ""),
            extra_comment=self.fields.get("extra_comment", ""),
            translator_comment=self.fields.get("translator_comment", ""),
            locations=tuple(self.locations),
            numerus=self.numerus,
            numerus_forms=tuple(self.forms),
        )

    def _translation(self) -> str:
        # Length variants are ordered longest first
        if self.variants:
            return self.variants[0]
        return self.fields.get("translation", "")


class _CatalogHandler(ContentHandler):
    """SAX handler building a :class:`Catalog` from a ``.ts`` document."""

    def __init__(self) -> None:
        super().__init__()
        self._locator: Locator | None = None
        self._stack: list[str] = []
        self._text: list[str] | None = None
        self._text_depth = 0
        self._root_seen = False

        self.version = ""
        self.language = ""
        self.source_language = ""
        self.contexts: dict[str, list[Message]] = {}

        self._context_name: str | None = None
        self._context_messages: list[Message] = []
        self._context_pos: tuple[int | None, int | None] = (None, None)
        self._message: _MessageBuilder | None = None

        # lupdate's relative location style
        self._current_file = ""
        self._current_line: dict[str, int] = {}

    # -- helpers ---------------------------------------------------------

    def setDocumentLocator(self, locator: Locator) -> None:
        self._locator = locator

    def _position(self) -> tuple[int | None, int | None]:
        if self._locator is None:
            return None, None
        return self._locator.getLineNumber(), self._locator.getColumnNumber()

    def _error(self, reason: str, element: str) -> ParseError:
        line, column = self._position()
        return ParseError(reason, line=line, column=column, element=element)

    def _begin_text(self) -> None:
        self._text = []
        self._text_depth = len(self._stack) + 1

    def _take_text(self) -> str:
        text = "".join(self._text or [])
        self._text = None
        self._text_depth = 0
        return text

    # -- SAX callbacks ---------------------------------------------------

    def startElement(self, name: str, attrs: AttributesImpl) -> None:
        parent = self._stack[-1] if self._stack else None

        if parent is None:
            if name != "TS":
                raise self._error("not a translation catalog, expected <TS>", name)
            self._root_seen = True
            self.version = attrs.get("version", "")
            self.language = attrs.get("language", "")
            self.source_language = attrs.get("sourcelanguage", "")
        elif parent == "TS" and name == "context":
            self._context_name = None
            self._context_messages = []
            self._context_pos = self._position()
        elif parent == "context" and name == "name":
            self._begin_text()
        elif parent == "context" and name == "message":
            line, column = self._position()
            self._message = _MessageBuilder(attrs.get("numerus") == "yes", line, column)
        elif parent == "message" and self._message is not None:
            if name == "location":
                self._message.locations.append(self._location(attrs))
            elif name in _MESSAGE_TEXT_FIELDS:
                if name == "translation":
                    self._message.state = TranslationState.from_attribute(
                        attrs.get("type")
                    )
                self._begin_text()
        elif parent == "translation" and name == "numerusform":
            if self._message is not None and self._message.numerus:
                self._begin_text()
        elif parent == "translation" and name == "lengthvariant":
            if self._message is not None and not self._message.numerus:
                self._begin_text()
        elif name == "byte" and self._text is not None:
            self._text.append(self._byte(attrs))

        self._stack.append(name)

    def characters(self, content: str) -> None:
        if self._text is not None and len(self._stack) == self._text_depth:
            self._text.append(content)

    def endElement(self, name: str) -> None:
        self._stack.pop()
        depth = len(self._stack) + 1
        parent = self._stack[-1] if self._stack else None

        if self._text is not None and depth == self._text_depth:
            text = self._take_text()
            if parent == "context" and name == "name":
                self._context_name = text
            elif parent == "message" and self._message is not None:
                self._message.fields[_MESSAGE_TEXT_FIELDS[name]] = text
            elif parent == "translation" and self._message is not None:
                if name == "lengthvariant":
                    self._message.variants.append(text)
                else:
                    self._message.forms.append(text)
            return

        if parent == "context" and name == "message" and self._message is not None:
            self._context_messages.append(self._message.build())
            self._message = None
        elif parent == "TS" and name == "context":
            self._finish_context()

    def endDocument(self) -> None:
        if not self._root_seen:
            raise ParseError("document has no <TS> root element")

    # -- element handlers ------------------------------------------------

    def _location(self, attrs: AttributesImpl) -> Location:
        filename = attrs.get("filename")
        relative = filename is None
        if relative:
            filename = self._current_file
        else:
            self._current_file = filename
        if not filename:
            raise self._error("location has no filename", "location")

        raw_line = attrs.get("line")
        if raw_line is None:
            line = self._current_line.get(filename) if relative else None
        else:
            try:
                if raw_line.startswith(("+", "-")):
                    line = self._current_line.get(filename, 0) + int(raw_line)
                else:
                    line = int(raw_line)
            except ValueError:
                raise self._error(f"invalid line number {raw_line!r}", "location") from None
        if line is not None:
            self._current_line[filename] = line
        return Location(filename, line)

    def _byte(self, attrs: AttributesImpl) -> str:
        value = attrs.get("value", "")
        try:
            if value.startswith("x"):
                return chr(int(value[1:], 16))
            return chr(int(value))
        except ValueError:
            raise self._error(f"invalid byte value {value!r}", "byte") from None

    def _finish_context(self) -> None:
        if self._context_name is None:
            line, column = self._context_pos
            raise ParseError(
                "context has no name", line=line, column=column, element="context"
            )
        name = self._context_name
        if name in self.contexts:
            logger.warning("Context %r appears more than once, merging", name)
        messages = self.contexts.setdefault(name, [])
        seen = {message.key for message in messages}
        for message in self._context_messages:
            if message.key in seen:
                logger.warning(
                    "Duplicate message %r in context %r, first one wins",
                    message.source,
                    name,
                )
            seen.add(message.key)
            messages.append(message)

    def catalog(self) -> Catalog:
        return Catalog(
            version=self.version,
            language=self.language,
            source_language=self.source_language,
            contexts=tuple(
                Context(name, tuple(messages))
                for name, messages in self.contexts.items()
            ),
        )


def _parse(stream: IO[bytes]) -> Catalog:
    handler = _CatalogHandler()
    parser = make_parser()
    parser.setFeature(feature_external_ges, False)
    parser.setFeature(feature_external_pes, False)
    parser.setContentHandler(handler)
    try:
        parser.parse(stream)
    except SAXParseException as e:
        raise ParseError(
            e.getMessage(), line=e.getLineNumber(), column=e.getColumnNumber()
        ) from e
    except SAXException as e:
        raise ParseError(e.getMessage()) from e
    return handler.catalog()


class CatalogLoader:
    """Loader for ``.ts`` catalog files.

    Example:
        loader = CatalogLoader()

        # Single file, locale inferred from the name if not declared
        catalog = loader.load_file(Path("awattar-de_DE.ts"))

        # All files of a directory, merged per locale
        catalogs = loader.load_directory(Path("translations"))
    """

    def __init__(self, *, infer_language: bool = True) -> None:
        """Initialize loader.

        Args:
            infer_language: Take the locale from the file name when the
                document does not declare one.
        """
        self._infer_language = infer_language

    def load_stream(self, stream: IO[bytes], *, name: str | None = None) -> Catalog:
        """Parse a catalog from a binary stream.

        The stream is closed when parsing finishes, also on failure.

        Args:
            stream: Binary stream holding the document.
            name: Description of the input used in error messages.

        Returns:
            The loaded catalog.

        Raises:
            ParseError: If the document is malformed.
        """
        with closing(stream):
            try:
                return _parse(stream)
            except ParseError as e:
                if name and e.source is None:
                    raise e.with_source(name) from e.__cause__
                raise

    def load_bytes(self, data: bytes | str, *, name: str | None = None) -> Catalog:
        """Parse a catalog held in memory."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return self.load_stream(io.BytesIO(data), name=name)

    def load_file(self, path: str | Path) -> Catalog:
        """Load a catalog file.

        Raises:
            ParseError: If the file is malformed.
            FileNotFoundError: If the file does not exist.
        """
        path = Path(path)
        logger.debug("Loading catalog %s", path)
        catalog = self.load_stream(open(path, "rb"), name=str(path))
        if not catalog.language and self._infer_language:
            language = locale_from_filename(path)
            if language:
                catalog = replace(catalog, language=language)
        logger.debug(
            "Loaded %d messages in %d contexts from %s",
            len(catalog),
            len(catalog.contexts),
            path,
        )
        return catalog

    def load_directory(
        self,
        directory: str | Path,
        pattern: str = "*.ts",
    ) -> dict[str, Catalog]:
        """Load all catalogs of a directory, merged per locale.

        Args:
            directory: Directory containing catalog files.
            pattern: Glob pattern for files.

        Returns:
            Dictionary of locale to catalog.

        Raises:
            NotADirectoryError: If ``directory`` is not a directory.
            ParseError: If any file is malformed.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        catalogs: dict[str, Catalog] = {}
        for path in sorted(directory.glob(pattern)):
            catalog = self.load_file(path)
            locale = catalog.language
            if locale in catalogs:
                catalogs[locale] = catalogs[locale].merged(catalog)
            else:
                catalogs[locale] = catalog
        return catalogs


_default_loader = CatalogLoader()


def load(stream: IO[bytes]) -> Catalog:
    """Parse a catalog from a binary stream and close the stream."""
    return _default_loader.load_stream(stream)


def loads(data: bytes | str) -> Catalog:
    """Parse a catalog from a string or bytes."""
    return _default_loader.load_bytes(data)


def load_file(path: str | Path) -> Catalog:
    """Load a catalog file, inferring the locale from its name if needed."""
    return _default_loader.load_file(path)
