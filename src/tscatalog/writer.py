"""Serialization of catalogs back to ``.ts`` documents.

The output follows the element order lupdate writes (location, source,
comment, extracomment, translatorcomment, translation) and always uses
absolute locations, so a catalog survives a write/load cycle unchanged:

    loads(dumps(catalog)) == catalog
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import IO
from xml.etree import ElementTree as ET

from tscatalog.models import Catalog, Context, Message

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'
DOCTYPE = "<!DOCTYPE TS>\n"

# Characters XML 1.0 does not allow; lupdate writes them as <byte> elements
_RESTRICTED_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class CatalogWriter:
    """Renders a :class:`Catalog` as a ``.ts`` document.

    Example:
        writer = CatalogWriter(indent="    ")
        text = writer.render(catalog)
        writer.write(catalog, Path("awattar-de_DE.ts"))
    """

    def __init__(self, *, indent: str = "    ") -> None:
        """Initialize writer.

        Args:
            indent: Indentation unit, empty for compact output.
        """
        self._indent = indent

    def render(self, catalog: Catalog) -> str:
        """Render a catalog to a string."""
        root = ET.Element("TS")
        if catalog.version:
            root.set("version", catalog.version)
        if catalog.language:
            root.set("language", catalog.language)
        if catalog.source_language:
            root.set("sourcelanguage", catalog.source_language)

        for context in catalog.contexts:
            self._add_context(root, context)

        if self._indent:
            ET.indent(root, space=self._indent)

        body = _escape_text(ET.tostring(root, encoding="unicode"))
        return XML_DECLARATION + DOCTYPE + body + "\n"

    def write(self, catalog: Catalog, path: str | Path) -> None:
        """Write a catalog to a file."""
        path = Path(path)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(self.render(catalog))
        logger.debug("Wrote %d messages to %s", len(catalog), path)

    def _add_context(self, root: ET.Element, context: Context) -> None:
        element = ET.SubElement(root, "context")
        ET.SubElement(element, "name").text = context.name
        for message in context.messages:
            self._add_message(element, message)

    def _add_message(self, parent: ET.Element, message: Message) -> None:
        element = ET.SubElement(parent, "message")
        if message.numerus:
            element.set("numerus", "yes")

        for location in message.locations:
            loc = ET.SubElement(element, "location")
            loc.set("filename", location.filename)
            if location.line is not None:
                loc.set("line", str(location.line))

        ET.SubElement(element, "source").text = message.source
        if message.comment:
            ET.SubElement(element, "comment").text = message.comment
        if message.extra_comment:
            ET.SubElement(element, "extracomment").text = message.extra_comment
        if message.translator_comment:
            ET.SubElement(element, "translatorcomment").text = message.translator_comment

        translation = ET.SubElement(element, "translation")
        state = message.state.attribute
        if state:
            translation.set("type", state)
        if message.numerus:
            for form in message.numerus_forms:
                ET.SubElement(translation, "numerusform").text = form
        else:
            translation.text = message.translation


def _escape_text(body: str) -> str:
    # A literal CR would be read back as LF
    body = body.replace("\r", "&#13;")
    return _RESTRICTED_CHARS.sub(lambda m: f'<byte value="x{ord(m.group()):x}"/>', body)


_default_writer = CatalogWriter()


def dumps(catalog: Catalog) -> str:
    """Serialize a catalog to a string."""
    return _default_writer.render(catalog)


def dump(catalog: Catalog, stream: IO[str]) -> None:
    """Serialize a catalog to a text stream."""
    stream.write(_default_writer.render(catalog))


def write_file(catalog: Catalog, path: str | Path) -> None:
    """Serialize a catalog to a file."""
    _default_writer.write(catalog, path)
