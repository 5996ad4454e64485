"""Tests for the catalog model and lookup.

Tests cover:
- Fallback to source text
- LookupMiss for unknown messages
- Disambiguation comments
- Numerus forms
- Immutability and merging
- Lookups from many threads
"""

from __future__ import annotations

import dataclasses
import threading

import pytest

from tscatalog.errors import LookupMiss
from tscatalog.loader import loads
from tscatalog.models import (
    Catalog,
    Context,
    Location,
    Message,
    TranslationState,
)


# =============================================================================
# Translation states
# =============================================================================


class TestTranslationState:
    """Tests for TranslationState."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, TranslationState.FINISHED),
            ("", TranslationState.FINISHED),
            ("unfinished", TranslationState.UNFINISHED),
            ("obsolete", TranslationState.OBSOLETE),
            ("vanished", TranslationState.VANISHED),
            ("something-new", TranslationState.FINISHED),
        ],
    )
    def test_from_attribute(self, value, expected):
        assert TranslationState.from_attribute(value) is expected

    def test_attribute(self):
        assert TranslationState.FINISHED.attribute is None
        assert TranslationState.UNFINISHED.attribute == "unfinished"

    def test_completion(self):
        assert not TranslationState.UNFINISHED.is_complete
        assert TranslationState.FINISHED.is_complete
        assert TranslationState.OBSOLETE.is_stale
        assert not TranslationState.FINISHED.is_stale


# =============================================================================
# Lookup
# =============================================================================


class TestLookup:
    """Tests for Catalog.lookup and Catalog.translate."""

    def test_finished_translation(self, german_text: str):
        catalog = loads(german_text)

        assert catalog.lookup("awattar", "Online") == "Verbunden"

    def test_unfinished_falls_back_to_source(self, german_text: str):
        catalog = loads(german_text)

        assert catalog.lookup("awattar", "RPL address") == "RPL address"
        # Text of an unfinished translation is never shown
        assert catalog.lookup("awattar", "valid until") == "valid until"

    def test_miss_raises(self, german_text: str):
        catalog = loads(german_text)

        with pytest.raises(LookupMiss) as exc_info:
            catalog.lookup("awattar", "Offline")

        assert exc_info.value.context == "awattar"
        assert exc_info.value.source == "Offline"

    def test_unknown_context_raises(self, german_text: str):
        with pytest.raises(LookupMiss):
            loads(german_text).lookup("nope", "Online")

    def test_message_of_other_context_not_found(self, german_text: str):
        with pytest.raises(LookupMiss):
            loads(german_text).lookup("DevicePluginAwattar", "Online")

    def test_translate_never_raises(self, german_text: str):
        catalog = loads(german_text)

        assert catalog.translate("awattar", "Offline") == "Offline"
        assert catalog.translate("awattar", "Online") == "Verbunden"

    def test_empty_catalog(self):
        catalog = Catalog.empty("de_DE")

        assert catalog.translate("awattar", "Online") == "Online"
        with pytest.raises(LookupMiss):
            catalog.lookup("awattar", "Online")

    def test_finished_but_empty_falls_back(self):
        catalog = Catalog(contexts=(
            Context("c", (Message("a", "", TranslationState.FINISHED),)),
        ))

        assert catalog.lookup("c", "a") == "a"

    def test_comment_selects_message(self, german_text: str):
        catalog = loads(german_text)

        assert catalog.lookup("awattar", "Open", "door state") == "Offen"
        assert catalog.lookup("awattar", "Open", "verb") == "Öffnen"

    def test_comment_falls_back_to_uncommented(self):
        catalog = Catalog(contexts=(
            Context("c", (Message("a", "b", TranslationState.FINISHED),)),
        ))

        assert catalog.lookup("c", "a", "unknown comment") == "b"

    def test_no_comment_does_not_match_commented(self, german_text: str):
        with pytest.raises(LookupMiss):
            loads(german_text).lookup("awattar", "Open")

    def test_obsolete_translation_still_resolves(self, german_text: str):
        assert loads(german_text).lookup("awattar", "old price") == "alter Preis"


# =============================================================================
# Numerus
# =============================================================================


class TestNumerus:
    """Tests for plural form selection."""

    def test_singular_and_plural(self, german_text: str):
        catalog = loads(german_text)

        assert catalog.lookup("DevicePluginAwattar", "%n price(s) received", n=1) == "1 Preis empfangen"
        assert catalog.lookup("DevicePluginAwattar", "%n price(s) received", n=3) == "3 Preise empfangen"
        assert catalog.lookup("DevicePluginAwattar", "%n price(s) received", n=0) == "0 Preise empfangen"

    def test_without_count_uses_first_form(self, german_text: str):
        catalog = loads(german_text)

        assert catalog.lookup("DevicePluginAwattar", "%n price(s) received") == "%n Preis empfangen"

    def test_russian_forms(self):
        message = Message(
            "%n file(s)",
            state=TranslationState.FINISHED,
            numerus=True,
            numerus_forms=("%n файл", "%n файла", "%n файлов"),
        )

        assert message.resolve("ru", 1) == "1 файл"
        assert message.resolve("ru", 3) == "3 файла"
        assert message.resolve("ru", 11) == "11 файлов"

    def test_missing_forms_use_last(self):
        message = Message(
            "%n file(s)",
            state=TranslationState.FINISHED,
            numerus=True,
            numerus_forms=("%n файл",),
        )

        assert message.resolve("ru", 5) == "5 файл"

    def test_untranslated_numerus_falls_back(self):
        message = Message("%n file(s)", numerus=True)

        assert message.resolve("de", 4) == "4 file(s)"

    def test_translate_miss_substitutes_count(self):
        assert Catalog.empty().translate("c", "%n items", n=2) == "2 items"


# =============================================================================
# Messages
# =============================================================================


class TestMessage:
    """Tests for Message helpers."""

    def test_comment_segments(self):
        message = Message("a", extra_comment="first\n----------\nsecond")

        assert message.comment_segments() == ["first", "second"]

    def test_no_extra_comment(self):
        assert Message("a").comment_segments() == []

    def test_mismatched_segments_not_paired(self):
        message = Message(
            "a",
            extra_comment="first\n----------\nsecond",
            locations=(Location("a.h", 1), Location("a.h", 2), Location("a.h", 3)),
        )

        assert message.annotated_locations() == [
            (Location("a.h", 1), None),
            (Location("a.h", 2), None),
            (Location("a.h", 3), None),
        ]

    def test_location_str(self):
        assert str(Location("a.h", 12)) == "a.h:12"
        assert str(Location("a.qml")) == "a.qml"

    def test_is_translated(self):
        assert Message("a", "b", TranslationState.FINISHED).is_translated
        assert not Message("a", "b", TranslationState.UNFINISHED).is_translated
        assert not Message("a", "", TranslationState.FINISHED).is_translated


# =============================================================================
# Catalog structure
# =============================================================================


class TestCatalog:
    """Tests for catalog structure, immutability and merging."""

    def test_frozen(self, german_text: str):
        catalog = loads(german_text)

        with pytest.raises(dataclasses.FrozenInstanceError):
            catalog.language = "fr"
        with pytest.raises(dataclasses.FrozenInstanceError):
            catalog.contexts[0].messages[0].translation = "x"

    def test_duplicate_context_names_rejected(self):
        with pytest.raises(ValueError):
            Catalog(contexts=(Context("c"), Context("c")))

    def test_messages_in_order(self, german_text: str):
        pairs = list(loads(german_text).messages())

        assert pairs[0] == ("awattar", loads(german_text).find("awattar", "Online"))
        assert pairs[-1][0] == "DevicePluginAwattar"
        assert len(pairs) == 8

    def test_contains(self, german_text: str):
        catalog = loads(german_text)

        assert "awattar" in catalog
        assert "Online" in catalog.context("awattar")
        assert "Offline" not in catalog.context("awattar")

    def test_merged(self, german_text: str):
        extra = Catalog(contexts=(
            Context("awattar", (Message("Offline", "Getrennt", TranslationState.FINISHED),)),
            Context("other", (Message("x", "y", TranslationState.FINISHED),)),
        ))

        merged = loads(german_text).merged(extra)

        assert merged.language == "de_DE"
        assert merged.lookup("awattar", "Offline") == "Getrennt"
        assert merged.lookup("awattar", "Online") == "Verbunden"
        assert merged.lookup("other", "x") == "y"

    def test_merged_keeps_first_translation(self, german_text: str):
        extra = Catalog(contexts=(
            Context("awattar", (Message("Online", "Online!", TranslationState.FINISHED),)),
        ))

        assert loads(german_text).merged(extra).lookup("awattar", "Online") == "Verbunden"

    def test_concurrent_lookups(self, german_text: str):
        catalog = loads(german_text)
        results: list[str] = []
        lock = threading.Lock()

        def worker():
            for _ in range(200):
                value = catalog.translate("awattar", "Online")
                with lock:
                    results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 1600
        assert set(results) == {"Verbunden"}
