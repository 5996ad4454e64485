"""Per-locale catalog registry.

The registry owns one catalog per locale and resolves lookups against the
catalog of the locale current for the calling thread. Catalog files are
found by scanning a translations directory; with lazy loading a file is
parsed the first time its locale is used.

A locale without a catalog resolves through a fallback chain:

    de_AT -> de -> fallback locale -> empty catalog

A file that fails to parse is logged and treated as an empty catalog, so
a broken translation never breaks the application: every lookup then
yields its source text.

Example:
    from tscatalog.registry import CatalogRegistry, locale_context

    registry = CatalogRegistry("translations", default_locale="en_US")

    registry.translate("awattar", "Online", locale="de_DE")

    with registry.locale_context("de_DE"):
        registry.translate("awattar", "Online")
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from tscatalog.coverage import MissTracker
from tscatalog.errors import LookupMiss, ParseError
from tscatalog.infrastructure.config import CatalogSettings, get_settings
from tscatalog.loader import CatalogLoader, locale_from_filename
from tscatalog.models import Catalog
from tscatalog.plural import split_language

logger = logging.getLogger(__name__)


class CatalogRegistry:
    """Thread-safe registry of catalogs keyed by locale.

    Loaded catalogs are immutable, so lookups only take the lock while a
    catalog is being loaded.
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        *,
        default_locale: str = "en_US",
        fallback_locale: str = "en_US",
        pattern: str = "*.ts",
        lazy: bool = True,
        loader: CatalogLoader | None = None,
        track_misses: bool = True,
    ) -> None:
        """Initialize registry.

        Args:
            directory: Translations directory to scan, optional.
            default_locale: Locale of threads that never set one.
            fallback_locale: Last locale tried before the empty catalog.
            pattern: Glob pattern of catalog files.
            lazy: Parse files on first use instead of now.
            loader: Loader used for files.
            track_misses: Count lookups that find no message.
        """
        self._directory = Path(directory) if directory is not None else None
        self._default = default_locale
        self._fallback = fallback_locale
        self._pattern = pattern
        self._loader = loader or CatalogLoader()
        self._track_misses = track_misses

        self._lock = threading.RLock()
        self._current = threading.local()
        self._files: dict[str, list[Path]] = {}
        self._catalogs: dict[str, Catalog] = {}
        self.misses = MissTracker()

        if self._directory is not None:
            self._scan()
        if not lazy:
            self.preload()

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "CatalogRegistry":
        return cls(
            settings.translations_dir,
            default_locale=settings.default_locale,
            fallback_locale=settings.fallback_locale,
            pattern=settings.file_pattern,
            lazy=settings.lazy,
            track_misses=settings.track_misses,
        )

    # -- discovery and loading ---------------------------------------------

    def _scan(self) -> None:
        assert self._directory is not None
        if not self._directory.is_dir():
            logger.warning("Translations directory %s does not exist", self._directory)
            return
        for path in sorted(self._directory.glob(self._pattern)):
            locale = locale_from_filename(path)
            if locale is None:
                # Only the document can tell the locale, parse it now
                catalog = self._load_files([path])
                if not catalog.language:
                    logger.warning("Cannot determine the locale of %s, skipped", path)
                    continue
                self._store(catalog.language, catalog)
                continue
            self._files.setdefault(locale, []).append(path)
        logger.debug(
            "Found catalogs for %d locales in %s", len(self._files), self._directory
        )

    def _load_files(self, paths: list[Path]) -> Catalog:
        catalogs = []
        for path in paths:
            try:
                catalogs.append(self._loader.load_file(path))
            except (ParseError, OSError) as e:
                logger.error("Failed to load catalog %s: %s", path, e)
        if not catalogs:
            return Catalog.empty()
        return catalogs[0].merged(*catalogs[1:])

    def _store(self, locale: str, catalog: Catalog) -> None:
        existing = self._catalogs.get(locale)
        self._catalogs[locale] = existing.merged(catalog) if existing else catalog

    def _catalog(self, locale: str) -> Catalog | None:
        catalog = self._catalogs.get(locale)
        if catalog is not None:
            return catalog
        with self._lock:
            catalog = self._catalogs.get(locale)
            if catalog is not None:
                return catalog
            paths = self._files.pop(locale, None)
            if paths is None:
                return None
            catalog = self._load_files(paths)
            if not catalog.language:
                catalog = replace(catalog, language=locale)
            self._store(locale, catalog)
            logger.info("Loaded catalog for %s (%d messages)", locale, len(catalog))
            declared = catalog.language
            known = declared in self._catalogs or declared in self._files
            if declared != locale and not known:
                # Also reachable under the locale the document declares
                self._catalogs[declared] = self._catalogs[locale]
            return self._catalogs[locale]

    def preload(self) -> None:
        """Load every discovered catalog now."""
        for locale in list(self._files):
            self._catalog(locale)

    def register(self, catalog: Catalog, locale: str | None = None) -> None:
        """Add a catalog, merging it into one already held for the locale.

        Args:
            catalog: Catalog to add.
            locale: Locale key, defaults to the catalog's language.

        Raises:
            ValueError: If no locale is given and the catalog has none.
        """
        locale = locale or catalog.language
        if not locale:
            raise ValueError("Catalog has no language, pass a locale")
        if not catalog.language:
            catalog = replace(catalog, language=locale)
        self._catalog(locale)
        with self._lock:
            self._store(locale, catalog)

    def locales(self) -> list[str]:
        """Locales with a catalog, loaded or not."""
        with self._lock:
            return sorted(set(self._catalogs) | set(self._files))

    def is_loaded(self, locale: str) -> bool:
        return locale in self._catalogs

    # -- locale resolution -------------------------------------------------

    @property
    def default_locale(self) -> str:
        return self._default

    @property
    def fallback_locale(self) -> str:
        return self._fallback

    def fallback_chain(self, locale: str) -> list[str]:
        """Locales tried for ``locale``, most specific first.

        ``de_AT`` gives ``["de_AT", "de", "en_US", "en"]`` with the
        default fallback.
        """
        chain: list[str] = []
        for code in (locale, self._fallback):
            if not code:
                continue
            lang, region = split_language(code)
            candidates = [code, lang] if region else [code]
            for candidate in candidates:
                if candidate not in chain:
                    chain.append(candidate)
        return chain

    def get(self, locale: str | None = None) -> Catalog:
        """Catalog for a locale, walking the fallback chain.

        Never raises; returns an empty catalog when nothing matches.
        """
        locale = locale or self.get_locale()
        for candidate in self.fallback_chain(locale):
            catalog = self._catalog(candidate)
            if catalog is not None:
                if candidate != locale:
                    logger.debug("Using catalog %s for locale %s", candidate, locale)
                return catalog
        return Catalog.empty(locale)

    def set_locale(self, locale: str) -> None:
        """Set the locale of the calling thread."""
        self._current.locale = locale

    def get_locale(self) -> str:
        """Locale of the calling thread."""
        return getattr(self._current, "locale", self._default)

    def explicit_locale(self) -> str | None:
        """Locale set by the calling thread, None when it uses the default."""
        return getattr(self._current, "locale", None)

    def clear_locale(self) -> None:
        """Return the calling thread to the default locale."""
        self._current.__dict__.pop("locale", None)

    def locale_context(self, locale: str) -> "locale_context":
        return locale_context(locale, registry=self)

    # -- lookup ------------------------------------------------------------

    def translate(
        self,
        context: str,
        source: str,
        comment: str = "",
        *,
        locale: str | None = None,
        n: int | None = None,
    ) -> str:
        """Translate text, falling back to the source text on any miss.

        Args:
            context: Context name.
            source: Source text.
            comment: Disambiguation comment.
            locale: Locale to use instead of the thread's locale.
            n: Count for numerus messages; replaces ``%n``.

        Returns:
            Display text, never raises for a missing message.
        """
        locale = locale or self.get_locale()
        catalog = self.get(locale)
        try:
            return catalog.lookup(context, source, comment, n=n)
        except LookupMiss as miss:
            if self._track_misses and self.misses.record(locale, miss):
                logger.info("%s (locale=%s)", miss, locale)
            if n is not None:
                return source.replace("%n", str(n))
            return source

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "loaded": sorted(self._catalogs),
                "pending": sorted(self._files),
                "messages": {k: len(v) for k, v in self._catalogs.items()},
                "misses": len(self.misses),
            }


class locale_context:
    """Context manager for a temporary locale change of this thread.

    Example:
        with locale_context("de_DE"):
            label = tr("awattar", "Online")
        # Original locale restored
    """

    def __init__(self, locale: str, *, registry: CatalogRegistry | None = None):
        self.locale = locale
        self._registry = registry
        self._previous: str | None = None

    def __enter__(self) -> "locale_context":
        registry = self._registry or get_registry()
        self._registry = registry
        self._previous = registry.explicit_locale()
        registry.set_locale(self.locale)
        return self

    def __exit__(self, *args: Any) -> None:
        assert self._registry is not None
        if self._previous is None:
            self._registry.clear_locale()
        else:
            self._registry.set_locale(self._previous)


# =============================================================================
# Global Registry
# =============================================================================

_registry: CatalogRegistry | None = None
_registry_lock = threading.Lock()


def configure_registry(
    settings: CatalogSettings | None = None,
    **kwargs: Any,
) -> CatalogRegistry:
    """Create the process-wide registry.

    Args:
        settings: Settings to build from. Ignored when ``kwargs`` are
            given, which go straight to :class:`CatalogRegistry`.
    """
    global _registry

    if kwargs:
        registry = CatalogRegistry(**kwargs)
    else:
        registry = CatalogRegistry.from_settings(settings or get_settings())
    with _registry_lock:
        _registry = registry
    return registry


def get_registry() -> CatalogRegistry:
    """Get the process-wide registry, creating it from settings."""
    global _registry

    with _registry_lock:
        if _registry is not None:
            return _registry
    registry = CatalogRegistry.from_settings(get_settings())
    with _registry_lock:
        if _registry is None:
            _registry = registry
        return _registry


def reset_registry() -> None:
    """Drop the process-wide registry."""
    global _registry

    with _registry_lock:
        _registry = None


def set_locale(locale: str) -> None:
    get_registry().set_locale(locale)


def get_locale() -> str:
    return get_registry().get_locale()


def tr(
    context: str,
    source: str,
    comment: str = "",
    *,
    n: int | None = None,
    locale: str | None = None,
) -> str:
    """Translate with the process-wide registry."""
    return get_registry().translate(context, source, comment, locale=locale, n=n)
