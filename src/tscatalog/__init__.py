"""tscatalog - Qt Linguist translation catalogs for Python."""

from tscatalog.errors import CatalogError, LookupMiss, ParseError
from tscatalog.models import Catalog, Context, Location, Message, TranslationState
from tscatalog.loader import CatalogLoader, load, load_file, loads
from tscatalog.writer import CatalogWriter, dump, dumps, write_file

# Runtime lookup
from tscatalog.registry import (
    CatalogRegistry,
    configure_registry,
    get_registry,
    locale_context,
    reset_registry,
    tr,
)

# Reporting
from tscatalog.coverage import CoverageReport, MissTracker, compute_coverage
from tscatalog.checks import CatalogIssue, Severity, check_catalog

__version__ = "0.1.0"

__all__ = [
    # Errors
    "CatalogError",
    "ParseError",
    "LookupMiss",
    # Model
    "Catalog",
    "Context",
    "Location",
    "Message",
    "TranslationState",
    # I/O
    "CatalogLoader",
    "CatalogWriter",
    "load",
    "loads",
    "load_file",
    "dump",
    "dumps",
    "write_file",
    # Registry
    "CatalogRegistry",
    "configure_registry",
    "get_registry",
    "reset_registry",
    "locale_context",
    "tr",
    # Reporting
    "CoverageReport",
    "MissTracker",
    "compute_coverage",
    "CatalogIssue",
    "Severity",
    "check_catalog",
]
