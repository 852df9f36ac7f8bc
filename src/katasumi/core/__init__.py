"""
Katasumi Core — configuration, matching algorithms, catalog, and search.

Re-exports the primary classes for convenience::

    from katasumi.core import ShortcutSearchEngine, ShortcutCatalog, normalize_keys
"""

from katasumi.core.config import APP_ALIASES, KatasumiConfig
from katasumi.core.engine import (
    AppInfo,
    ImportResult,
    Platform,
    ScoredShortcut,
    SearchFilters,
    Shortcut,
    ShortcutCatalog,
    Source,
    SourceType,
    detect_app_in_query,
    fuzzy_similarity,
    levenshtein_distance,
    normalize_keys,
    score_shortcut,
    strip_app_aliases,
)
from katasumi.core.search import (
    InMemoryRepository,
    ResultFormatter,
    ShortcutRepository,
    ShortcutSearchEngine,
)

__all__ = [
    "APP_ALIASES",
    "KatasumiConfig",
    "AppInfo",
    "ImportResult",
    "Platform",
    "ScoredShortcut",
    "SearchFilters",
    "Shortcut",
    "ShortcutCatalog",
    "Source",
    "SourceType",
    "detect_app_in_query",
    "fuzzy_similarity",
    "levenshtein_distance",
    "normalize_keys",
    "score_shortcut",
    "strip_app_aliases",
    "InMemoryRepository",
    "ResultFormatter",
    "ShortcutRepository",
    "ShortcutSearchEngine",
]
