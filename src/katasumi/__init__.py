"""
Katasumi — keyboard shortcut lookup by description or key combination.

The ``katasumi`` package ranks a catalog of keyboard shortcuts against
free-text queries ("vsc go to definition") and finds shortcuts bound to
a key combination ("⌘⇧P", "Ctrl+Shift+P").

Quick start (programmatic API)::

    from katasumi import Katasumi

    client = Katasumi()                               # reads env vars
    client.import_catalog("./catalogs")               # load JSON catalogs
    hits = client.search("vscode copy line")          # free-text search
    hits = client.search_by_keys("Cmd+K", platform="mac")

Quick start (CLI)::

    katasumi import ./catalogs
    katasumi search "tmux split pane"
    katasumi keys "ctrl+b %"

Embedding the engine over your own storage::

    from katasumi import ShortcutSearchEngine, InMemoryRepository

    engine = ShortcutSearchEngine(InMemoryRepository(shortcuts))
    hits = await engine.fuzzy_search("paste", limit=10)
"""

__version__ = "1.0.0"

# Primary public API: the Katasumi facade
from katasumi.client import Katasumi

# Configuration
from katasumi.core.config import KatasumiConfig

# Core data types and the embeddable engine
from katasumi.core.engine import (
    AppInfo,
    ImportResult,
    Platform,
    SearchFilters,
    Shortcut,
    normalize_keys,
)
from katasumi.core.search import InMemoryRepository, ShortcutRepository, ShortcutSearchEngine

# Exception hierarchy
from katasumi.exceptions import (
    CatalogFormatError,
    CatalogNotFoundError,
    ConfigError,
    KatasumiError,
)


def health(config: KatasumiConfig | None = None) -> dict:
    """
    Return a small status dict for status checks (no catalog access).

    When *config* is None, uses :meth:`KatasumiConfig.from_env()`.
    """
    cfg = config or KatasumiConfig.from_env()
    return {
        "version": __version__,
        "catalog_path": str(cfg.get_catalog_path()),
        "default_limit": cfg.default_limit,
    }


__all__ = [
    "__version__",
    # Facade
    "Katasumi",
    # Config
    "KatasumiConfig",
    # Data types
    "AppInfo",
    "ImportResult",
    "Platform",
    "SearchFilters",
    "Shortcut",
    "normalize_keys",
    # Engine
    "InMemoryRepository",
    "ShortcutRepository",
    "ShortcutSearchEngine",
    # Exceptions
    "KatasumiError",
    "ConfigError",
    "CatalogNotFoundError",
    "CatalogFormatError",
    # Status
    "health",
]
