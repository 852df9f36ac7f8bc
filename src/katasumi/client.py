"""
Katasumi Client Facade

Single entry point for programmatic use of Katasumi.  Wraps catalog
import, search, reverse key lookup, and statistics behind an
instance-based API with sync and async variants.

Usage::

    from katasumi import Katasumi

    # From environment variables (catalog in $KATASUMI_HOME)
    client = Katasumi()

    # With explicit configuration
    from katasumi.core.config import KatasumiConfig
    client = Katasumi(config=KatasumiConfig(catalog_dir="/tmp/katasumi"))

    # Load catalogs
    result = client.import_catalog("./catalogs")
    print(f"Imported {result.shortcuts_imported} shortcuts")

    # Search
    for hit in client.search("tmux split", platform="linux"):
        print(hit.action, hit.binding("linux"))

    # Async variants (for async web handlers)
    hits = await client.asearch("copy line")
    hits = await client.asearch_by_keys("⌘C")
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from katasumi.core.config import KatasumiConfig
from katasumi.core.engine import (
    AppInfo,
    ImportResult,
    Platform,
    SearchFilters,
    Shortcut,
    ShortcutCatalog,
)
from katasumi.core.search import ShortcutRepository, ShortcutSearchEngine
from katasumi.exceptions import CatalogNotFoundError

logger = logging.getLogger(__name__)


class Katasumi:
    """
    High-level Katasumi client.

    Each instance carries its own :class:`KatasumiConfig` and never
    touches global state.  The sync methods drive the async engine with
    :func:`asyncio.run`, so call the ``a``-prefixed variants from code
    that already runs an event loop.

    Args:
        config: Explicit configuration object.  When *None*, a config
            is built from environment variables or keyword overrides.
        repository: Serve searches from this repository instead of the
            SQLite catalog at ``config.get_catalog_path()``.
        validate_on_init: Call :meth:`KatasumiConfig.validate` now
            instead of letting bad values surface on first use.
        **kwargs: Forwarded to :class:`KatasumiConfig` when *config* is
            ``None`` (e.g. ``catalog_dir="/tmp/k"``).
    """

    def __init__(
        self,
        config: KatasumiConfig | None = None,
        *,
        repository: ShortcutRepository | None = None,
        validate_on_init: bool = False,
        **kwargs,
    ):
        if config is not None:
            self._config = config
        elif kwargs:
            # Build a config from env, then overlay keyword overrides
            base = KatasumiConfig.from_env()
            merged = {
                f.name: kwargs.get(f.name, getattr(base, f.name))
                for f in base.__dataclass_fields__.values()
            }
            self._config = KatasumiConfig(**merged)
        else:
            self._config = KatasumiConfig.from_env()

        if validate_on_init:
            self._config.validate()

        self._repository = repository
        self._catalog: ShortcutCatalog | None = None
        self._engine: ShortcutSearchEngine | None = None

    # ── Configuration ─────────────────────────────────────────────

    @property
    def config(self) -> KatasumiConfig:
        """The active configuration for this client."""
        return self._config

    @property
    def catalog_path(self) -> Path:
        return self._config.get_catalog_path()

    # ── Import ────────────────────────────────────────────────────

    def import_catalog(
        self,
        source: str | Path,
        *,
        force: bool = False,
        dry_run: bool = False,
        show_progress: bool = False,
    ) -> ImportResult:
        """
        Import a JSON catalog file, or every catalog file under a directory.

        Args:
            source: Catalog file or directory.
            force: Re-import files even when unchanged.
            dry_run: Parse and validate without writing.
            show_progress: Show a tqdm progress bar.

        Returns:
            :class:`ImportResult` with counts.
        """
        from katasumi.core.importer import CatalogImporter

        importer = CatalogImporter(
            source=Path(source).resolve(),
            catalog_dir=self._config.get_catalog_dir(),
            dry_run=dry_run,
            force=force,
            config=self._config,
            show_progress=show_progress,
        )
        return importer.run()

    # ── Search ────────────────────────────────────────────────────

    def search(
        self,
        query: str,
        *,
        app: str | None = None,
        platform: Platform | str | None = None,
        category: str | None = None,
        context: str | None = None,
        limit: int | None = None,
    ) -> List[Shortcut]:
        """
        Rank shortcuts against a free-text *query*.

        Args:
            query: Free text, optionally naming an application
                (``"vsc go to definition"``).
            app: Restrict to one application.
            platform: Keep only shortcuts bound on this platform.
            category: Restrict to one category.
            context: Restrict to one context (exact match).
            limit: Maximum results (default ``config.default_limit``).

        Raises:
            CatalogNotFoundError: If no catalog exists and no repository
                was injected.
        """
        return asyncio.run(self.asearch(
            query, app=app, platform=platform, category=category,
            context=context, limit=limit,
        ))

    def search_by_keys(self, keys: str, *, platform: Platform | str | None = None) -> List[Shortcut]:
        """
        Reverse lookup: shortcuts bound to *keys* (e.g. ``"⌘K"``, ``"Ctrl+K"``).

        Raises:
            CatalogNotFoundError: If no catalog exists and no repository
                was injected.
        """
        return asyncio.run(self.asearch_by_keys(keys, platform=platform))

    def detect_app(self, query: str) -> Optional[str]:
        """Return the application *query* names, if any."""
        return asyncio.run(self.adetect_app(query))

    # ── Catalog information ───────────────────────────────────────

    def stats(self) -> Dict[str, int]:
        """
        Return catalog statistics.

        Returns:
            Dict with ``imported_files``, ``shortcuts`` and ``apps`` counts.

        Raises:
            CatalogNotFoundError: If no catalog exists.
        """
        return self._get_catalog().get_stats()

    def apps(self) -> List[AppInfo]:
        """Per-application summary of the catalog."""
        return self._get_catalog().list_apps()

    # ── Async variants ────────────────────────────────────────────

    async def asearch(
        self,
        query: str,
        *,
        app: str | None = None,
        platform: Platform | str | None = None,
        category: str | None = None,
        context: str | None = None,
        limit: int | None = None,
    ) -> List[Shortcut]:
        """Async variant of :meth:`search`. Raises same exceptions as sync."""
        filters = SearchFilters(app=app, platform=platform, category=category, context=context)
        return await self._get_engine().fuzzy_search(query, filters, limit)

    async def asearch_by_keys(self, keys: str, *,
                              platform: Platform | str | None = None) -> List[Shortcut]:
        """Async variant of :meth:`search_by_keys`. Raises same exceptions as sync."""
        return await self._get_engine().search_by_keys(keys, platform)

    async def adetect_app(self, query: str) -> Optional[str]:
        """Async variant of :meth:`detect_app`."""
        return await self._get_engine().detect_app(query)

    async def aimport_catalog(
        self,
        source: str | Path,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> ImportResult:
        """Async variant of :meth:`import_catalog`. Raises same exceptions as sync."""
        return await asyncio.to_thread(
            self.import_catalog, source, force=force, dry_run=dry_run,
        )

    async def astats(self) -> Dict[str, int]:
        """Async variant of :meth:`stats`. Raises same exceptions as sync."""
        return await asyncio.to_thread(self.stats)

    # ── Health ────────────────────────────────────────────────────

    def health(self) -> Dict[str, object]:
        """
        Return a small status dict for status checks.

        Does not open the catalog.
        """
        return {
            "version": __import__("katasumi", fromlist=["__version__"]).__version__,
            "catalog_path": str(self.catalog_path),
            "catalog_exists": self.catalog_path.exists(),
            "repository": type(self._repository).__name__ if self._repository else "ShortcutCatalog",
        }

    def close(self) -> None:
        """Close the catalog connection held by this thread, if any."""
        if self._catalog is not None:
            self._catalog.close()

    # ── Internal helpers ──────────────────────────────────────────

    def _get_catalog(self) -> ShortcutCatalog:
        """Open the SQLite catalog on first use."""
        if self._catalog is None:
            db = self.catalog_path
            if not db.exists():
                raise CatalogNotFoundError(
                    f"No Katasumi catalog found at {db}. "
                    "Run 'katasumi import <path>' or client.import_catalog() first."
                )
            self._catalog = ShortcutCatalog(db)
        return self._catalog

    def _get_engine(self) -> ShortcutSearchEngine:
        """Return the cached engine over the injected repository or the catalog."""
        if self._engine is None:
            repository = self._repository if self._repository is not None else self._get_catalog()
            self._engine = ShortcutSearchEngine(repository, config=self._config)
        return self._engine
