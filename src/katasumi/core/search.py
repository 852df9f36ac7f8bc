"""
Katasumi Search Engine

Free-text and key-combination lookup over a shortcut repository.

- Fuzzy search: pre-filter, detect an application named in the query,
  strip its aliases, then rank with the tiered relevance scorer
- Reverse lookup: normalized key-combination equality per platform
- Output formatting for console, JSON, and compact listings

The engine holds no state between calls: each call fetches its own
candidate snapshot from the injected repository, which is the only
place it awaits.  Repository errors propagate unchanged.
"""

import json
import logging
from typing import Iterable, List, Optional, Protocol

from katasumi.core.config import KatasumiConfig
from katasumi.core.engine import (
    PLATFORM_ORDER,
    Platform,
    ScoredShortcut,
    SearchFilters,
    Shortcut,
    aliases_for,
    detect_app_in_query,
    normalize_keys,
    score_shortcut,
    strip_app_aliases,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Repository Port
# =============================================================================

class ShortcutRepository(Protocol):
    """Source of candidate shortcuts.

    ``app`` matches case-insensitively, ``category`` exactly; results
    come back in a stable order and are never mutated by the engine.
    :class:`~katasumi.core.engine.ShortcutCatalog` is the SQLite
    implementation.
    """

    async def fetch_candidates(
        self,
        *,
        app: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 10000,
    ) -> List[Shortcut]: ...


class InMemoryRepository:
    """Repository over a fixed list of shortcuts (embedding and tests)."""

    def __init__(self, shortcuts: Iterable[Shortcut] = ()):
        self._shortcuts: List[Shortcut] = list(shortcuts)

    def __len__(self) -> int:
        return len(self._shortcuts)

    async def fetch_candidates(
        self,
        *,
        app: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 10000,
    ) -> List[Shortcut]:
        results = [
            s for s in self._shortcuts
            if (not app or s.app.lower() == app.lower())
            and (not category or s.category == category)
        ]
        return results[:max(limit, 0)]


# =============================================================================
# Search Engine
# =============================================================================

class ShortcutSearchEngine:
    """
    Ranking engine over a :class:`ShortcutRepository`.

    Two public lookups:

    1. :meth:`fuzzy_search` — free text, optionally naming an app
       (``"vsc go to definition"``), ranked by relevance tier
    2. :meth:`search_by_keys` — reverse lookup by key combination,
       an equality predicate in catalog order
    """

    def __init__(self, repository: ShortcutRepository, config: KatasumiConfig | None = None):
        self._repository = repository
        self._config = config or KatasumiConfig.from_env()

    @property
    def config(self) -> KatasumiConfig:
        return self._config

    # ── Public API ────────────────────────────────────────────────

    async def fuzzy_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
    ) -> List[Shortcut]:
        """
        Rank shortcuts against a free-text *query*.

        Args:
            query: Free text; may start with or contain an application
                name or alias, which scopes the search to that app.
            filters: Optional app/category (pushed to the repository) and
                platform/context (applied locally) pre-filters.
            limit: Maximum number of results (default
                ``config.default_limit``).

        Returns:
            Shortcuts ordered by descending score, ties in catalog order.
            An empty query, or one that only names an application,
            returns the first *limit* candidates unscored.
        """
        filters = filters or SearchFilters()
        limit = max(self._config.default_limit if limit is None else limit, 0)

        shortcuts = await self._repository.fetch_candidates(
            app=filters.app,
            category=filters.category,
            limit=self._config.fetch_ceiling,
        )

        if filters.platform is not None:
            shortcuts = [s for s in shortcuts if s.has_binding(filters.platform)]
        if filters.context:
            shortcuts = [s for s in shortcuts if s.context == filters.context]

        if not query or not query.strip():
            return shortcuts[:limit]

        normalized_query = query.lower().strip()
        detected_app = self._detect(normalized_query, shortcuts)

        scoring_query = " ".join(normalized_query.split())
        if detected_app:
            shortcuts = [s for s in shortcuts if s.app.lower() == detected_app.lower()]
            scoring_query = strip_app_aliases(normalized_query, aliases_for(detected_app))
            logger.debug(
                f"Detected app '{detected_app}' in '{normalized_query}' "
                f"→ scoring query '{scoring_query}' over {len(shortcuts)} shortcuts"
            )
            if not scoring_query:
                return shortcuts[:limit]

        scored = [
            ScoredShortcut(shortcut=s, score=score_shortcut(s.action, s.tags, scoring_query))
            for s in shortcuts
        ]
        relevant = [r for r in scored if r.score > 0]
        relevant.sort()  # stable: equal scores keep catalog order

        logger.debug(
            f"Query '{scoring_query}': {len(relevant)}/{len(shortcuts)} candidates scored > 0"
        )
        return [r.shortcut for r in relevant[:limit]]

    async def search_by_keys(self, keys: str | None,
                             platform: Platform | str | None = None) -> List[Shortcut]:
        """
        Find shortcuts bound to a key combination.

        ``"⌘K"``, ``"Cmd+K"`` and ``"command-k"`` are all the same query.
        With *platform*, only that platform's binding is compared;
        without it, mac, windows and linux are tried in that order and a
        shortcut is included once, on its first matching platform.
        """
        target = normalize_keys(keys)
        if not target:
            return []

        platforms = (Platform.coerce(platform),) if platform is not None else PLATFORM_ORDER
        shortcuts = await self._repository.fetch_candidates(limit=self._config.fetch_ceiling)

        matches: List[Shortcut] = []
        for shortcut in shortcuts:
            for p in platforms:
                bound = shortcut.binding(p)
                if bound and normalize_keys(bound) == target:
                    matches.append(shortcut)
                    break  # once per shortcut, even if several platforms match

        logger.debug(f"Keys '{keys}' → '{target}': {len(matches)} matches")
        return matches

    async def detect_app(self, query: str) -> Optional[str]:
        """Return the application *query* refers to, judged against the whole catalog."""
        normalized_query = (query or "").lower().strip()
        if not normalized_query:
            return None
        shortcuts = await self._repository.fetch_candidates(limit=self._config.fetch_ceiling)
        return self._detect(normalized_query, shortcuts)

    # ── Internal helpers ──────────────────────────────────────────

    def _detect(self, normalized_query: str, shortcuts: List[Shortcut]) -> Optional[str]:
        cfg = self._config
        return detect_app_in_query(
            normalized_query,
            (s.app for s in shortcuts),
            min_gap=cfg.abbreviation_min_gap,
            min_ratio=cfg.abbreviation_min_ratio,
            min_word_length=cfg.abbreviation_min_word_length,
            min_alias_length=cfg.abbreviation_min_alias_length,
        )


# =============================================================================
# Result Formatting
# =============================================================================

class ResultFormatter:
    """Format shortcut lists for different output modes."""

    @staticmethod
    def _bindings(shortcut: Shortcut, platform: Platform | None) -> List[tuple]:
        platforms = (platform,) if platform is not None else PLATFORM_ORDER
        return [(p.value, shortcut.binding(p)) for p in platforms if shortcut.binding(p)]

    # ── Console (human-friendly) ──────────────────────────────────

    @staticmethod
    def format_console(results: List[Shortcut], platform: Platform | str | None = None,
                       start_index: int = 1, total_count: int | None = None,
                       elapsed_time: float | None = None) -> str:
        """
        Console listing with per-platform bindings, context and tags.

        Args:
            results: The (page of) results to render.
            platform: Show only this platform's binding.
            start_index: Global 1-based index of the first result, so
                numbering stays continuous across pages.
            total_count: Total result count across all pages.
            elapsed_time: Optional lookup time in seconds for the header.
        """
        if not results:
            return "\n  No results found.\n"

        import shutil
        width = min(shutil.get_terminal_size().columns, 78)
        thin = "─" * width
        only = Platform.coerce(platform) if platform is not None else None

        display_total = total_count if total_count is not None else len(results)
        header = f"  KATASUMI — {display_total} shortcut{'s' if display_total != 1 else ''}"
        if elapsed_time is not None:
            header += f" in {elapsed_time:.4f} seconds"

        out: List[str] = [f"\n{thin}", header, thin]
        for offset, s in enumerate(results):
            idx = start_index + offset
            out.append("")
            out.append(f"  #{idx}  {s.action}  ({s.app})")
            for name, combo in ResultFormatter._bindings(s, only):
                out.append(f"    {name:<8}: {combo}")
            if s.context:
                out.append(f"    Context : {s.context}")
            if s.category:
                out.append(f"    Category: {s.category}")
            if s.tags:
                out.append(f"    Tags    : {', '.join(s.tags)}")

        out.append(f"\n{thin}")
        return "\n".join(out)

    # ── JSON ──────────────────────────────────────────────────────

    @staticmethod
    def format_json(results: List[Shortcut]) -> str:
        """Format results as a JSON array of shortcut objects."""
        return json.dumps([s.to_dict() for s in results], indent=2, ensure_ascii=False)

    # ── Compact (one line per result) ─────────────────────────────

    @staticmethod
    def format_compact(results: List[Shortcut], platform: Platform | str | None = None) -> str:
        """``app  keys  action`` per line, keys as ``mac | windows | linux``."""
        if not results:
            return "No results found."

        only = Platform.coerce(platform) if platform is not None else None
        lines: List[str] = []
        for s in results:
            combos = " | ".join(combo for _, combo in ResultFormatter._bindings(s, only)) or "—"
            lines.append(f"{s.app}  {combos}  {s.action}")
        return "\n".join(lines)
