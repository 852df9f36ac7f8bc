"""
Katasumi Core Engine

Shortcut data models, the pure matching algorithms (key normalization,
application detection, relevance scoring with Levenshtein similarity),
and the SQLite-backed shortcut catalog.

Nothing in the algorithm section touches I/O or module state: every
function is a deterministic function of its arguments, so the ranking
layer in :mod:`katasumi.core.search` can be tested without a catalog.
"""

import asyncio
import hashlib
import logging
import re
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from katasumi.core.config import (
    APP_ALIASES,
    KEY_GLYPHS,
    MODIFIER_ALIASES,
    MODIFIER_ORDER,
    SCORE_TIERS,
)
from katasumi.exceptions import CatalogFormatError

# Application code (CLI) is responsible for configuring logging.
logger = logging.getLogger(__name__)


# =============================================================================
# Data Models
# =============================================================================

class Platform(str, Enum):
    """Operating systems a shortcut can be bound on."""
    MAC = "mac"
    WINDOWS = "windows"
    LINUX = "linux"

    @classmethod
    def coerce(cls, value: "Platform | str") -> "Platform":
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown platform '{value}'. "
                f"Supported: {', '.join(p.value for p in cls)}."
            ) from None


# Fixed lookup order for platform-agnostic reverse lookup
PLATFORM_ORDER: Tuple[Platform, ...] = (Platform.MAC, Platform.WINDOWS, Platform.LINUX)


class SourceType(str, Enum):
    """Where a catalog entry came from."""
    OFFICIAL = "official"
    COMMUNITY = "community"
    AI_SCRAPED = "ai-scraped"
    USER_ADDED = "user-added"


@dataclass(frozen=True)
class Source:
    """Provenance metadata for a shortcut."""
    type: SourceType = SourceType.COMMUNITY
    url: str = ""
    scraped_at: str = ""
    """ISO-8601 timestamp of when the entry was collected."""
    confidence: float = 1.0

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "url": self.url,
            "scraped_at": self.scraped_at,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Source":
        if not isinstance(data, Mapping):
            raise CatalogFormatError(f"'source' must be an object, got {type(data).__name__}.")
        try:
            source_type = SourceType(str(data.get("type", SourceType.COMMUNITY.value)).lower())
        except ValueError:
            raise CatalogFormatError(f"Unknown source type '{data.get('type')}'.") from None
        try:
            confidence = float(data.get("confidence", 1.0))
        except (TypeError, ValueError):
            raise CatalogFormatError(
                f"Source confidence must be a number, got {data.get('confidence')!r}."
            ) from None
        if not 0.0 <= confidence <= 1.0:
            raise CatalogFormatError(f"Source confidence must be in [0, 1], got {confidence}.")
        return cls(
            type=source_type,
            url=str(data.get("url") or ""),
            scraped_at=str(data.get("scraped_at") or data.get("scrapedAt") or ""),
            confidence=confidence,
        )


@dataclass(frozen=True)
class Shortcut:
    """One keyboard-triggerable action and its per-platform key bindings.

    ``keys`` maps a platform value (``"mac"``, ``"windows"``, ``"linux"``)
    to the raw key string; a missing or empty entry means no binding on
    that platform.  ``keys`` is stored read-only and ``tags`` as a tuple,
    so a shortcut is immutable and hashes by its ``id``.
    """
    id: str
    app: str
    action: str
    keys: Mapping[str, str] = field(default_factory=dict)
    context: Optional[str] = None
    category: Optional[str] = None
    tags: Tuple[str, ...] = ()
    source: Optional[Source] = None

    def __post_init__(self):
        object.__setattr__(self, "keys", MappingProxyType(dict(self.keys)))
        object.__setattr__(self, "tags", tuple(self.tags))

    def __hash__(self):
        return hash(self.id)

    def binding(self, platform: Platform | str) -> Optional[str]:
        """Return the raw key string for *platform*, or None when unbound."""
        return self.keys.get(Platform.coerce(platform).value) or None

    def has_binding(self, platform: Platform | str) -> bool:
        return self.binding(platform) is not None

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict (same shape :meth:`from_dict` reads)."""
        obj: Dict[str, Any] = {
            "id": self.id,
            "app": self.app,
            "action": self.action,
            "keys": {p.value: self.keys[p.value] for p in PLATFORM_ORDER if self.keys.get(p.value)},
            "context": self.context,
            "category": self.category,
            "tags": list(self.tags),
        }
        if self.source is not None:
            obj["source"] = self.source.to_dict()
        return obj

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_app: str | None = None) -> "Shortcut":
        """
        Build a shortcut from a catalog record.

        ``app`` falls back to *default_app*; ``id`` is derived from
        (app, action, context) when absent so re-imports stay stable.

        Raises:
            CatalogFormatError: On a missing app/action, a non-mapping
                ``keys`` or ``source`` value, ``tags`` that are neither a
                list nor a string, a non-numeric confidence, or an
                unknown platform name.
        """
        if not isinstance(data, Mapping):
            raise CatalogFormatError(f"Shortcut record must be an object, got {type(data).__name__}.")

        app = str(data.get("app") or default_app or "").strip()
        action = str(data.get("action") or "").strip()
        if not app:
            raise CatalogFormatError("Shortcut record is missing 'app'.")
        if not action:
            raise CatalogFormatError(f"Shortcut record for '{app}' is missing 'action'.")

        raw_keys = data.get("keys") or {}
        if not isinstance(raw_keys, Mapping):
            raise CatalogFormatError(f"'keys' for '{action}' must be an object of platform -> keys.")
        keys: Dict[str, str] = {}
        for platform_name, combo in raw_keys.items():
            try:
                platform = Platform.coerce(platform_name)
            except ValueError as exc:
                raise CatalogFormatError(str(exc)) from None
            if combo:
                keys[platform.value] = str(combo)

        raw_tags = data.get("tags") or ()
        if isinstance(raw_tags, str):
            raw_tags = raw_tags.split(",")
        elif not isinstance(raw_tags, (list, tuple)):
            raise CatalogFormatError(
                f"'tags' for '{action}' must be a list or a comma-separated string."
            )
        tags = tuple(t.strip() for t in (str(t) for t in raw_tags) if t.strip())

        context = str(data["context"]) if data.get("context") else None
        category = str(data["category"]) if data.get("category") else None
        source = Source.from_dict(data["source"]) if data.get("source") else None

        shortcut_id = str(data.get("id") or "").strip() or make_shortcut_id(app, action, context)
        return cls(
            id=shortcut_id,
            app=app,
            action=action,
            keys=keys,
            context=context,
            category=category,
            tags=tags,
            source=source,
        )


@dataclass(frozen=True)
class SearchFilters:
    """Pre-filters applied before scoring; none of them affect the score.

    ``app`` and ``category`` are pushed down to the repository;
    ``platform`` (binding present) and ``context`` (exact match) are
    applied locally.
    """
    app: Optional[str] = None
    platform: Optional[Platform] = None
    category: Optional[str] = None
    context: Optional[str] = None

    def __post_init__(self):
        if self.platform is not None:
            object.__setattr__(self, "platform", Platform.coerce(self.platform))


@dataclass
class ScoredShortcut:
    """Transient (shortcut, score) pair used while ranking."""
    shortcut: Shortcut
    score: float

    def __lt__(self, other):
        return self.score > other.score  # Higher score = better


@dataclass
class AppInfo:
    """Per-application summary of the catalog."""
    name: str
    shortcut_count: int
    platforms: List[str] = field(default_factory=list)
    """Platforms with at least one binding, in mac/windows/linux order."""
    categories: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "shortcut_count": self.shortcut_count,
            "platforms": list(self.platforms),
            "categories": list(self.categories),
        }


@dataclass
class ImportResult:
    """Typed result returned by :meth:`CatalogImporter.run`."""
    files_scanned: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    shortcuts_found: int = 0
    shortcuts_imported: int = 0
    errors: int = 0
    catalog_path: str = ""

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "files_processed": self.files_processed,
            "files_skipped": self.files_skipped,
            "shortcuts_found": self.shortcuts_found,
            "shortcuts_imported": self.shortcuts_imported,
            "errors": self.errors,
            "catalog_path": self.catalog_path,
        }


def make_shortcut_id(app: str, action: str, context: str | None = None) -> str:
    """Derive a stable id from the identifying fields of a shortcut."""
    basis = "\x1f".join((app.lower(), action.lower(), (context or "").lower()))
    digest = hashlib.sha1(basis.encode("utf-8")).hexdigest()[:12]
    return f"{app.lower()}-{digest}"


# =============================================================================
# Key Normalization
# =============================================================================

_SEPARATOR_RE = re.compile(r"[\s\-_]+")
_REPEATED_PLUS_RE = re.compile(r"\+{2,}")


def normalize_keys(raw: str | None) -> str:
    """
    Canonicalize a key-combination string.

    Glyphs and modifier spellings are mapped to ``ctrl``/``alt``/``shift``/
    ``cmd``, separators collapse to ``+``, and modifiers come first in that
    fixed order; everything else keeps its original relative order::

        >>> normalize_keys("Shift+Control+P")
        'ctrl+shift+p'
        >>> normalize_keys("⌘⇧P")
        'shift+cmd+p'
        >>> normalize_keys("Command-Option-Esc")
        'alt+cmd+esc'

    Glyph input gets no ordering of its own: ``⌘⇧`` is read as the two
    modifiers ``cmd`` and ``shift``, which then take the fixed
    ``ctrl, alt, shift, cmd`` positions like any spelled-out modifier.

    Empty or None input yields ``""``.
    """
    if not raw:
        return ""

    normalized = raw.lower().strip()

    for glyph, word in KEY_GLYPHS.items():
        # Glyphs are written without separators ("⌘K"), so each one
        # becomes a token of its own.
        normalized = normalized.replace(glyph, f"+{word}+")

    normalized = _SEPARATOR_RE.sub("+", normalized)
    normalized = _REPEATED_PLUS_RE.sub("+", normalized)

    # Whole-token modifier spellings ("command", "option", "win", ...)
    parts = [p.strip() for p in normalized.split("+")]
    parts = [MODIFIER_ALIASES.get(p, p) for p in parts if p]

    modifiers = [p for p in parts if p in MODIFIER_ORDER]
    others = [p for p in parts if p not in MODIFIER_ORDER]
    modifiers.sort(key=MODIFIER_ORDER.index)

    return "+".join(modifiers + others)


def keys_equivalent(a: str | None, b: str | None) -> bool:
    """True when both key strings normalize to the same canonical form."""
    return normalize_keys(a) == normalize_keys(b)


# =============================================================================
# Application Detection
# =============================================================================

def _is_abbreviation(word: str, name: str, min_gap: int,
                     min_word_length: int, min_name_length: int) -> bool:
    """*word* is a strict prefix of *name*, shorter by at least *min_gap* chars."""
    if len(word) < min_word_length or len(name) < min_name_length:
        return False
    return len(name) - len(word) >= min_gap and name.startswith(word)


def detect_app_in_query(
    query: str,
    available_apps: Iterable[str],
    *,
    aliases: Mapping[str, Sequence[str]] = APP_ALIASES,
    min_gap: int = 2,
    min_ratio: float = 0.4,
    min_word_length: int = 2,
    min_alias_length: int = 3,
) -> Optional[str]:
    """
    Return the application a lowercase, trimmed *query* refers to, if any.

    Pass 1 walks the alias table in declaration order (only apps present
    in *available_apps*) and accepts an exact word match, an abbreviation
    (``"vsc"`` -> ``"vscode"``), or a query that starts with / equals an
    alias.  Pass 2 falls back to the raw app names in first-seen order,
    with an extra guard that an abbreviating word covers at least
    *min_ratio* of the name.

    The first accepted name wins; the canonical alias-table key is
    returned for pass 1, the raw app name for pass 2.
    """
    available = [a for a in dict.fromkeys(app.lower() for app in available_apps) if a]
    present = set(available)
    words = query.split()

    for app_name, app_aliases in aliases.items():
        if app_name.lower() not in present:
            continue
        for alias in app_aliases:
            alias = alias.lower()
            for word in words:
                if word == alias:
                    return app_name
                if _is_abbreviation(word, alias, min_gap, min_word_length, min_alias_length):
                    return app_name
            if query.startswith(alias + " ") or query == alias:
                return app_name

    for app_name in available:
        if query.startswith(app_name + " ") or query == app_name:
            return app_name
        for word in words:
            if (_is_abbreviation(word, app_name, min_gap, min_word_length, 0)
                    and len(word) >= len(app_name) * min_ratio):
                return app_name

    return None


def _remove_token_sequence(tokens: List[str], sequence: List[str]) -> List[str]:
    """Drop every non-overlapping occurrence of *sequence* from *tokens*."""
    n = len(sequence)
    out: List[str] = []
    i = 0
    while i < len(tokens):
        if tokens[i:i + n] == sequence:
            i += n
        else:
            out.append(tokens[i])
            i += 1
    return out


def strip_app_aliases(query: str, aliases: Iterable[str]) -> str:
    """
    Remove every whole-word occurrence of each alias from *query*.

    Matching is case-insensitive and works on whitespace tokens, so a
    multi-word alias (``"visual studio code"``) only matches the same
    consecutive words.  The result is lowercased and single-spaced.
    """
    tokens = query.lower().split()
    for alias in aliases:
        alias_tokens = alias.lower().split()
        if alias_tokens:
            tokens = _remove_token_sequence(tokens, alias_tokens)
    return " ".join(tokens)


def aliases_for(app_name: str, aliases: Mapping[str, Sequence[str]] = APP_ALIASES) -> Tuple[str, ...]:
    """Aliases of *app_name*, or just the name itself when it has none."""
    return tuple(aliases.get(app_name, (app_name,)))


# =============================================================================
# Relevance Scoring
# =============================================================================

def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current[j] = previous[j - 1]
            else:
                current[j] = min(
                    previous[j] + 1,       # deletion
                    current[j - 1] + 1,    # insertion
                    previous[j - 1] + 1,   # substitution
                )
        previous = current
    return previous[len(b)]


def fuzzy_similarity(a: str, b: str) -> float:
    """``1 - distance / longest length``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def score_shortcut(action: str, tags: Iterable[str], query: str) -> float:
    """
    Score how well *query* matches a shortcut's action and tags.

    Tiers (the highest achieved wins):

    ====  ==============================================  ============
    1     action equals query                              1.0
    2     action starts with query                         0.8
    3     a tag equals query                               0.7
    4     query is a substring of action                   0.6
    5     2+ query words, every one inside action          0.5
    6     query is a substring of a tag                    0.45
    7     Levenshtein similarity(action, query) > 0.5      0.3 - 0.4
    8     any query word inside any tag                    0.25
    ====  ==============================================  ============

    Returns 0.0 when nothing matches.
    """
    action = action.lower()
    query = query.lower()
    tags = [t.lower() for t in tags]

    if action == query:
        return SCORE_TIERS["exact_action"]

    score = 0.0

    if action.startswith(query):
        score = max(score, SCORE_TIERS["action_prefix"])

    if any(tag == query for tag in tags):
        score = max(score, SCORE_TIERS["exact_tag"])

    if query in action:
        score = max(score, SCORE_TIERS["action_substring"])

    query_words = query.split()
    if len(query_words) > 1 and all(word in action for word in query_words):
        score = max(score, SCORE_TIERS["all_words_in_action"])

    if any(query in tag for tag in tags):
        score = max(score, SCORE_TIERS["tag_substring"])

    similarity = fuzzy_similarity(action, query)
    threshold = SCORE_TIERS["fuzzy_threshold"]
    if similarity > threshold:
        fuzzy = SCORE_TIERS["fuzzy_base"] + (similarity - threshold) * SCORE_TIERS["fuzzy_span"]
        score = max(score, fuzzy)

    if any(word in tag for word in query_words for tag in tags):
        score = max(score, SCORE_TIERS["word_in_tag"])

    return score


# =============================================================================
# Shortcut Catalog (SQLite)
# =============================================================================

_SHORTCUT_COLUMNS = (
    "id, app, action, keys_mac, keys_windows, keys_linux, context, category, "
    "tags, source_type, source_url, source_scraped_at, source_confidence"
)


class ShortcutCatalog:
    """SQLite-backed shortcut catalog.

    Uses thread-local connections so that each thread reuses a single
    connection; :meth:`fetch_candidates` runs its query in a worker
    thread, which therefore gets its own connection.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._local = threading.local()
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Return a thread-local SQLite connection, creating it on first use."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path)
        return self._local.conn

    def close(self) -> None:
        """Close the thread-local connection for the current thread. Idempotent."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def _init_db(self):
        """Initialize the database schema."""
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS imported_files (
                file_path TEXT PRIMARY KEY,
                file_hash TEXT NOT NULL,
                last_imported TIMESTAMP NOT NULL,
                shortcut_count INTEGER DEFAULT 0
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS shortcuts (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                app TEXT NOT NULL,
                action TEXT NOT NULL,
                keys_mac TEXT,
                keys_windows TEXT,
                keys_linux TEXT,
                context TEXT,
                category TEXT,
                tags TEXT NOT NULL DEFAULT '',
                source_type TEXT,
                source_url TEXT,
                source_scraped_at TEXT,
                source_confidence REAL,
                source_file TEXT,
                imported_at TIMESTAMP NOT NULL
            )
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_shortcuts_app ON shortcuts(app COLLATE NOCASE)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_shortcuts_category ON shortcuts(category)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_shortcuts_source_file ON shortcuts(source_file)")
        conn.commit()

    # ── Import bookkeeping ────────────────────────────────────────

    def get_file_hash(self, file_path: Path) -> str:
        """Compute SHA256 hash of file contents."""
        return hashlib.sha256(file_path.read_bytes()).hexdigest()

    def is_file_imported(self, file_path: Path) -> bool:
        """Check if file is already imported and unchanged since."""
        current_hash = self.get_file_hash(file_path)
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT file_hash FROM imported_files WHERE file_path = ?",
            (str(file_path),),
        )
        row = cursor.fetchone()
        return bool(row and row[0] == current_hash)

    def mark_file_imported(self, file_path: Path, shortcut_count: int):
        """Record a file as imported with its current content hash."""
        file_hash = self.get_file_hash(file_path)
        conn = self._get_connection()
        now_iso = datetime.now().isoformat()
        conn.execute("""
            INSERT OR REPLACE INTO imported_files (file_path, file_hash, last_imported, shortcut_count)
            VALUES (?, ?, ?, ?)
        """, (str(file_path), file_hash, now_iso, shortcut_count))
        conn.commit()

    def clear_file_entries(self, file_path: Path):
        """Remove all shortcuts imported from *file_path* and its bookkeeping row."""
        conn = self._get_connection()
        conn.execute("DELETE FROM shortcuts WHERE source_file = ?", (str(file_path),))
        conn.execute("DELETE FROM imported_files WHERE file_path = ?", (str(file_path),))
        conn.commit()

    # ── Writes ────────────────────────────────────────────────────

    def add_shortcuts(self, shortcuts: Iterable[Shortcut], source_file: Path | None = None) -> int:
        """Insert or replace *shortcuts* (keyed by id) in one transaction."""
        conn = self._get_connection()
        now_iso = datetime.now().isoformat()
        count = 0
        for s in shortcuts:
            src = s.source
            conn.execute("""
                INSERT OR REPLACE INTO shortcuts
                (id, app, action, keys_mac, keys_windows, keys_linux, context, category,
                 tags, source_type, source_url, source_scraped_at, source_confidence,
                 source_file, imported_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                s.id, s.app, s.action,
                s.binding(Platform.MAC), s.binding(Platform.WINDOWS), s.binding(Platform.LINUX),
                s.context, s.category, ",".join(s.tags),
                src.type.value if src else None,
                src.url if src else None,
                src.scraped_at if src else None,
                src.confidence if src else None,
                str(source_file) if source_file else None,
                now_iso,
            ))
            count += 1
        conn.commit()
        return count

    def add_shortcut(self, shortcut: Shortcut, source_file: Path | None = None) -> None:
        self.add_shortcuts([shortcut], source_file=source_file)

    # ── Reads ─────────────────────────────────────────────────────

    @staticmethod
    def _row_to_shortcut(row: sqlite3.Row) -> Shortcut:
        keys = {
            p.value: row[f"keys_{p.value}"]
            for p in PLATFORM_ORDER
            if row[f"keys_{p.value}"]
        }
        source = None
        if row["source_type"]:
            source = Source(
                type=SourceType(row["source_type"]),
                url=row["source_url"] or "",
                scraped_at=row["source_scraped_at"] or "",
                confidence=row["source_confidence"] if row["source_confidence"] is not None else 1.0,
            )
        return Shortcut(
            id=row["id"],
            app=row["app"],
            action=row["action"],
            keys=keys,
            context=row["context"],
            category=row["category"],
            tags=tuple(t for t in (row["tags"] or "").split(",") if t),
            source=source,
        )

    def get_shortcut(self, shortcut_id: str) -> Optional[Shortcut]:
        conn = self._get_connection()
        conn.row_factory = sqlite3.Row
        cursor = conn.execute(
            f"SELECT {_SHORTCUT_COLUMNS} FROM shortcuts WHERE id = ?", (shortcut_id,)
        )
        row = cursor.fetchone()
        conn.row_factory = None
        return self._row_to_shortcut(row) if row else None

    def search_shortcuts(self, app: str | None = None, category: str | None = None,
                         limit: int = 50) -> List[Shortcut]:
        """
        Return shortcuts in insertion order, optionally restricted to one
        application (case-insensitive) and/or one category (exact).
        """
        conditions: List[str] = []
        params: List[Any] = []
        if app:
            conditions.append("app = ? COLLATE NOCASE")
            params.append(app)
        if category:
            conditions.append("category = ?")
            params.append(category)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(max(limit, 0))

        conn = self._get_connection()
        conn.row_factory = sqlite3.Row
        cursor = conn.execute(f"""
            SELECT {_SHORTCUT_COLUMNS}
            FROM shortcuts
            {where}
            ORDER BY seq
            LIMIT ?
        """, params)
        results = [self._row_to_shortcut(row) for row in cursor.fetchall()]
        conn.row_factory = None
        return results

    async def fetch_candidates(self, *, app: str | None = None, category: str | None = None,
                               limit: int = 10000) -> List[Shortcut]:
        """Repository entry point for the search engine (runs off the event loop)."""
        return await asyncio.to_thread(self._search_in_worker, app, category, limit)

    def _search_in_worker(self, app: str | None, category: str | None, limit: int) -> List[Shortcut]:
        # Worker threads are pooled; don't leave their connections open.
        try:
            return self.search_shortcuts(app, category, limit)
        finally:
            self.close()

    def list_apps(self) -> List[AppInfo]:
        """Summarize each application: shortcut count, bound platforms, categories."""
        conn = self._get_connection()
        cursor = conn.execute("""
            SELECT app,
                   COUNT(*),
                   SUM(CASE WHEN keys_mac IS NOT NULL AND keys_mac != '' THEN 1 ELSE 0 END),
                   SUM(CASE WHEN keys_windows IS NOT NULL AND keys_windows != '' THEN 1 ELSE 0 END),
                   SUM(CASE WHEN keys_linux IS NOT NULL AND keys_linux != '' THEN 1 ELSE 0 END)
            FROM shortcuts
            GROUP BY app
            ORDER BY app
        """)
        apps: List[AppInfo] = []
        for name, count, mac, windows, linux in cursor.fetchall():
            platforms = [
                p.value for p, bound in zip(PLATFORM_ORDER, (mac, windows, linux)) if bound
            ]
            apps.append(AppInfo(name=name, shortcut_count=count, platforms=platforms))

        cursor = conn.execute("""
            SELECT DISTINCT app, category FROM shortcuts
            WHERE category IS NOT NULL AND category != ''
            ORDER BY app, category
        """)
        by_app = {info.name: info for info in apps}
        for name, category in cursor.fetchall():
            by_app[name].categories.append(category)
        return apps

    def get_stats(self) -> Dict[str, int]:
        """Get catalog statistics (files, shortcuts, applications)."""
        conn = self._get_connection()
        cursor = conn.execute("SELECT COUNT(*) FROM imported_files")
        file_count = cursor.fetchone()[0]

        cursor = conn.execute("SELECT COUNT(*) FROM shortcuts")
        shortcut_count = cursor.fetchone()[0]

        cursor = conn.execute("SELECT COUNT(DISTINCT app) FROM shortcuts")
        app_count = cursor.fetchone()[0]

        return {
            "imported_files": file_count,
            "shortcuts": shortcut_count,
            "apps": app_count,
        }
