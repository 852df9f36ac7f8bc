"""
Katasumi Configuration Module

Centralized configuration for the shortcut catalog and the matching
engine, plus the static lookup tables the engine reads (application
aliases, key glyphs, modifier names, score tiers).

The tables are immutable module-level mappings built once at import
time; iteration order is declaration order, which the application
detector relies on to break ties identically across runs.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Tuple

# =============================================================================
# Static Lookup Tables
# =============================================================================

# Canonical application key -> recognised aliases (declaration order matters)
APP_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "vscode":  ("vscode", "vs code", "visual studio code", "vsc", "code"),
    "vim":     ("vim", "vi"),
    "bash":    ("bash", "shell", "terminal"),
    "git":     ("git",),
    "tmux":    ("tmux", "tm"),
    "gnome":   ("gnome",),
    "macos":   ("macos", "mac os", "osx", "os x", "mac"),
    "windows": ("windows", "win"),
})

# Unicode key glyphs -> ASCII key words
KEY_GLYPHS: Mapping[str, str] = MappingProxyType({
    "⌘": "cmd",
    "⌥": "alt",
    "⇧": "shift",
    "⌃": "ctrl",
    "⏎": "enter",
    "⌫": "backspace",
    "⎋": "esc",
    "␣": "space",
    "⇥": "tab",
})

# Whole-word modifier spellings -> canonical modifier
MODIFIER_ALIASES: Mapping[str, str] = MappingProxyType({
    "command": "cmd",
    "control": "ctrl",
    "option":  "alt",
    "meta":    "cmd",
    "super":   "cmd",
    "win":     "cmd",
})

# Canonical modifier order in a normalized key string
MODIFIER_ORDER: Tuple[str, ...] = ("ctrl", "alt", "shift", "cmd")

# Relevance tiers, highest first.  ``fuzzy_base`` + (similarity - threshold)
# * ``fuzzy_span`` gives the Levenshtein tier its (0.3, 0.4] range.
SCORE_TIERS: Mapping[str, float] = MappingProxyType({
    "exact_action": 1.0,
    "action_prefix": 0.8,
    "exact_tag": 0.7,
    "action_substring": 0.6,
    "all_words_in_action": 0.5,
    "tag_substring": 0.45,
    "fuzzy_threshold": 0.5,
    "fuzzy_base": 0.3,
    "fuzzy_span": 0.2,
    "word_in_tag": 0.25,
})


# =============================================================================
# Instance-Based Configuration
# =============================================================================

@dataclass
class KatasumiConfig:
    """
    Instance-based configuration for Katasumi.

    Each instance is self-contained and passed through the call stack,
    so several catalogs (or test fixtures) can coexist in one process.

    Create from environment variables::

        config = KatasumiConfig.from_env()

    Or with explicit values::

        config = KatasumiConfig(catalog_dir="/tmp/katasumi", default_limit=20)
    """

    # ── Catalog ───────────────────────────────────────────────────
    catalog_dir: str = "~/.katasumi"
    catalog_db_name: str = "catalog.db"
    catalog_extensions: frozenset = frozenset((".json",))
    max_file_size_mb: int = 5

    # ── Search ────────────────────────────────────────────────────
    default_limit: int = 50
    fetch_ceiling: int = 10000  # Local scoring needs the whole candidate set

    # ── Application detection heuristics ──────────────────────────
    # "window" must not abbreviate "windows": the alias has to be at
    # least ``abbreviation_min_gap`` characters longer than the word.
    abbreviation_min_gap: int = 2
    abbreviation_min_ratio: float = 0.4
    abbreviation_min_word_length: int = 2
    abbreviation_min_alias_length: int = 3

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "KatasumiConfig":
        """Build a config snapshot from current environment variables.

        Reads :envvar:`KATASUMI_HOME`, :envvar:`KATASUMI_SEARCH_LIMIT` and
        :envvar:`KATASUMI_LOG_LEVEL`.
        """
        return cls(
            catalog_dir=os.getenv("KATASUMI_HOME", "~/.katasumi"),
            default_limit=int(os.getenv("KATASUMI_SEARCH_LIMIT", "50")),
            log_level=os.getenv("KATASUMI_LOG_LEVEL", "INFO").upper(),
        )

    # ── Validation & Accessors ────────────────────────────────────

    def validate(self) -> bool:
        """
        Check limits and detection heuristics for sane values.

        Raises :class:`~katasumi.exceptions.ConfigError` on failure.
        """
        from katasumi.exceptions import ConfigError

        if self.default_limit <= 0:
            raise ConfigError(f"default_limit must be positive, got {self.default_limit}.")
        if self.fetch_ceiling <= 0:
            raise ConfigError(f"fetch_ceiling must be positive, got {self.fetch_ceiling}.")
        if self.abbreviation_min_gap < 1:
            raise ConfigError(
                f"abbreviation_min_gap must be at least 1, got {self.abbreviation_min_gap}."
            )
        if not 0.0 < self.abbreviation_min_ratio <= 1.0:
            raise ConfigError(
                f"abbreviation_min_ratio must be in (0, 1], got {self.abbreviation_min_ratio}."
            )
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(
                f"Unknown log level '{self.log_level}'.\n"
                "  Set via: export KATASUMI_LOG_LEVEL=INFO"
            )
        return True

    def get_catalog_dir(self) -> Path:
        """Return the catalog directory with ``~`` expanded."""
        return Path(self.catalog_dir).expanduser()

    def get_catalog_path(self, base_dir: Path | None = None) -> Path:
        """Get the path to the catalog database."""
        return (base_dir if base_dir is not None else self.get_catalog_dir()) / self.catalog_db_name
