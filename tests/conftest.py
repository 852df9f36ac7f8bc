"""
Shared fixtures for the Katasumi test suite.
"""

import json
import sys
import warnings
from pathlib import Path

import pytest

# Filter deprecation warnings from pytest-asyncio; we cannot fix the library.
warnings.filterwarnings(
    "ignore",
    category=DeprecationWarning,
    module="pytest_asyncio",
)

# Ensure the src/ directory is on the import path so that
# katasumi.core.* can be imported without an editable install.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from katasumi.core.config import KatasumiConfig  # noqa: E402
from katasumi.core.engine import Shortcut  # noqa: E402
from katasumi.core.search import InMemoryRepository, ShortcutSearchEngine  # noqa: E402


# =============================================================================
# Fixtures: a small multi-application catalog
# =============================================================================

SAMPLE_RECORDS = [
    {"id": "vscode-copy-line", "app": "vscode", "action": "Copy Line Down",
     "keys": {"mac": "Shift+Alt+Down", "windows": "Shift+Alt+Down", "linux": "Ctrl+Shift+Alt+Down"},
     "context": "Editor", "category": "Editing", "tags": ["duplicate", "line"]},
    {"id": "vscode-goto-def", "app": "vscode", "action": "Go to Definition",
     "keys": {"mac": "F12", "windows": "F12", "linux": "F12"},
     "context": "Editor", "category": "Navigation", "tags": ["navigate", "symbol"]},
    {"id": "vscode-palette", "app": "vscode", "action": "Show Command Palette",
     "keys": {"mac": "⌘⇧P", "windows": "Ctrl+Shift+P", "linux": "Ctrl+Shift+P"},
     "category": "General", "tags": ["commands"]},
    {"id": "vscode-copy", "app": "vscode", "action": "Copy",
     "keys": {"mac": "Cmd+C", "windows": "Ctrl+C", "linux": "Ctrl+C"},
     "context": "Editor", "category": "Editing", "tags": ["clipboard"]},
    {"id": "tmux-split-h", "app": "tmux", "action": "Split pane horizontally",
     "keys": {"mac": "Ctrl+B %", "linux": "Ctrl+B %"},
     "category": "Panes", "tags": ["split", "pane"]},
    {"id": "tmux-new-window", "app": "tmux", "action": "Create new window",
     "keys": {"mac": "Ctrl+B C", "linux": "Ctrl+B C"},
     "category": "Windows", "tags": ["window"]},
    {"id": "windows-lock", "app": "windows", "action": "Lock computer",
     "keys": {"windows": "Win+L"}, "category": "System", "tags": ["lock", "security"]},
    {"id": "windows-copy", "app": "windows", "action": "Copy",
     "keys": {"windows": "Ctrl+C"}, "category": "Editing", "tags": ["clipboard"]},
    {"id": "macos-spotlight", "app": "macos", "action": "Open Spotlight",
     "keys": {"mac": "Cmd+Space"}, "category": "System", "tags": ["search"]},
    {"id": "macos-copy", "app": "macos", "action": "Copy",
     "keys": {"mac": "Command+C"}, "category": "Editing", "tags": ["clipboard"]},
]


@pytest.fixture
def config(tmp_path: Path) -> KatasumiConfig:
    """KatasumiConfig pointing at a throwaway catalog directory."""
    return KatasumiConfig(catalog_dir=str(tmp_path / "katasumi-home"))


@pytest.fixture
def sample_shortcuts() -> list:
    return [Shortcut.from_dict(record) for record in SAMPLE_RECORDS]


@pytest.fixture
def repository(sample_shortcuts) -> InMemoryRepository:
    return InMemoryRepository(sample_shortcuts)


@pytest.fixture
def engine(repository, config) -> ShortcutSearchEngine:
    return ShortcutSearchEngine(repository, config=config)


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    """A JSON catalog file holding the sample records."""
    path = tmp_path / "catalogs" / "sample.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(SAMPLE_RECORDS, ensure_ascii=False), encoding="utf-8")
    return path
