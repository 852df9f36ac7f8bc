"""
Katasumi Catalog Importer

Loads JSON shortcut catalogs into the SQLite catalog
(``~/.katasumi/catalog.db`` by default).

- Scans a single file or a directory tree for catalog files
- Incremental: unchanged files (same content hash) are skipped
- Per-file replacement: re-importing a file drops its old entries first
- Dry-run mode parses and validates without writing

A catalog file is either a JSON array of shortcut objects, or an object
with an optional default ``app`` and a ``shortcuts`` array::

    {"app": "vscode", "shortcuts": [
        {"action": "Copy line down", "keys": {"mac": "Shift+Alt+Down"},
         "category": "Editing", "tags": ["duplicate", "line"]}
    ]}
"""

import json
import logging
import os
from pathlib import Path
from typing import List

from tqdm import tqdm

from katasumi.core.config import KatasumiConfig
from katasumi.core.engine import ImportResult, Shortcut, ShortcutCatalog
from katasumi.exceptions import CatalogFormatError

logger = logging.getLogger(__name__)


def scan_catalog_files(root_path: Path, config: KatasumiConfig | None = None) -> List[Path]:
    """
    Return catalog files under *root_path* (or *root_path* itself when it
    is a file), sorted for a deterministic import order.

    Hidden directories are pruned; files larger than
    ``config.max_file_size_mb`` are skipped with a warning.
    """
    cfg = config or KatasumiConfig.from_env()
    max_bytes = cfg.max_file_size_mb * 1024 * 1024

    if root_path.is_file():
        candidates = [root_path]
    else:
        candidates = []
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for fname in filenames:
                if os.path.splitext(fname)[1].lower() in cfg.catalog_extensions:
                    candidates.append(Path(dirpath) / fname)

    catalog_files: List[Path] = []
    for path in candidates:
        try:
            size = path.stat().st_size
        except OSError:
            continue
        if size <= max_bytes:
            catalog_files.append(path)
        else:
            logger.warning(f"Skipping large file: {path} ({size / (1024 * 1024):.1f}MB)")

    catalog_files.sort()
    return catalog_files


def parse_catalog(text: str) -> List[Shortcut]:
    """
    Parse catalog file contents into shortcuts.

    Raises:
        CatalogFormatError: Invalid JSON, an unexpected top-level shape,
            or a malformed shortcut record.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogFormatError(f"Invalid JSON: {exc}") from exc

    default_app = None
    if isinstance(data, dict):
        default_app = data.get("app")
        records = data.get("shortcuts")
    else:
        records = data
    if not isinstance(records, list):
        raise CatalogFormatError(
            "Catalog must be a list of shortcuts or an object with a 'shortcuts' list."
        )

    return [Shortcut.from_dict(record, default_app=default_app) for record in records]


# =============================================================================
# Import Pipeline
# =============================================================================

class CatalogImporter:
    """
    Orchestrates loading catalog files into a :class:`ShortcutCatalog`.
    """

    def __init__(self, source: Path, catalog_dir: Path | None = None,
                 dry_run: bool = False, force: bool = False,
                 config: KatasumiConfig | None = None, show_progress: bool = True):
        """
        Args:
            source: Catalog file or directory of catalog files.
            catalog_dir: Directory holding the catalog database
                (default ``config.catalog_dir``).
            dry_run: Parse and validate only; nothing is written.
            force: Re-import files even when unchanged.
            show_progress: Show a tqdm progress bar.
        """
        self.config = config or KatasumiConfig.from_env()
        self.source = source
        self.dry_run = dry_run
        self.force = force
        self.show_progress = show_progress

        self.catalog_dir = catalog_dir if catalog_dir else self.config.get_catalog_dir()
        self.catalog_dir.mkdir(parents=True, exist_ok=True)
        self.catalog_path = self.config.get_catalog_path(self.catalog_dir)
        self.catalog = ShortcutCatalog(self.catalog_path)

        self.result = ImportResult(catalog_path=str(self.catalog_path))

    def run(self) -> ImportResult:
        """
        Execute the import.

        Steps:
          1. Scan for catalog files
          2. Skip files already imported unchanged (unless forced)
          3. Parse and validate each file
          4. Replace the file's entries in the catalog
        """
        logger.info(f"Importing shortcuts from {self.source} into {self.catalog_path}")
        if self.dry_run:
            logger.info("Dry run: nothing will be written")

        try:
            files = scan_catalog_files(self.source, self.config)
            self.result.files_scanned = len(files)
            if not files:
                logger.warning(f"No catalog files found under {self.source}.")
                return self.result

            if self.force:
                to_process = files
            else:
                to_process = [f for f in files if not self.catalog.is_file_imported(f)]
                self.result.files_skipped = len(files) - len(to_process)

            logger.info(
                f"{len(to_process):,} to import, {self.result.files_skipped:,} up-to-date"
            )

            with tqdm(total=len(to_process), desc="Importing catalogs", unit="file",
                      disable=not self.show_progress) as pbar:
                for file_path in to_process:
                    if self._process_file(file_path):
                        self.result.files_processed += 1
                    else:
                        self.result.errors += 1
                    pbar.update(1)
        finally:
            self.catalog.close()

        logger.info(
            f"Imported {self.result.shortcuts_imported:,} shortcuts "
            f"from {self.result.files_processed:,} files ({self.result.errors} errors)"
        )
        return self.result

    def _process_file(self, file_path: Path) -> bool:
        """Parse one catalog file and replace its entries. False on failure."""
        try:
            shortcuts = parse_catalog(file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, CatalogFormatError) as exc:
            logger.error(f"Failed to import {file_path}: {exc}")
            return False

        self.result.shortcuts_found += len(shortcuts)
        if self.dry_run:
            logger.debug(f"  {file_path}: {len(shortcuts)} shortcuts (dry run)")
            return True

        self.catalog.clear_file_entries(file_path)
        imported = self.catalog.add_shortcuts(shortcuts, source_file=file_path)
        self.catalog.mark_file_imported(file_path, imported)
        self.result.shortcuts_imported += imported

        logger.info(f"  ✓ {file_path}  ({imported} shortcuts)")
        return True
