#!/usr/bin/env python3
"""
Manually try the Katasumi Python API against the bundled example catalogs.

This script imports a catalog directory into a throwaway catalog, prints
stats, and runs example searches so you can see import_catalog(),
stats(), search() and search_by_keys() in action.

Usage:
  # From project root (imports ./catalogs)
  python scripts/try_api.py
  python scripts/try_api.py catalogs

  # Use your own catalogs
  python scripts/try_api.py /path/to/catalogs

  # Only show results bound on one platform
  python scripts/try_api.py --platform linux

Requirements:
  - Katasumi installed (pip install -e . from project root)
"""

import sys
import tempfile
from pathlib import Path

# Use src layout so "katasumi" is importable when run from the repo
_project_root = Path(__file__).resolve().parent.parent
_src = _project_root / "src"
if _src.exists() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))


def main() -> None:
    import argparse
    from katasumi import Katasumi, KatasumiConfig

    parser = argparse.ArgumentParser(
        description="Try the Katasumi API: import catalogs and run example lookups.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=_project_root / "catalogs",
        type=Path,
        help="Catalog file or directory (default: ./catalogs)",
    )
    parser.add_argument(
        "--platform",
        choices=["mac", "windows", "linux"],
        default=None,
        help="Only show shortcuts bound on this platform",
    )
    args = parser.parse_args()

    if not args.path.exists():
        print(f"Error: path does not exist: {args.path}")
        sys.exit(1)

    with tempfile.TemporaryDirectory(prefix="katasumi-") as home:
        client = Katasumi(config=KatasumiConfig(catalog_dir=home))
        try:
            _walkthrough(client, args.path.resolve(), args.platform)
        finally:
            client.close()


def _walkthrough(client, source: Path, platform) -> None:
    # ── Import ────────────────────────────────────────────────────
    print("=" * 60)
    print("  STEP 1: Import")
    print("=" * 60)
    print(f"  Source: {source}\n")

    result = client.import_catalog(source, show_progress=True)
    print(f"\n  Result: {result.files_scanned} files scanned, "
          f"{result.shortcuts_imported} shortcuts imported, "
          f"{result.errors} errors.")

    # ── Stats ─────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("  STEP 2: Stats")
    print("=" * 60)
    stats = client.stats()
    print(f"  shortcuts: {stats['shortcuts']}")
    print(f"  apps: {stats['apps']}")
    for info in client.apps():
        print(f"    {info.name:<10} {info.shortcut_count:>3}  [{', '.join(info.platforms)}]")

    # ── Free-text search ──────────────────────────────────────────
    print("\n" + "=" * 60)
    print("  STEP 3: Search (free text)")
    print("=" * 60)

    example_queries = [
        "copy line",
        "vsc go to definition",
        "tmux split",
        "comand palete",
        "mac screenshot",
    ]
    for q in example_queries:
        detected = client.detect_app(q)
        print(f"\n  Query: \"{q}\"" + (f"  (app: {detected})" if detected else ""))
        hits = client.search(q, platform=platform, limit=3)
        for i, s in enumerate(hits, 1):
            keys = s.binding(platform) if platform else " | ".join(s.keys.values())
            print(f"    {i}. {s.action} ({s.app})  {keys}")
        if not hits:
            print("    (no hits)")

    # ── Reverse lookup by keys ────────────────────────────────────
    print("\n" + "=" * 60)
    print("  STEP 4: Search by keys")
    print("=" * 60)

    combos = ["⌘⇧P", "Ctrl+Shift+P", "ctrl+b %", "Super+L"]
    for combo in combos:
        print(f"\n  Keys: \"{combo}\"")
        hits = client.search_by_keys(combo, platform=platform)
        for i, s in enumerate(hits, 1):
            print(f"    {i}. {s.action} ({s.app})")
        if not hits:
            print("    (no hits)")

    print("\n" + "=" * 60)
    print("  Done. Try your own queries in Python:")
    print("    from katasumi import Katasumi")
    print("    client = Katasumi()")
    print("    client.import_catalog('catalogs')")
    print("    client.search('your query')")
    print("=" * 60)


if __name__ == "__main__":
    main()
