"""
Katasumi CLI

Command-line interface for importing catalogs and looking up shortcuts.

Usage::

    katasumi import ./catalogs             # Load JSON catalogs
    katasumi search "vsc go to definition" # Free-text search
    katasumi keys "⌘⇧P" --platform mac     # Reverse lookup by keys
    katasumi apps                          # Applications in the catalog
    katasumi stats                         # Catalog statistics
"""

import asyncio
import logging
import math
import time
from pathlib import Path

import click

from katasumi.core.config import KatasumiConfig
from katasumi.core.engine import Platform, SearchFilters, ShortcutCatalog
from katasumi.core.search import ResultFormatter, ShortcutSearchEngine
from katasumi.exceptions import ConfigError

PLATFORM_CHOICE = click.Choice([p.value for p in Platform], case_sensitive=False)


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(config: KatasumiConfig, verbose: bool) -> None:
    """Set up logging for the CLI session."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.log_format)


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="katasumi")
@click.option(
    "--catalog-dir",
    type=click.Path(file_okay=False),
    default=None,
    envvar="KATASUMI_HOME",
    help="Directory holding catalog.db (default: $KATASUMI_HOME or ~/.katasumi).",
)
@click.pass_context
def cli(ctx: click.Context, catalog_dir: str | None):
    """Katasumi — find keyboard shortcuts by description or key combination."""
    ctx.ensure_object(dict)
    config = KatasumiConfig.from_env()
    if catalog_dir:
        config.catalog_dir = catalog_dir
    try:
        config.validate()
    except ConfigError as exc:
        raise click.ClickException(str(exc))
    ctx.obj["config"] = config


# ---------------------------------------------------------------------------
# katasumi import
# ---------------------------------------------------------------------------

@cli.command("import")
@click.argument("source", type=click.Path(exists=True))
@click.option("--force", is_flag=True, help="Re-import files even if unchanged.")
@click.option("--dry-run", is_flag=True, help="Validate catalogs without writing.")
@click.option("--no-progress", is_flag=True, help="Hide the progress bar.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def import_(ctx: click.Context, source: str, force: bool, dry_run: bool,
            no_progress: bool, verbose: bool):
    """Import JSON shortcut catalogs from SOURCE (a file or a directory)."""
    config: KatasumiConfig = ctx.obj["config"]
    _configure_logging(config, verbose)

    from katasumi.core.importer import CatalogImporter

    importer = CatalogImporter(
        source=Path(source).resolve(),
        dry_run=dry_run,
        force=force,
        config=config,
        show_progress=not no_progress,
    )
    result = importer.run()

    click.echo("─" * 50)
    click.echo("  KATASUMI — Import Complete" + ("  (dry run)" if dry_run else ""))
    click.echo("─" * 50)
    click.echo(f"  Catalog : {result.catalog_path}")
    click.echo()
    click.echo(f"  Files scanned       {result.files_scanned:>8,}")
    click.echo(f"  Files imported      {result.files_processed:>8,}")
    click.echo(f"  Files skipped       {result.files_skipped:>8,}  (unchanged)")
    click.echo(f"  Shortcuts found     {result.shortcuts_found:>8,}")
    click.echo(f"  Shortcuts imported  {result.shortcuts_imported:>8,}")
    click.echo(f"  Errors              {result.errors:>8,}")
    click.echo("─" * 50)
    if result.errors:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# katasumi search
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("query", default="")
@click.option("--app", default=None, help="Restrict to one application.")
@click.option("--platform", type=PLATFORM_CHOICE, default=None,
              help="Only shortcuts bound on this platform (also limits displayed keys).")
@click.option("--category", default=None, help="Restrict to one category.")
@click.option("--context", default=None, help="Restrict to one context (exact match).")
@click.option("-n", "--limit", type=click.IntRange(min=0), default=None,
              help="Maximum number of results.")
@click.option("-f", "--format", "fmt", type=click.Choice(["console", "json", "compact"]),
              default="console", help="Output format.")
@click.option("-p", "--page-size", type=int, default=None,
              help="Results per page (enables interactive pagination).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def search(ctx: click.Context, query: str, app: str | None, platform: str | None,
           category: str | None, context: str | None, limit: int | None,
           fmt: str, page_size: int | None, verbose: bool):
    """Search shortcuts by free-text QUERY (e.g. "vsc go to definition")."""
    config: KatasumiConfig = ctx.obj["config"]
    _configure_logging(config, verbose)
    t0 = time.perf_counter()

    catalog = _open_catalog(config)
    engine = ShortcutSearchEngine(catalog, config=config)
    filters = SearchFilters(app=app, platform=platform, category=category, context=context)
    try:
        results = _run(engine.fuzzy_search(query, filters, limit))
    finally:
        catalog.close()

    _emit(results, fmt, platform, page_size, time.perf_counter() - t0)


# ---------------------------------------------------------------------------
# katasumi keys
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("keys")
@click.option("--platform", type=PLATFORM_CHOICE, default=None,
              help="Compare only this platform's bindings.")
@click.option("-f", "--format", "fmt", type=click.Choice(["console", "json", "compact"]),
              default="console", help="Output format.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def keys(ctx: click.Context, keys: str, platform: str | None, fmt: str, verbose: bool):
    """Find shortcuts bound to the key combination KEYS (e.g. "Cmd+K", "⌘K")."""
    config: KatasumiConfig = ctx.obj["config"]
    _configure_logging(config, verbose)
    t0 = time.perf_counter()

    catalog = _open_catalog(config)
    engine = ShortcutSearchEngine(catalog, config=config)
    try:
        results = _run(engine.search_by_keys(keys, platform))
    finally:
        catalog.close()

    _emit(results, fmt, platform, None, time.perf_counter() - t0)


# ---------------------------------------------------------------------------
# katasumi apps / stats
# ---------------------------------------------------------------------------

@cli.command()
@click.pass_context
def apps(ctx: click.Context):
    """List applications in the catalog."""
    catalog = _open_catalog(ctx.obj["config"])
    try:
        infos = catalog.list_apps()
    finally:
        catalog.close()

    if not infos:
        click.echo("Catalog is empty.")
        return
    for info in infos:
        platforms = ", ".join(info.platforms) or "—"
        click.echo(f"  {info.name:<20} {info.shortcut_count:>6,}  [{platforms}]")


@cli.command()
@click.pass_context
def stats(ctx: click.Context):
    """Show catalog statistics."""
    config: KatasumiConfig = ctx.obj["config"]
    catalog = _open_catalog(config)
    try:
        s = catalog.get_stats()
    finally:
        catalog.close()

    click.echo("─" * 50)
    click.echo("  KATASUMI — Catalog Statistics")
    click.echo("─" * 50)
    click.echo(f"  Catalog location : {config.get_catalog_path()}")
    click.echo()
    click.echo(f"  Imported files  {s['imported_files']:>8,}")
    click.echo(f"  Shortcuts       {s['shortcuts']:>8,}")
    click.echo(f"  Applications    {s['apps']:>8,}")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _open_catalog(config: KatasumiConfig) -> ShortcutCatalog:
    """Open the catalog database or exit with a hint when it is missing."""
    db = config.get_catalog_path()
    if not db.exists():
        click.echo(f"Error: Catalog database not found at {db}", err=True)
        click.echo("Run 'katasumi import <path>' first to build the catalog.", err=True)
        raise SystemExit(1)
    return ShortcutCatalog(db)


def _run(coro):
    return asyncio.run(coro)


def _emit(results: list, fmt: str, platform: str | None,
          page_size: int | None, elapsed: float) -> None:
    formatter = ResultFormatter()
    if fmt == "json":
        click.echo(formatter.format_json(results))
    elif fmt == "compact":
        click.echo(formatter.format_compact(results, platform))
    else:
        _display_console_results(results, formatter, platform, page_size, elapsed)


def _display_console_results(
    results: list,
    formatter: ResultFormatter,
    platform: str | None,
    page_size: int | None,
    elapsed_time: float,
) -> None:
    """
    Print results to the console, optionally paginated.

    Pagination commands (case-insensitive):
      Enter / n  — next page
      b / back   — previous page
      j / json   — dump current page as JSON
      q / quit   — stop
    """
    if not results or not page_size or page_size <= 0:
        click.echo(formatter.format_console(results, platform, elapsed_time=elapsed_time))
        return

    total = len(results)
    total_pages = math.ceil(total / page_size)
    page_num = 0

    while page_num < total_pages:
        start = page_num * page_size
        page = results[start:start + page_size]
        click.echo(formatter.format_console(
            page, platform,
            start_index=start + 1,
            total_count=total,
            elapsed_time=elapsed_time,
        ))

        if page_num == total_pages - 1:
            if total_pages > 1:
                click.echo(f"  Page {page_num + 1}/{total_pages} (end)")
            break

        try:
            hint = (
                f"  Page {page_num + 1}/{total_pages}  "
                f"[Enter] next  [b] back  [j] json  [q] quit"
            )
            cmd = click.prompt(hint, default="", show_default=False).strip().lower()
        except (KeyboardInterrupt, EOFError, click.Abort):
            click.echo("\n  Stopped.")
            return

        if cmd in ("q", "quit", "exit"):
            click.echo("  Stopped.")
            return
        elif cmd in ("b", "back"):
            if page_num > 0:
                page_num -= 1
            else:
                click.echo("  Already on the first page.")
        elif cmd in ("j", "json"):
            click.echo(formatter.format_json(page))
        else:
            page_num += 1


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
