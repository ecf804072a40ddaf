"""
Appdex CLI

Command-line front end for indexing, searching and launching.

Usage::

    appdex index                  # Scan desktop entries, print statistics
    appdex search fire            # Fuzzy search
    appdex search ~/Downloads/    # Browse a directory
    appdex launch Firefox         # Launch by exact name
    appdex watch                  # Keep the index fresh until Ctrl-C
"""

import logging
import subprocess
import time

import click

from appdex.core.config import AppdexConfig
from appdex.core.engine import EntryKind
from appdex.core.launcher import expand_field_codes
from appdex.core.resolver import resolve_filesystem_entry
from appdex.core.search import QueryMode, ResultFormatter, classify_query
from appdex.exceptions import AppdexError, LaunchError


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(config: AppdexConfig, verbose: bool) -> None:
    """Set up logging for the CLI session."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.log_format)
    # watchdog is chatty at DEBUG
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def _make_client(ctx: click.Context):
    from appdex.client import Appdex

    try:
        return Appdex(config=ctx.obj["config"])
    except AppdexError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def _rebuild(client, show_progress: bool = False):
    try:
        return client.rebuild(show_progress=show_progress)
    except AppdexError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def spawn_shell(command: str) -> None:
    """Start *command* through ``sh -c``, detached from this process."""
    try:
        subprocess.Popen(
            ["sh", "-c", command],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise LaunchError(f"Could not start '{command}': {exc}") from exc


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="appdex")
@click.option("--heatmap", type=click.Path(dir_okay=False), default=None,
              envvar="APPDEX_HEATMAP_PATH",
              help="Heatmap file (default: $XDG_DATA_HOME/appdex/heatmap.json).")
@click.option("--binary-dir", type=click.Path(file_okay=False), default=None,
              help="Directory probed for binaries named like the query.")
@click.pass_context
def cli(ctx: click.Context, heatmap: str | None, binary_dir: str | None):
    """Appdex — keystroke-speed application search."""
    ctx.ensure_object(dict)
    base = AppdexConfig.from_env()
    overrides = {}
    if heatmap:
        overrides["heatmap_path"] = heatmap
    if binary_dir:
        overrides["binary_dir"] = binary_dir
    if overrides:
        fields = {name: getattr(base, name) for name in AppdexConfig.field_names()}
        fields.update(overrides)
        base = AppdexConfig(**fields)
    ctx.obj["config"] = base


# ---------------------------------------------------------------------------
# appdex index
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--progress", is_flag=True, help="Show a progress bar while resolving entries.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def index(ctx: click.Context, progress: bool, verbose: bool):
    """Scan desktop-entry directories and report what was indexed."""
    config = ctx.obj["config"]
    _configure_logging(config, verbose)
    client = _make_client(ctx)
    try:
        result = _rebuild(client, show_progress=progress)
    finally:
        client.close()

    click.echo("─" * 50)
    click.echo("  APPDEX — Index Statistics")
    click.echo("─" * 50)
    click.echo(f"  Roots scanned     {result.roots_scanned:>8,}")
    click.echo(f"  Roots missing     {result.roots_missing:>8,}")
    click.echo(f"  Desktop files     {result.files_found:>8,}")
    click.echo(f"  Skipped files     {result.entries_skipped:>8,}")
    click.echo(f"  Duplicate names   {result.name_collisions:>8,}")
    click.echo(f"  Indexed entries   {result.entries_indexed:>8,}")
    click.echo(f"  Elapsed           {result.elapsed_seconds * 1000:>8.1f}ms")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# appdex search
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("query", default="")
@click.option("-n", "--max-results", type=int, default=None,
              help="Maximum number of results.")
@click.option("-f", "--format", "fmt",
              type=click.Choice(["console", "json", "compact"]),
              default="console", help="Output format.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def search(ctx: click.Context, query: str, max_results: int | None, fmt: str, verbose: bool):
    """Search applications with QUERY (empty QUERY lists favourites)."""
    config = ctx.obj["config"]
    _configure_logging(config, verbose)
    client = _make_client(ctx)
    try:
        _rebuild(client)
        t0 = time.perf_counter()
        results = client.search(query, max_results=max_results)
        elapsed = time.perf_counter() - t0
    except AppdexError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    finally:
        client.close()

    formatter = ResultFormatter(config)
    if fmt == "json":
        click.echo(formatter.format_json(results))
    elif fmt == "compact":
        click.echo(formatter.format_compact(results))
    else:
        click.echo(formatter.format_console(results, elapsed_time=elapsed))


# ---------------------------------------------------------------------------
# appdex launch
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("name")
@click.option("--dry-run", is_flag=True, help="Print the command instead of running it.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def launch(ctx: click.Context, name: str, dry_run: bool, verbose: bool):
    """Launch the application called NAME and count the launch."""
    config = ctx.obj["config"]
    _configure_logging(config, verbose)
    client = _make_client(ctx)
    try:
        _rebuild(client)
        entry = client.get(name)
        if entry is None and classify_query(name) is QueryMode.PATH:
            # a path query launches the path itself
            entry = resolve_filesystem_entry(name)
        elif entry is None:
            hits = client.search(name, max_results=1)
            entry = hits[0].entry if hits else None
        if entry is None:
            click.echo(f"Error: nothing matches '{name}'", err=True)
            raise SystemExit(1)

        if entry.is_directory:
            click.echo(f"'{entry.name}' is a directory: {entry.path}")
            return

        if dry_run:
            click.echo(expand_field_codes(entry) if entry.kind is EntryKind.APPLICATION else entry.command)
            return

        command = client.launch(entry, spawn_shell)
        click.echo(f"Launched {entry.name}: {command}")
    except LaunchError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    finally:
        client.close()


# ---------------------------------------------------------------------------
# appdex stats
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--top", type=int, default=5, help="Show the N most launched entries.")
@click.pass_context
def stats(ctx: click.Context, top: int):
    """Show index and heatmap statistics."""
    client = _make_client(ctx)
    try:
        _rebuild(client)
        s = client.stats()
        favourites = client.search("", max_results=top) if top > 0 else []
    finally:
        client.close()

    click.echo("─" * 50)
    click.echo("  APPDEX — Statistics")
    click.echo("─" * 50)
    click.echo(f"  Heatmap file      {client.heatmap.path}")
    click.echo()
    click.echo(f"  Indexed entries   {s['indexed_entries']:>8,}")
    click.echo(f"  Launched entries  {s['launched_entries']:>8,}")
    click.echo(f"  Total launches    {s['total_launches']:>8,}")
    click.echo(f"  Heatmap records   {s['heatmap_entries']:>8,}")
    if favourites:
        click.echo()
        for hit in favourites:
            click.echo(f"  {hit.entry.launch_count:>6,}  {hit.entry.name}")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# appdex watch
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--debounce", type=float, default=2.0, show_default=True,
              help="Seconds of quiet before a rebuild.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def watch(ctx: click.Context, debounce: float, verbose: bool):
    """Rebuild the index whenever desktop entries change (Ctrl-C to stop)."""
    from appdex.core.autorefresh import start_auto_refresh

    config = ctx.obj["config"]
    _configure_logging(config, verbose)
    client = _make_client(ctx)
    _rebuild(client)
    refresher = start_auto_refresh(client, debounce_seconds=debounce)
    click.echo(f"Watching desktop entries ({len(client.index)} indexed). Ctrl-C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        click.echo("\n  Stopped.")
    finally:
        refresher.stop()
        client.close()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
