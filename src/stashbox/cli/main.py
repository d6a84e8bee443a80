"""Main CLI entry point for stashbox.

Provides a command-line interface for inspecting and maintaining a cache.
"""

import dataclasses
import sys
from pathlib import Path
from typing import Any

import click
import orjson
from rich.console import Console
from rich.table import Table

from stashbox.backends import RawFileCache
from stashbox.backends.base import BaseCache
from stashbox.config import BACKENDS, CacheConfig, create_cache, get_global_config

# Global console for Rich output
console = Console()


def resolve_config(ctx: click.Context) -> CacheConfig:
    """Build the cache configuration for a command.

    Priority:
    1. Explicit command-line options
    2. STASHBOX_* environment variables / ~/.stashbox/config.json
    3. Defaults

    The returned configuration is always enabled.
    """
    overrides = {key: value for key, value in ctx.obj.items() if value is not None}
    if "cache_dir" in overrides:
        overrides["cache_dir"] = Path(overrides["cache_dir"])
    overrides["enabled"] = True
    return dataclasses.replace(get_global_config(), **overrides)


def open_cache(ctx: click.Context) -> BaseCache:
    """Create and enable the configured cache.

    Raises:
        click.ClickException: If the cache cannot be enabled
    """
    config = resolve_config(ctx)
    cache = create_cache(config)
    if not cache.enabled:
        raise click.ClickException(f"Cannot open cache: {cache.last_error}")
    return cache


def format_value(value: Any) -> str:
    """Render a cached value for display."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    try:
        return orjson.dumps(value, option=orjson.OPT_INDENT_2).decode()
    except TypeError:
        return repr(value)


def fail_on_errors(cache: BaseCache) -> None:
    if cache.is_error():
        console.print(f"[red]✗[/red] Error: {cache.last_error}", style="red")
        sys.exit(1)


@click.group()
@click.option(
    "--dir",
    "-C",
    "cache_dir",
    type=click.Path(file_okay=False),
    help="Cache directory (default: STASHBOX_CACHE_DIR or ~/.stashbox/cache)",
)
@click.option("--backend", "-b", type=click.Choice(BACKENDS), help="Cache backend")
@click.option(
    "--process",
    "-p",
    type=click.Choice(["NONE", "JSON", "JSON_ARRAY", "JSON_OBJECT", "SERIALIZE"], case_sensitive=False),
    help="Value processing mode (raw backend)",
)
@click.option("--ttl", "default_ttl", type=int, help="Default TTL in seconds")
@click.option("--max-life", type=int, help="Maximum entry age in seconds (raw backend)")
@click.option("--namespace", help="Key namespace (redis backend)")
@click.option("--url", "redis_url", help="Redis URL (redis backend)")
@click.pass_context
def cli(ctx, cache_dir, backend, process, default_ttl, max_life, namespace, redis_url):
    """stashbox CLI - Inspect and maintain key-value caches.

    Use --dir/-C to point at a cache directory, or set STASHBOX_CACHE_DIR.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "cache_dir": cache_dir,
            "backend": backend,
            "process": process,
            "default_ttl": default_ttl,
            "max_life": max_life,
            "namespace": namespace,
            "redis_url": redis_url,
        }
    )


@cli.command("get")
@click.argument("key")
@click.pass_context
def get_command(ctx, key):
    """Print the value cached under KEY.

    Exits with status 1 on a miss.

    Example:
        stashbox -C ./cache get user:42
    """
    try:
        cache = open_cache(ctx)
        value = cache.get(key)
        fail_on_errors(cache)

        if value is None:
            console.print(f"[yellow]Key not found or expired:[/yellow] {key}")
            sys.exit(1)

        console.print(format_value(value), highlight=False, markup=False)

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


@cli.command("set")
@click.argument("key")
@click.argument("value")
@click.option("--ttl", type=int, help="Time-to-live in seconds for this entry")
@click.option("--json", "as_json", is_flag=True, help="Parse VALUE as JSON")
@click.pass_context
def set_command(ctx, key, value, ttl, as_json):
    """Store VALUE under KEY.

    Example:
        stashbox -C ./cache set user:42 '{"name": "Ana"}' --json --ttl 300
    """
    try:
        if as_json:
            try:
                value = orjson.loads(value)
            except orjson.JSONDecodeError as e:
                raise click.ClickException(f"VALUE is not valid JSON: {e}")

        cache = open_cache(ctx)
        cache.set(key, value, ttl=ttl)
        fail_on_errors(cache)

        console.print(f"[green]✓[/green] Stored '{key}'")

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


@cli.command("delete")
@click.argument("key")
@click.pass_context
def delete_command(ctx, key):
    """Delete the entry for KEY (no error if absent)."""
    try:
        cache = open_cache(ctx)
        cache.delete(key)
        fail_on_errors(cache)

        console.print(f"[green]✓[/green] Deleted '{key}'")

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


@cli.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clear_command(ctx, yes):
    """Delete every entry in the cache."""
    try:
        cache = open_cache(ctx)
        target = getattr(cache, "path", None) or getattr(cache, "namespace", "")

        if not yes and not click.confirm(f"Delete all entries in {target}?"):
            console.print("[yellow]Cancelled[/yellow]")
            return

        cache.clear()
        fail_on_errors(cache)

        console.print(f"[green]✓[/green] Cleared {target}")

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


@cli.command("expire")
@click.option("--pattern", help="Only consider entries whose name matches this regex")
@click.pass_context
def expire_command(ctx, pattern):
    """Delete raw-backend entries older than --max-life.

    Example:
        stashbox -b raw --max-life 3600 -C ./cache expire
    """
    try:
        cache = open_cache(ctx)
        if not isinstance(cache, RawFileCache):
            raise click.ClickException("expire is only supported by the raw backend")
        if not cache.max_life:
            raise click.ClickException("expire requires --max-life (or STASHBOX_MAX_LIFE)")

        before = len(cache.keys())
        cache.expire(pattern)
        fail_on_errors(cache)

        removed = before - len(cache.keys())
        console.print(f"[green]✓[/green] Expired {removed} entries")

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


@cli.command("list")
@click.pass_context
def list_command(ctx):
    """List the entries stored in a file cache."""
    try:
        cache = open_cache(ctx)
        if not hasattr(cache, "entries"):
            raise click.ClickException("list is only supported by file backends")

        entries = cache.entries()
        if not entries:
            console.print("[yellow]No entries found[/yellow]")
            return

        table = Table(title=f"Entries ({len(entries)})")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right", style="green")
        table.add_column("Modified", style="blue")

        for entry in entries:
            table.add_row(
                entry["key"],
                f"{entry['size_bytes']} B",
                entry["modified"][:19].replace("T", " "),
            )

        console.print(table)

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


@cli.command("stats")
@click.pass_context
def stats_command(ctx):
    """Show a summary of the cache."""
    try:
        cache = open_cache(ctx)
        stats = cache.stats()

        table = Table(title="Cache statistics", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for field, value in stats.items():
            table.add_row(field, "" if value is None else str(value))

        console.print(table)

    except click.ClickException as e:
        console.print(f"[red]✗[/red] Error: {e.message}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    cli()
