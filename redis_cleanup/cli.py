from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, NoReturn, Optional

import typer
from redis.exceptions import RedisError
from rich.console import Console
from rich.markup import escape

from . import __version__
from .cleanup import DEFAULT_PATTERN, NO_TTL, cleanup as cleanup_fn
from .logging import setup_logging
from .reporting import ConsoleReporter
from .seed import DEFAULT_NUM_KEYS, DEFAULT_THRESHOLD, DEFAULT_TTL_SEC, seed as seed_fn
from .settings import Settings, load_settings
from .store import RedisStore, StoreConnectionError, connect

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="redis-cleanup: TTL-based key cleanup and synthetic seeding for Redis",
    rich_markup_mode="rich",
)
# Narration and errors go to stderr, like every other progress line.
console = Console(stderr=True, highlight=False)


@dataclass
class _State:
    settings: Settings
    redis_url: str | None


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"redis-cleanup {__version__}")
        raise typer.Exit(code=0)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    raise typer.Exit(code=1)


def _open_store(state: _State) -> RedisStore:
    if not state.redis_url:
        raise typer.BadParameter(
            "No Redis URL provided. Use --redis-url or set REDIS_URL.",
            param_hint="'--redis-url'",
        )

    try:
        store = connect(state.redis_url, socket_timeout=state.settings.REDIS_CLEANUP_SOCKET_TIMEOUT)
    except StoreConnectionError as e:
        logger.error("connection failed: %s", e)
        _fail(str(e))

    console.print("=>Acquired Connection", markup=False)
    return store


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback()
def _root(
    ctx: typer.Context,
    redis_url: Annotated[
        Optional[str],
        typer.Option("--redis-url", "-r", envvar="REDIS_URL", help="Redis URL to connect to", show_envvar=True),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (default: REDIS_CLEANUP_LOG_LEVEL or INFO)"),
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
):
    """
    [bold]redis-cleanup[/bold]: operator tools for a Redis keyspace.

    [bold]Examples:[/bold]
      redis-cleanup -r redis://localhost cleanup                    # dry-run, keys without TTL
      redis-cleanup -r redis://localhost cleanup "cache:*" -m 60 --commit
      redis-cleanup -r redis://localhost seed -p test -n 1000 -t 0.5
    """
    s = load_settings()
    setup_logging(s, level=log_level)
    console.print("Starting Redis Cleanup", markup=False)
    ctx.obj = _State(settings=s, redis_url=redis_url or s.REDIS_URL)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("cleanup", help="Clean up the redis instance")
def cleanup(
    ctx: typer.Context,
    keys: Annotated[
        str,
        typer.Argument(help='Key pattern to filter and clean up (default is all keys "*")'),
    ] = DEFAULT_PATTERN,
    commit: Annotated[
        bool,
        typer.Option("--commit", help="Actually delete stale keys (default is dry-run)."),
    ] = False,
    max_ttl: Annotated[
        int,
        typer.Option("--max-ttl", "-m", help="Max ttl for the keys that get removed (default -1, no ttl)"),
    ] = NO_TTL,
    managed_prefix: Annotated[
        Optional[list[str]],
        typer.Option(
            "--managed-prefix",
            help="Key prefix owned by another system; repeatable (default: REDIS_CLEANUP_MANAGED_PREFIXES or bull)",
        ),
    ] = None,
    no_managed: Annotated[
        bool,
        typer.Option("--no-managed", help="Do not exclude any managed namespace"),
    ] = False,
):
    """Delete keys whose TTL is at or below --max-ttl."""
    state: _State = ctx.obj
    if no_managed:
        prefixes: tuple[str, ...] = ()
    elif managed_prefix:
        prefixes = tuple(managed_prefix)
    else:
        prefixes = state.settings.managed_prefixes

    reporter = ConsoleReporter(console)
    with _open_store(state) as store:
        try:
            res = cleanup_fn(
                store,
                keys,
                max_ttl,
                commit,
                reporter=reporter,
                managed_prefixes=prefixes,
            )
        except RedisError as e:
            logger.error("cleanup aborted: %s", e)
            _fail(f"cleanup aborted: {e}")

    reporter.summary(
        f"{res.total} keys: {res.delete_candidates} to delete, {res.skipped} skipped, "
        f"{res.managed} managed, {res.deleted} deleted"
    )
    if not commit and res.delete_candidates:
        console.print("[dim]Nothing deleted. Re-run with --commit to delete the keys above.[/dim]")


@app.command("seed", help="Seed the redis instance with some dummy values")
def seed(
    ctx: typer.Context,
    prefix: Annotated[
        str,
        typer.Option("--prefix", "-p", help="Prefix for the keys to create"),
    ] = "",
    num_keys: Annotated[
        int,
        typer.Option("--num-keys", "-n", min=0, help="Number of keys to create"),
    ] = DEFAULT_NUM_KEYS,
    threshold: Annotated[
        float,
        typer.Option("--threshold", "-t", min=0.0, max=1.0, help="Fraction of keys that get a ttl"),
    ] = DEFAULT_THRESHOLD,
    ttl: Annotated[
        int,
        typer.Option("--ttl", min=1, help="TTL for the keys that get one (in secs)"),
    ] = DEFAULT_TTL_SEC,
):
    """Write synthetic `{prefix}:{ULID}` keys, some with an expiry."""
    state: _State = ctx.obj

    reporter = ConsoleReporter(console)
    with _open_store(state) as store:
        try:
            res = seed_fn(
                store,
                prefix,
                num_keys,
                threshold,
                ttl,
                reporter=reporter,
            )
        except RedisError as e:
            logger.error("seed aborted: %s", e)
            _fail(f"seed aborted: {e}")

    reporter.summary(f"{res.created} keys created: {res.with_ttl} with ttl, {res.without_ttl} without")


def main():
    app()
