"""Cache commands -- enable, disable, inspect, and sweep the response cache.

Provides the ``sweepcache cache`` sub-command group. ``enable`` and
``disable`` edit the persisted global configuration; ``stats`` and
``sweep`` act on the cache directory of the effective configuration
(after CLI flags, environment variables, and project config are applied).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from sweepcache.exceptions import SweepcacheError
from sweepcache.output import error, format_response, info, success


cache_app = typer.Typer(no_args_is_help=True)


def _ctx_value(ctx: typer.Context, key: str):  # noqa: ANN202
    return ctx.obj.get(key) if ctx.obj else None


@cache_app.command("enable")
def cache_enable(
    path: Optional[Path] = typer.Option(
        None, "--path", help="Existing cache directory (default: the XDG cache dir)."
    ),
    disk_quota: Optional[int] = typer.Option(
        None, "--disk-quota", help="Bytes the cache may hold before it is swept."
    ),
    sweep_frequency: Optional[int] = typer.Option(
        None, "--sweep-frequency", help="Seconds between scheduled sweeps."
    ),
) -> None:
    """Switch on filesystem caching and save the settings.

    The options are validated exactly as they will be at request time, so
    a nonexistent ``--path`` is refused here instead of on the first GET.

    Example::

        sweepcache cache enable --path /var/cache/api --disk-quota 50000000
    """
    from sweepcache.cache import FilesystemStrategy, configure
    from sweepcache.config import get_cache_dir, load_global_config, save_global_config
    from sweepcache.models import CachingStrategyName

    config = load_global_config()
    updates: dict[str, object] = {"cache_path": path if path is not None else get_cache_dir()}
    if disk_quota is not None:
        updates["disk_quota"] = disk_quota
    if sweep_frequency is not None:
        updates["sweep_frequency"] = sweep_frequency
    options = {**config.caching_options.model_dump(), **updates}

    try:
        strategy = configure(CachingStrategyName.FILESYSTEM, options)
    except SweepcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    assert isinstance(strategy, FilesystemStrategy)

    new_config = config.model_copy(
        update={
            "caching_strategy": CachingStrategyName.FILESYSTEM,
            "caching_options": strategy.options,
        }
    )
    save_global_config(new_config)
    success(f"Filesystem caching enabled at {strategy.cache_path}")


@cache_app.command("disable")
def cache_disable() -> None:
    """Switch caching off. Cached files are left in place."""
    from sweepcache.config import load_global_config, save_global_config
    from sweepcache.models import CachingStrategyName

    config = load_global_config()
    save_global_config(config.model_copy(update={"caching_strategy": CachingStrategyName.NONE}))
    success("Caching disabled.")


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show the cache directory, entry count, size, quota, and sweep schedule.

    Read-only: a cache that has never been used stays without a sweep
    marker and reports ``last_sweep`` as null.

    Example::

        sweepcache cache stats --json
    """
    from sweepcache.cache import configure_from
    from sweepcache.config import resolve_config

    try:
        config = resolve_config(
            cli_base_url=_ctx_value(ctx, "base_url"),
            cli_cache_path=_ctx_value(ctx, "cache_path"),
        )
        stats = configure_from(config, schedule=False).stats()
    except SweepcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(stats)


@cache_app.command("sweep")
def cache_sweep(ctx: typer.Context) -> None:
    """Purge every cached response now and restart the sweep schedule.

    Asks for confirmation unless ``--force`` is active.
    """
    from sweepcache.cache import FilesystemStrategy, configure_from
    from sweepcache.config import resolve_config

    try:
        config = resolve_config(
            cli_base_url=_ctx_value(ctx, "base_url"),
            cli_cache_path=_ctx_value(ctx, "cache_path"),
        )
        strategy = configure_from(config)
    except SweepcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not isinstance(strategy, FilesystemStrategy):
        error("Caching is disabled. Run: sweepcache cache enable")
        raise typer.Exit(code=2)

    if not _ctx_value(ctx, "force"):
        if not typer.confirm(f"Delete everything under {strategy.cache_path}?"):
            info("Cancelled.")
            raise typer.Exit()

    try:
        strategy.sweep()
    except SweepcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f"Swept {strategy.cache_path}")
