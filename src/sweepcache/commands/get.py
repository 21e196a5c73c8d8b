"""The ``sweepcache get`` command -- fetch a resource through the cache."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import typer

from sweepcache.exceptions import InvalidUsageError, SweepcacheError
from sweepcache.output import debug, error, format_response, info


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a dict.

    Raises:
        InvalidUsageError: If a pair has no ``=`` or an empty key.
    """
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected KEY=VALUE, got: {pair}")
        params[key] = value
    return params


def _response_data(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the base URL, or a full URL."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as KEY=VALUE (repeatable)."
    ),
) -> None:
    """Send a GET request, answering from the cache when possible.

    Example::

        sweepcache --base-url https://api.example.com get /items -P id=0974514055
    """
    from sweepcache.cache import configure_from
    from sweepcache.client import SyncClient
    from sweepcache.client.sync_client import CACHE_STATUS_HEADER
    from sweepcache.config import resolve_config

    obj = ctx.obj or {}
    try:
        params = parse_params(param or [])
        config = resolve_config(
            cli_base_url=obj.get("base_url"),
            cli_cache_path=obj.get("cache_path"),
        )
        strategy = configure_from(config)
        debug(f"Caching strategy: {strategy.name.value}")

        with SyncClient(config.base_url or "", config.request, strategy) as client:
            response = client.get(path, params=params or None)
    except SweepcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    cached = response.headers.get(CACHE_STATUS_HEADER) == "hit"
    suffix = " (cached)" if cached else ""
    info(f"HTTP {response.status_code} {response.reason_phrase or ''}{suffix}".rstrip())

    data = _response_data(response)
    if data is not None:
        format_response(data, response.headers.get("content-type", "application/json"))
