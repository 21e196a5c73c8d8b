"""Synchronous HTTP client with response caching and retry.

This module provides :class:`SyncClient`, the blocking client used by the
``sweepcache`` CLI. It wraps :class:`httpx.Client` and layers on:

- **Response caching** -- every GET is handed to the active
  :class:`~sweepcache.cache.CachingStrategy` as a request whose identity is
  the canonical URL (base URL, path, and query parameters sorted by name).
  Only bodies of successful responses reach the cache, because error
  statuses raise before the strategy stores anything.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- HTTP error statuses become typed
  :class:`~sweepcache.exceptions.SweepcacheError` subclasses.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import httpx

from sweepcache.cache import CachingStrategy, get_caching_strategy
from sweepcache.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from sweepcache.models import RequestConfig
from sweepcache.output import get_output

CACHE_STATUS_HEADER = "x-sweepcache"


class PendingRequest:
    """A GET waiting to be served from the cache or sent.

    Satisfies :class:`~sweepcache.cache.CacheableRequest`. After
    :meth:`execute` runs, :attr:`response` holds the real response so the
    client can return it with its original status and headers.
    """

    def __init__(self, identity: str, send: Callable[[], httpx.Response]) -> None:
        self._identity = identity
        self._send = send
        self.response: Optional[httpx.Response] = None

    @property
    def identity(self) -> str:
        return self._identity

    def execute(self) -> str:
        self.response = self._send()
        return self.response.text


def canonical_url(url: str, params: Optional[dict[str, Any]] = None) -> str:
    """Return *url* with *params* appended in sorted key order.

    ``None`` values are dropped so that an omitted option and an explicit
    ``None`` address the same cache entry.
    """
    merged = httpx.URL(url)
    if params:
        ordered = {k: params[k] for k in sorted(params) if params[k] is not None}
        merged = merged.copy_merge_params(ordered)
    return str(merged)


def _guess_content_type(body: str) -> str:
    stripped = body.lstrip()
    if stripped.startswith(("{", "[")):
        return "application/json; charset=utf-8"
    if stripped.startswith("<"):
        return "application/xml; charset=utf-8"
    return "text/plain; charset=utf-8"


class SyncClient:
    """Synchronous HTTP client for API calls.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        base_url: Prefix for every request path.
        request_config: Timeout, SSL verification, and retry settings.
        strategy: Caching strategy for GET requests. Defaults to the
            process-wide active strategy from
            :func:`~sweepcache.cache.configure`.

    Example::

        strategy = configure("filesystem", {"cache_path": "/tmp/api-cache"})
        with SyncClient("https://api.example.com", strategy=strategy) as client:
            response = client.get("/items/0974514055")
    """

    def __init__(
        self,
        base_url: str = "",
        request_config: Optional[RequestConfig] = None,
        strategy: Optional[CachingStrategy] = None,
    ) -> None:
        self._base_url = base_url or ""
        self._config = request_config or RequestConfig()
        self._strategy = strategy or get_caching_strategy()
        self._client: Optional[httpx.Client] = None

    @property
    def strategy(self) -> CachingStrategy:
        return self._strategy

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
    ) -> httpx.Response:
        """Make an HTTP request, serving GETs through the caching strategy.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            path: URL path (appended to the base URL).
            params: Query parameters.
            headers: Extra request headers.
            json_body: JSON-serialisable body.
            body: Raw string body.

        Returns:
            The :class:`httpx.Response`. A GET answered from the cache gets
            a synthetic 200 response carrying the stored body and an
            ``x-sweepcache: hit`` header.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On other 4xx, or 5xx after all retries are exhausted.
            ConnectionError_: On network / timeout errors after all retries.
        """
        method = method.upper()
        merged_params = {k: v for k, v in (params or {}).items() if v is not None}

        def send() -> httpx.Response:
            response = self._execute_with_retry(
                method, path, headers or {}, merged_params, json_body, body,
            )
            self._map_response_error(response)
            return response

        if method != "GET":
            return send()

        identity = canonical_url(self._full_url(path), merged_params)
        pending = PendingRequest(identity, send)
        text = self._strategy.fetch(pending)
        if pending.response is not None:
            return pending.response

        return httpx.Response(
            status_code=200,
            headers={
                "content-type": _guess_content_type(text),
                CACHE_STATUS_HEADER: "hit",
            },
            content=text.encode("utf-8"),
            request=httpx.Request(method=method, url=identity),
        )

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _full_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")) or not self._base_url:
            return path
        return self._base_url.rstrip("/") + "/" + path.lstrip("/")

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        json_body: Any,
        body: Optional[str],
    ) -> httpx.Response:
        """Execute the request, retrying 5xx and network errors with exponential backoff."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._config.max_retries
        output = get_output()

        kwargs: dict[str, Any] = {
            "method": method,
            "url": path,
            "headers": headers,
            "params": params,
        }
        if json_body is not None:
            kwargs["json"] = json_body
        elif body is not None:
            kwargs["content"] = body

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt >= max_retries:
                    raise ConnectionError_(
                        f"Connection failed after {max_retries + 1} attempts: {exc}"
                    ) from exc
                delay = 2 ** attempt
                output.debug(
                    f"Connection error: {exc}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue

            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
