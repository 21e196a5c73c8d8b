"""sweepcache -- an HTTP API client with a swept filesystem response cache.

GET responses are memoized on disk under a content address derived from the
request URL. The cache directory is purged as a whole when a configurable
interval has elapsed since the last sweep or when it grows past a byte
quota.

Typical workflow::

    sweepcache cache enable --path ~/.cache/api --disk-quota 50000000
    sweepcache --base-url https://api.example.com get /items/0974514055

Modules:
    app: Typer application and CLI entry point.
    cache: Content-addressed storage, quota checks, and sweeps.
    client: httpx-based client that routes GETs through the cache.
    models: Pydantic configuration models.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
