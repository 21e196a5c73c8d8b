"""Exception hierarchy for sweepcache.

All exceptions inherit from :class:`SweepcacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`sweepcache.exit_codes`.
The top-level error handler in :func:`sweepcache.app.main` catches
``SweepcacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SweepcacheError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- AuthError              (exit 3)
    +-- NotFoundError          (exit 4)
    +-- ServerError            (exit 5)
    +-- ConnectionError_       (exit 6)
    +-- StorageError           (exit 9)
    +-- ConfigError            (exit 1)
        +-- ConfigurationError (exit 8)
"""

from sweepcache.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIGURATION_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_STORAGE_ERROR,
)


class SweepcacheError(Exception):
    """Base exception for all sweepcache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`sweepcache.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SweepcacheError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(SweepcacheError):
    """Raised when the API answers HTTP 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(SweepcacheError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(SweepcacheError):
    """Raised when the API returns an HTTP 5xx server error (or an unmapped 4xx)."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(SweepcacheError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class StorageError(SweepcacheError):
    """Raised when a cache entry, shard directory, or sweep marker cannot be accessed.

    The caching strategy recovers from this error locally: a failed read is
    treated as a miss and a failed write or sweep only skips memoization.
    """

    exit_code = EXIT_STORAGE_ERROR


class ConfigError(SweepcacheError):
    """Raised for configuration file problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigurationError(ConfigError):
    """Raised when a caching strategy cannot be set up.

    Covers an unknown strategy name, a missing ``cache_path``, a ``cache_path``
    that does not exist or is not a directory, and invalid option values.
    Always raised from :func:`~sweepcache.cache.configure`, before any
    request is made.
    """

    exit_code = EXIT_CONFIGURATION_ERROR
