"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sweepcache.exceptions.SweepcacheError` subclass.
Shell wrappers can inspect the exit code to tell a rejected request from
a broken cache setup without parsing stderr.

Example::

    $ sweepcache get /items/0974514055
    $ echo $?
    8   # EXIT_CONFIGURATION_ERROR -- the cache_path does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The remote API rejected the request (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CONFIGURATION_ERROR = 8
"""The caching strategy could not be configured."""

EXIT_STORAGE_ERROR = 9
"""A cache file could not be read, written, or deleted."""
