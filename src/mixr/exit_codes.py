"""Numeric process exit codes for the ``mixr`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~mixr.exceptions.MixrError` subclass.  Shell scripts
can inspect the exit code to tell a missing recipe from a dead server
without parsing stderr.

Example::

    $ mixr recipes get 9999
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the bearer token (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
