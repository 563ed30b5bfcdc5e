"""Exception hierarchy for routekit.

All exceptions inherit from :class:`RoutekitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`routekit.exit_codes`.
Library callers catch the specific subclasses; the CLI entry point in
:func:`routekit.app.main` catches ``RoutekitError`` and exits with the
matching code.

Subclass hierarchy::

    RoutekitError (exit 1)
    +-- ConfigError          (exit 1)
    +-- SpecError            (exit 7)
    +-- ComposeError         (exit 8)
    +-- TransportError       (exit 6)
    +-- ResponseParseError   (exit 9)

None of these are retried or logged by the library itself: build-time errors
abort client creation, invocation-time errors fail only the awaiting call.
"""

from __future__ import annotations

from typing import Any, Optional

from routekit.exit_codes import (
    EXIT_COMPOSE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_RESPONSE_PARSE_ERROR,
    EXIT_SPEC_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class RoutekitError(Exception):
    """Base exception for all routekit errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(RoutekitError):
    """Raised for unknown option keys or an unreadable global config file."""

    exit_code = EXIT_GENERIC_FAILURE


class SpecError(RoutekitError):
    """Raised when an API description cannot be loaded, normalised, or built.

    Fatal to client creation: no partially built client is ever returned.
    """

    exit_code = EXIT_SPEC_ERROR


class ComposeError(RoutekitError):
    """Raised when a request cannot be composed.

    Typically an unresolved path variable or base URI placeholder that was
    neither supplied positionally, configured, nor declared with a default.
    """

    exit_code = EXIT_COMPOSE_ERROR


class TransportError(RoutekitError):
    """Raised on network or protocol failures reported by the transport.

    The original transport exception is chained as ``__cause__``.
    """

    exit_code = EXIT_TRANSPORT_ERROR


class ResponseParseError(RoutekitError):
    """Raised when a structured response body cannot be parsed.

    The unparsed body is kept for diagnostics.

    Attributes:
        raw_body: The response text exactly as received.
        status: HTTP status code of the response.
        headers: Lower-cased response headers.
    """

    exit_code = EXIT_RESPONSE_PARSE_ERROR

    def __init__(
        self,
        message: str,
        raw_body: str = "",
        status: int = 0,
        headers: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.raw_body = raw_body
        self.status = status
        self.headers = dict(headers or {})
