"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~routekit.exceptions.RoutekitError` subclass.
Shell wrappers can inspect the exit code of ``routekit request`` to tell
a broken description apart from an unreachable server without parsing stderr.

Example::

    $ routekit request api.raml get /users
    $ echo $?
    6   # EXIT_TRANSPORT_ERROR -- the server could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SPEC_ERROR = 7
"""The API description could not be loaded or normalised."""

EXIT_COMPOSE_ERROR = 8
"""A request could not be composed (unresolved path or base URI variable)."""

EXIT_RESPONSE_PARSE_ERROR = 9
"""The response declared a structured content type but its body did not parse."""
