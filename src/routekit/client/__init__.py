"""Request pipeline for routekit.

An invocation such as ``await client.users("42").get()`` flows through:

1. :func:`~routekit.client.composer.compose_request` -- merge declared
   defaults, the configuration store, call-time options and the positional
   argument into a :class:`~routekit.models.RequestDescriptor`.
2. :class:`~routekit.client.transport.Transport` -- send it (by default
   through :class:`httpx.AsyncClient`).
3. :func:`~routekit.client.response.interpret` -- parse the body according
   to the response content type.

:class:`~routekit.client.context.ClientContext` ties the three together for
one client.
"""

from routekit.client.composer import compose_request
from routekit.client.context import ClientContext
from routekit.client.response import interpret
from routekit.client.transport import HttpxTransport, Transport

__all__ = ["ClientContext", "HttpxTransport", "Transport", "compose_request", "interpret"]
