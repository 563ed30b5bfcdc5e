"""Typer application and CLI entry point for routekit.

Commands:

* ``routekit routes SPEC`` -- every route of a description as a table.
* ``routekit inspect SPEC [ROUTE]`` -- children and methods of one route.
* ``routekit request SPEC METHOD PATH`` -- send one request through the
  client's root route and print the result.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~routekit.exceptions.RoutekitError` instances are
printed through :mod:`routekit.output` and turned into their exit codes.

See Also:
    :mod:`routekit.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import typer

from routekit import __version__
from routekit.exceptions import RoutekitError
from routekit.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from routekit.output import error, get_output

if TYPE_CHECKING:
    from routekit.generator import RouteTree
    from routekit.models import ResponseDescriptor

app = typer.Typer(
    name="routekit",
    help="Explore and call REST APIs described in RAML-style YAML or JSON.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"routekit {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and logging."
    ),
) -> None:
    """Install the output manager and, with ``--verbose``, DEBUG logging."""
    from routekit.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=_LOG_FORMAT, stream=sys.stderr)


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Print library errors and exit with their code."""
    try:
        yield
    except RoutekitError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _load_tree(spec: str) -> RouteTree:
    """Load, normalise and build the route tree for *spec*."""
    from routekit.config import resolve_settings
    from routekit.generator import build_route_tree
    from routekit.parser import extract_description, load_description

    settings = resolve_settings()
    raw = asyncio.run(load_description(spec, timeout=settings.timeout))
    return build_route_tree(extract_description(raw))


@app.command("routes")
def routes_command(
    spec: str = typer.Argument(..., help="Description URL, file path, or '-' for stdin."),
) -> None:
    """List every route of an API description.

    Example::

        routekit routes api.raml
        routekit --json routes https://example.com/api.raml
    """
    with _cli_errors():
        tree = _load_tree(spec)

    rows = [
        [expression, path, node.kind.value, ", ".join(node.method_names()) or "-"]
        for expression, node, path in tree.iter_routes()
    ]
    get_output().print_table(
        ["Route", "Path", "Kind", "Methods"],
        rows,
        title=f"{tree.title} -- Routes ({len(rows)})",
    )


@app.command("inspect")
def inspect_command(
    spec: str = typer.Argument(..., help="Description URL, file path, or '-' for stdin."),
    route: Optional[str] = typer.Argument(
        None, help="Dotted route, e.g. 'collection.collectionId()'. Defaults to the root."
    ),
) -> None:
    """Show the children and methods of one route.

    Variable routes are written with a trailing ``()``; a bare name resolves
    to the static route and falls back to the variable one.

    Example::

        routekit inspect api.raml collection
        routekit inspect api.raml "collection.collectionId().nestedId()"
    """
    from routekit.generator import NodeKind

    with _cli_errors():
        tree = _load_tree(spec)

    try:
        node = tree.resolve_expression(route or "")
    except KeyError:
        try:
            node = tree.resolve_expression(_as_variable_path(route or ""))
        except KeyError as exc:
            error(str(exc.args[0]) if exc.args else f"Unknown route {route!r}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    output = get_output()
    children = [
        [name, kind.value, child.template]
        for (kind, name), first in node.children.items()
        for child in (node.variants(name) if kind is NodeKind.VARIABLE else (first,))
    ]
    methods = [
        [spec_.method.value, "method", spec_.description or "-"]
        for spec_ in node.methods.values()
    ]
    label = route or "/"
    if node.kind is NodeKind.ROOT:
        label = tree.title
    output.print_table(["Name", "Kind", "Detail"], children + methods, title=label)


def _as_variable_path(expression: str) -> str:
    """Mark the last step of *expression* as a variable route."""
    if not expression or expression.endswith("()"):
        return expression
    return expression + "()"


def _parse_pairs(values: list[str], separator: str, option: str) -> list[tuple[str, str]]:
    pairs = []
    for value in values:
        key, sep, rest = value.partition(separator)
        if not sep or not key.strip():
            raise typer.BadParameter(
                f"expected NAME{separator}VALUE, got {value!r}", param_hint=option
            )
        pairs.append((key.strip(), rest.strip() if separator == ":" else rest))
    return pairs


def _read_body(body: Optional[str]) -> Optional[str]:
    if body is None or not body.startswith("@"):
        return body
    path = Path(body[1:])
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"cannot read {path}: {exc}", param_hint="--body") from exc


def _make_transport(settings: Any) -> Any:
    """Transport used by ``routekit request``."""
    from routekit.client import HttpxTransport

    return HttpxTransport(settings)


@app.command("request")
def request_command(
    spec: str = typer.Argument(..., help="Description URL, file path, or '-' for stdin."),
    method: str = typer.Argument(..., help="HTTP method: get, head, post, put, patch, delete."),
    path: str = typer.Argument(..., help="Path template relative to the base URI."),
    query: list[str] = typer.Option([], "--query", "-Q", help="Query parameter NAME=VALUE."),
    header: list[str] = typer.Option([], "--header", "-H", help="Header NAME:VALUE."),
    param: list[str] = typer.Option(
        [], "--param", "-P", help="URI or base-URI parameter NAME=VALUE."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", "-d", help="Request body, or @file to read it from a file."
    ),
    base_uri: Optional[str] = typer.Option(None, "--base-uri", help="Override the baseUri."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
) -> None:
    """Send one request and print the response.

    Example::

        routekit request api.raml get /users/{id} --param id=42 --query expand=profile
        routekit request api.raml post /users -H "Content-Type: application/json" -d @user.json
    """
    from routekit.models import ROOT_METHODS

    verb = method.lower()
    if verb not in {m.value for m in ROOT_METHODS}:
        raise typer.BadParameter(
            f"{method!r} is not one of {', '.join(m.value for m in ROOT_METHODS)}",
            param_hint="METHOD",
        )

    query_values: dict[str, Any] = {}
    for key, value in _parse_pairs(query, "=", "--query"):
        query_values.setdefault(key, []).append(value)
    options = {
        "query": query_values,
        "headers": dict(_parse_pairs(header, ":", "--header")),
        "uri_parameters": dict(_parse_pairs(param, "=", "--param")),
    }
    payload = _read_body(body)

    with _cli_errors():
        response = asyncio.run(
            _send(spec, verb, path, payload, options, base_uri=base_uri, timeout=timeout)
        )
    get_output().print_response(response)


async def _send(
    spec: str,
    verb: str,
    path: str,
    payload: Optional[str],
    options: dict[str, Any],
    *,
    base_uri: Optional[str],
    timeout: Optional[float],
) -> ResponseDescriptor:
    from routekit.api import create_client
    from routekit.config import resolve_settings
    from routekit.models import HTTPMethod

    settings = resolve_settings(base_uri=base_uri, timeout=timeout)
    client = await create_client(
        "cli", spec, settings=settings, transport=_make_transport(settings)
    )
    invoke = getattr(client(path), verb)
    if HTTPMethod(verb).has_body:
        return await invoke(payload, options)
    return await invoke(None, options)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``routekit`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except RoutekitError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:  # noqa: BLE001
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
