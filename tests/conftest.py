"""Shared test fixtures for routekit.

Provides the API description fixtures, an isolated configuration
environment, a recording mock transport, and ready-built clients. These
fixtures are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
import yaml

from routekit.api import build_client
from routekit.client.transport import HttpxTransport
from routekit.generator.route import Route
from routekit.models import ApiDescription
from routekit.output import reset_output
from routekit.parser.extractor import extract_description


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    CliRunner swaps sys.stdout/sys.stderr during a test; a manager created
    then keeps references to closed streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Description fixtures
# ---------------------------------------------------------------------------


def load_fixture(name: str) -> dict[str, Any]:
    """Load a fixture description as a raw dict."""
    text = (FIXTURES_DIR / name).read_text(encoding="utf-8")
    if name.endswith(".json"):
        return json.loads(text)
    return yaml.safe_load(text)


@pytest.fixture
def example_raw() -> dict[str, Any]:
    return load_fixture("example.raml")


@pytest.fixture
def example_description(example_raw: dict[str, Any]) -> ApiDescription:
    return extract_description(example_raw)


# ---------------------------------------------------------------------------
# Mock transport
# ---------------------------------------------------------------------------


class RequestRecorder:
    """``httpx.MockTransport`` handler that records every request.

    Args:
        respond: Optional callable building the response for a request;
            defaults to an empty JSON object.
    """

    def __init__(
        self, respond: Optional[Callable[[httpx.Request], httpx.Response]] = None
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._respond = respond

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._respond is not None:
            return self._respond(request)
        return httpx.Response(200, json={})

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]

    def transport(self) -> HttpxTransport:
        return HttpxTransport(transport=httpx.MockTransport(self))


def echo_body(request: httpx.Request) -> httpx.Response:
    """Respond with the request body as plain text."""
    return httpx.Response(
        200, text=request.content.decode("utf-8"), headers={"content-type": "text/plain"}
    )


@pytest.fixture
def recorder() -> RequestRecorder:
    return RequestRecorder()


@pytest.fixture
def echo_recorder() -> RequestRecorder:
    return RequestRecorder(echo_body)


@pytest.fixture
def example_client(example_description: ApiDescription, recorder: RequestRecorder) -> Route:
    """Client for ``example.raml`` whose requests land in ``recorder``."""
    return build_client("example", example_description, transport=recorder.transport())


@pytest.fixture
def echo_client(example_description: ApiDescription, echo_recorder: RequestRecorder) -> Route:
    """Client for ``example.raml`` whose responses echo the request body."""
    return build_client("echo", example_description, transport=echo_recorder.transport())


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at tmp_path and clear ROUTEKIT_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ("ROUTEKIT_TIMEOUT", "ROUTEKIT_VERIFY_SSL", "ROUTEKIT_BASE_URI"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
