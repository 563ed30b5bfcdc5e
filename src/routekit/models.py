"""Canonical Pydantic models shared across all routekit modules.

The models fall into three groups:

**Description AST** -- the normalised API description produced by
:mod:`routekit.parser` and consumed by the route-tree builder:
    :class:`HTTPMethod`, :class:`MediaType`, :class:`MediaTypeBinding`,
    :class:`UriParameter`, :class:`MethodSpec`, :class:`ResourceSpec`, and
    :class:`ApiDescription`.

**Invocation models** -- per-call values flowing through the request pipeline:
    :class:`RequestOptions`, :class:`RequestDescriptor`, and
    :class:`ResponseDescriptor`.

**Settings** -- :class:`ClientSettings`, the ambient transport settings
resolved by :func:`routekit.config.resolve_settings`.

The route tree itself is not a Pydantic model; see
:mod:`routekit.generator.route_tree`.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from routekit.exceptions import ConfigError


# --- Description AST ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs a resource may declare.

    ``post``, ``put``, ``patch`` and ``delete`` take a body as their first
    positional argument; the rest take a query.
    """

    GET = "get"
    HEAD = "head"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    OPTIONS = "options"
    TRACE = "trace"

    @property
    def has_body(self) -> bool:
        """Whether the calling convention passes a body first."""
        return self in BODY_METHODS


BODY_METHODS = frozenset(
    {HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH, HTTPMethod.DELETE}
)

ROOT_METHODS: tuple[HTTPMethod, ...] = (
    HTTPMethod.GET,
    HTTPMethod.HEAD,
    HTTPMethod.POST,
    HTTPMethod.PUT,
    HTTPMethod.PATCH,
    HTTPMethod.DELETE,
)
"""Verbs exposed by routes created through root invocation."""


class MediaType(str, enum.Enum):
    """Serialisation strategy negotiated from a content type."""

    JSON = "json"
    URL_ENCODED = "url-encoded"
    RAW = "raw"

    @classmethod
    def from_content_type(cls, content_type: Optional[str]) -> MediaType:
        """Classify a ``Content-Type`` value, ignoring parameters like charset."""
        if not content_type:
            return cls.RAW
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime == "application/json" or mime.endswith("+json"):
            return cls.JSON
        if mime == "application/x-www-form-urlencoded":
            return cls.URL_ENCODED
        return cls.RAW


class MediaTypeBinding(BaseModel):
    """Declared request and response content types of one method."""

    model_config = ConfigDict(frozen=True)

    request_types: list[str] = Field(default_factory=list)
    response_types: list[str] = Field(default_factory=list)

    @property
    def content_type(self) -> Optional[str]:
        """Default ``Content-Type``: the first declared request type."""
        return self.request_types[0] if self.request_types else None

    @property
    def accept(self) -> Optional[str]:
        """Default ``Accept`` header built from the declared response types."""
        return ", ".join(self.response_types) if self.response_types else None

    @property
    def request_media(self) -> MediaType:
        return MediaType.from_content_type(self.content_type)


class UriParameter(BaseModel):
    """A declared URI or base-URI parameter.

    A parameter whose ``enum`` holds exactly one value uses that value as its
    default, so routes like ``/enum{kind}`` resolve without arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "string"
    description: Optional[str] = None
    default: Any = None
    enum: Optional[list[Any]] = None
    required: bool = True

    @property
    def default_value(self) -> Any:
        if self.default is not None:
            return self.default
        if self.enum is not None and len(self.enum) == 1:
            return self.enum[0]
        return None


class MethodSpec(BaseModel):
    """One HTTP method declared on a resource."""

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    description: Optional[str] = None
    media: MediaTypeBinding = Field(default_factory=MediaTypeBinding)
    headers: dict[str, Any] = Field(
        default_factory=dict, description="Declared header defaults"
    )
    query: dict[str, Any] = Field(
        default_factory=dict, description="Declared query parameter defaults"
    )

    def declared_headers(self) -> dict[str, str]:
        """Headers implied by the declaration, lowest precedence in a request."""
        headers: dict[str, str] = {}
        if self.media.accept:
            headers["Accept"] = self.media.accept
        if self.media.content_type and self.method.has_body:
            headers["Content-Type"] = self.media.content_type
        for name, value in self.headers.items():
            headers[name] = str(value)
        return headers


class ResourceSpec(BaseModel):
    """A resource with its methods and nested resources.

    ``relative_uri`` may span several path segments (``/body/json``) and mix
    literal text with ``{variable}`` placeholders.
    """

    model_config = ConfigDict(frozen=True)

    relative_uri: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    uri_parameters: dict[str, UriParameter] = Field(default_factory=dict)
    methods: list[MethodSpec] = Field(default_factory=list)
    resources: list[ResourceSpec] = Field(default_factory=list)

    @field_validator("relative_uri")
    @classmethod
    def _must_be_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"relative URI must start with '/': {value!r}")
        return value


class ApiDescription(BaseModel):
    """Normalised API description: the builder's only input."""

    model_config = ConfigDict(frozen=True)

    title: str = "API"
    version: Optional[str] = None
    base_uri: Optional[str] = None
    base_uri_parameters: dict[str, UriParameter] = Field(default_factory=dict)
    media_type: Optional[str] = None
    resources: list[ResourceSpec] = Field(default_factory=list)


ResourceSpec.model_rebuild()


# --- Invocation models ---


OPTION_KEYS: tuple[str, ...] = (
    "query",
    "body",
    "headers",
    "uri_parameters",
    "base_uri_parameters",
)

_OPTION_ALIASES = {
    "uriParameters": "uri_parameters",
    "baseUriParameters": "base_uri_parameters",
}


def normalize_option_key(key: str) -> str:
    """Map an option key (snake_case or camelCase) to its canonical name.

    Raises:
        ConfigError: If the key is not a known option.
    """
    canonical = _OPTION_ALIASES.get(key, key)
    if canonical not in OPTION_KEYS:
        raise ConfigError(
            f"Unknown option {key!r}; expected one of: {', '.join(OPTION_KEYS)}"
        )
    return canonical


class RequestOptions(BaseModel):
    """Call-time options for one invocation.

    Presence is tracked through ``model_fields_set``: an explicitly supplied
    ``body`` replaces the configured default even when it is falsy.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    query: Any = None
    body: Any = None
    headers: Optional[dict[str, Any]] = None
    uri_parameters: Optional[dict[str, Any]] = Field(default=None, alias="uriParameters")
    base_uri_parameters: Optional[dict[str, Any]] = Field(
        default=None, alias="baseUriParameters"
    )

    @property
    def has_body(self) -> bool:
        return "body" in self.model_fields_set

    @classmethod
    def coerce(cls, value: Any = None, **overrides: Any) -> RequestOptions:
        """Build options from ``None``, a mapping, or an existing instance.

        Keyword ``overrides`` win over keys of ``value``.

        Raises:
            ConfigError: If an option key is unknown or a value has the wrong shape.
        """
        if isinstance(value, RequestOptions):
            data: dict[str, Any] = {
                name: getattr(value, name) for name in value.model_fields_set
            }
        elif value is None:
            data = {}
        elif isinstance(value, Mapping):
            data = dict(value)
        else:
            raise ConfigError(
                f"Options must be a mapping or RequestOptions, got {type(value).__name__}"
            )
        data.update(overrides)
        try:
            return cls.model_validate(
                {normalize_option_key(k): v for k, v in data.items()}
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid request options: {exc}") from exc


class RequestDescriptor(BaseModel):
    """A fully resolved request, ready for the transport."""

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    url: str
    query: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[str | bytes] = None

    @property
    def full_url(self) -> str:
        """``url`` with the encoded query string appended."""
        if not self.query:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{self.query}"


class ResponseDescriptor(BaseModel):
    """What an invocation resolves to.

    ``body`` holds raw text as returned by the transport and a parsed
    structure once the response interpreter has run; ``text`` always keeps
    the raw body. Header names are lower-cased.
    """

    model_config = ConfigDict(frozen=True)

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    text: str = ""
    url: str = ""
    method: Optional[HTTPMethod] = None

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")


# --- Settings ---


class ClientSettings(BaseModel):
    """Transport settings shared by every invocation of one client."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    base_uri: Optional[str] = Field(
        default=None, description="Override the description's baseUri"
    )
    user_agent: str = Field(default="routekit", description="User-Agent header value")
