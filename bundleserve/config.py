"""Options accepted by the dev server and the build plugin."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from .errors import ConfigError

DEFAULT_PORT = 10001
DEFAULT_HOST = "localhost"
DEFAULT_TYPE = "text/plain"
DEFAULT_CONTENT_BASE: Tuple[str, ...] = (".",)

# Option names as they appear in a bundler config file.
CAMEL_CASE_ALIASES = {
    "contentBase": "content_base",
    "openPage": "open_page",
    "historyApiFallback": "history_api_fallback",
    "defaultType": "default_type",
    "mimeTypes": "mime_types",
    "onListening": "on_listening",
}

ListeningCallback = Callable[[Dict[str, Any]], None]
PathLike = Union[str, "os.PathLike[str]"]


def _ignore_listening(address: Dict[str, Any]) -> None:
    return None


def normalize_content_base(value: Union[None, PathLike, Sequence[PathLike]]) -> Tuple[str, ...]:
    if value is None:
        return DEFAULT_CONTENT_BASE
    if isinstance(value, (str, os.PathLike)):
        value = [value]
    roots: list[str] = []
    for root in value:
        if not isinstance(root, (str, os.PathLike)):
            raise ConfigError(f"Content base entries must be paths, got {root!r}")
        roots.append(os.fspath(root) or ".")
    return tuple(roots) or DEFAULT_CONTENT_BASE


def normalize_mime_types(value: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    if not value:
        return None
    overrides: Dict[str, str] = {}
    for ext, mime_type in value.items():
        ext = str(ext).strip()
        if not ext or not mime_type:
            raise ConfigError(f"Invalid MIME override: {ext!r} -> {mime_type!r}")
        overrides["." + ext.lstrip(".")] = str(mime_type)
    return overrides


@dataclass(frozen=True)
class HttpsOptions:
    """PEM files used to wrap the listener in TLS."""

    cert: str
    key: Optional[str] = None
    ca: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["HttpsOptions"]:
        if value is None or value is False:
            return None
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            raise ConfigError(f"https options must be a mapping, got {type(value).__name__}")
        cert = value.get("cert") or value.get("certFile")
        key = value.get("key") or value.get("keyFile")
        ca = value.get("ca") or value.get("caFile")
        if not cert:
            raise ConfigError("https options need a certificate file ('cert')")
        return cls(
            cert=os.fspath(cert),
            key=os.fspath(key) if key else None,
            ca=os.fspath(ca) if ca else None,
        )


@dataclass
class ServeOptions:
    """Server configuration, built once and only read afterwards.

    `content_base` is searched left to right. `history_api_fallback` is
    either off (None/False), True for `/index.html`, or an explicit path.
    """

    content_base: Sequence[str] = DEFAULT_CONTENT_BASE
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    headers: Dict[str, str] = field(default_factory=dict)
    https: Optional[HttpsOptions] = None
    open_page: str = ""
    open: bool = False
    history_api_fallback: Union[bool, str, None] = None
    default_type: str = DEFAULT_TYPE
    verbose: bool = True
    mime_types: Optional[Dict[str, str]] = None
    on_listening: Optional[ListeningCallback] = _ignore_listening

    def __post_init__(self) -> None:
        self.content_base = normalize_content_base(self.content_base)
        self.https = HttpsOptions.from_value(self.https)
        self.headers = {str(name): str(value) for name, value in (self.headers or {}).items()}
        self.mime_types = normalize_mime_types(self.mime_types)
        self.host = self.host or DEFAULT_HOST
        self.open_page = self.open_page or ""
        self.default_type = self.default_type or DEFAULT_TYPE

        try:
            self.port = int(self.port)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid port: {self.port!r}") from exc
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Port out of range: {self.port}")

        if self.history_api_fallback is not None and not isinstance(self.history_api_fallback, (bool, str)):
            raise ConfigError("historyApiFallback must be a boolean or a path")
        if isinstance(self.history_api_fallback, str) and self.history_api_fallback and not self.history_api_fallback.startswith("/"):
            self.history_api_fallback = "/" + self.history_api_fallback

        if self.on_listening is None:
            self.on_listening = _ignore_listening
        elif not callable(self.on_listening):
            raise ConfigError("onListening must be callable")

    @property
    def protocol(self) -> str:
        return "https" if self.https else "http"

    @classmethod
    def from_value(cls, value: Any = None) -> "ServeOptions":
        """Accept the shapes the plugin takes: options, a mapping, one root or a list of roots."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, (str, os.PathLike, list, tuple)):
            return cls(content_base=value)
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise ConfigError(f"Unsupported options value: {type(value).__name__}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ServeOptions":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in mapping.items():
            name = CAMEL_CASE_ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown option: {key}")
            if name in kwargs:
                raise ConfigError(f"Option given twice: {key}")
            kwargs[name] = value
        return cls(**kwargs)
