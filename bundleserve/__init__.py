"""Serve bundler output over HTTP(S) while the bundler watches and rebuilds."""

from __future__ import annotations

from typing import Any, Optional

from .config import HttpsOptions, ServeOptions
from .errors import BindError, ConfigError, ServeError
from .hook import BuildHook, Opener
from .resolver import Found, IOFailure, NotFound, resolve, resolve_with_fallback
from .response import ResponseEnvelope, build_response
from .server import DevServer, ServerState

__all__ = [
    "BindError",
    "BuildHook",
    "ConfigError",
    "DevServer",
    "Found",
    "HttpsOptions",
    "IOFailure",
    "NotFound",
    "ResponseEnvelope",
    "ServeError",
    "ServeOptions",
    "ServerState",
    "build_response",
    "resolve",
    "resolve_with_fallback",
    "serve",
]


def serve(options: Any = None, opener: Optional[Opener] = None) -> BuildHook:
    """Start serving right away and return the hook the bundler calls after each build.

    `options` may be a `ServeOptions`, a mapping of option names (snake_case or
    the camelCase names used in bundler configs), one directory, or a list of
    directories.
    """
    server = DevServer(options)
    server.start()
    return BuildHook(server.options, server.url, opener, server=server)
