"""Turn resolution results into HTTP responses."""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .config import DEFAULT_TYPE
from .resolver import Found, IOFailure, NotFound, Resolution

PLAIN_TEXT = "text/plain; charset=utf-8"
SIGNATURE = "(bundleserve)"


class MimeTable:
    """Extension to content type lookup with per-server overrides.

    Overrides go into a private `mimetypes.MimeTypes` instance so the
    module-level table shared by the rest of the process is left alone.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None) -> None:
        self._types = mimetypes.MimeTypes()
        # Modern module types some platform tables still get wrong.
        self._types.add_type("text/javascript", ".mjs")
        self._types.add_type("application/wasm", ".wasm")
        for ext, mime_type in (overrides or {}).items():
            self._types.add_type(mime_type, ext)

    def guess(self, path: str) -> Optional[str]:
        mime_type, _ = self._types.guess_type(os.path.basename(path), strict=False)
        return mime_type


@dataclass
class ResponseEnvelope:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def set_content_type(headers: Dict[str, str], value: str) -> None:
    for name in [name for name in headers if name.lower() == "content-type"]:
        del headers[name]
    headers["Content-Type"] = value


def found(result: Found, headers: Dict[str, str], default_type: str, mime: MimeTable) -> ResponseEnvelope:
    set_content_type(headers, mime.guess(result.path) or default_type)
    return ResponseEnvelope(200, headers, result.content)


def not_found(result: NotFound, headers: Dict[str, str]) -> ResponseEnvelope:
    set_content_type(headers, PLAIN_TEXT)
    body = f"404 Not Found\n\n{result.path}\n\n{SIGNATURE}"
    return ResponseEnvelope(404, headers, body.encode("utf-8"))


def internal_error(result: IOFailure, headers: Dict[str, str]) -> ResponseEnvelope:
    # The raw error text is exposed on purpose; this server is for local use only.
    set_content_type(headers, PLAIN_TEXT)
    body = f"500 Internal Server Error\n\n{result.path}\n\n{result.error}\n\n{SIGNATURE}"
    return ResponseEnvelope(500, headers, body.encode("utf-8", "replace"))


def build_response(
    result: Resolution,
    base_headers: Mapping[str, str],
    default_type: str = DEFAULT_TYPE,
    mime: Optional[MimeTable] = None,
) -> ResponseEnvelope:
    headers = dict(base_headers)
    if isinstance(result, Found):
        return found(result, headers, default_type, mime or MimeTable())
    if isinstance(result, IOFailure):
        return internal_error(result, headers)
    return not_found(result, headers)
