"""Map request URLs to files across an ordered list of content roots."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from typing import Optional, Sequence, Union
from urllib.parse import unquote

INDEX_FILE = "index.html"
DEFAULT_FALLBACK = "/index.html"

# Read errors that mean "not in this root": the scan moves on to the next one.
MISSING_ERRORS = (FileNotFoundError, NotADirectoryError, IsADirectoryError)


@dataclass(frozen=True)
class Found:
    path: str
    content: bytes


@dataclass(frozen=True)
class NotFound:
    path: str


@dataclass(frozen=True)
class IOFailure:
    path: str
    error: OSError


Resolution = Union[Found, NotFound, IOFailure]


def normalize_url_path(url: str) -> str:
    """Turn a raw request target into a rooted path without `.` or `..` segments.

    The query string and fragment are dropped and percent escapes decoded
    before normalising. A trailing slash survives so directory requests can
    still be told apart from file requests.
    """
    raw = url.split("?", 1)[0].split("#", 1)[0]
    raw = unquote(raw).replace("\\", "/")
    path = posixpath.normpath("/" + raw.lstrip("/"))
    if raw.endswith("/") and not path.endswith("/"):
        path += "/"
    return path


def read_file(path: str) -> bytes:
    with open(path, "rb") as handle:
        return handle.read()


def _is_within(base: str, candidate: str) -> bool:
    try:
        return os.path.commonpath([base, candidate]) == base
    except ValueError:
        # Different drives on Windows.
        return False


def resolve(url: str, roots: Sequence[str]) -> Resolution:
    """Find the file for `url` in the first root that has it.

    Args:
        url: Request target as received, possibly with a query string.
        roots: Content roots in priority order. Empty means the working directory.

    Returns:
        `Found` for the first readable file, `IOFailure` as soon as a read
        fails for a reason other than absence, otherwise `NotFound` with the
        last path tried.
    """
    path = normalize_url_path(url)
    if path.endswith("/"):
        path += INDEX_FILE
    relative = path.lstrip("/")

    attempted = ""
    for root in roots or (".",):
        base = os.path.abspath(root)
        attempted = os.path.normpath(os.path.join(base, relative))
        if "\0" in attempted or not _is_within(base, attempted):
            continue
        try:
            content = read_file(attempted)
        except MISSING_ERRORS:
            continue
        except OSError as exc:
            return IOFailure(attempted, exc)
        return Found(attempted, content)
    return NotFound(attempted)


def fallback_path(setting: Union[bool, str, None]) -> Optional[str]:
    if not setting:
        return None
    if setting is True:
        return DEFAULT_FALLBACK
    return str(setting)


def resolve_with_fallback(url: str, roots: Sequence[str], fallback: Union[bool, str, None] = None) -> Resolution:
    primary = resolve(url, roots)
    if not isinstance(primary, NotFound):
        return primary

    path = fallback_path(fallback)
    if path is None:
        return primary

    secondary = resolve(path, roots)
    if isinstance(secondary, NotFound):
        # Report the URL the client asked for, not the fallback page.
        return primary
    return secondary
