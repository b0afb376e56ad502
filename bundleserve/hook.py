"""Build-complete hook: announce the server and open a browser once."""

from __future__ import annotations

import os
import re
import threading
import webbrowser
from typing import Any, Callable, Optional

from .config import ServeOptions

ABSOLUTE_URL_RE = re.compile(r"https?://.+")

Opener = Callable[[str], object]


def green(text: str) -> str:
    return "\u001b[1m\u001b[32m" + text + "\u001b[39m\u001b[22m"


def serving_url(options: ServeOptions, port: Optional[int] = None) -> str:
    return f"{options.protocol}://{options.host}:{options.port if port is None else port}"


class BuildHook:
    """Adapter the bundler calls after every build.

    Only the first notification does anything: it prints where each content
    root is served and, when asked to, opens the browser. Rebuilds after that
    are silent.
    """

    name = "serve"

    def __init__(self, options: ServeOptions, url: str, opener: Optional[Opener] = None, server: Any = None) -> None:
        self.options = options
        self.url = url
        self.server = server
        self.opener = opener or webbrowser.open
        self._announced = False
        self._lock = threading.Lock()

    @property
    def page_url(self) -> str:
        if ABSOLUTE_URL_RE.match(self.options.open_page):
            return self.options.open_page
        return self.url + self.options.open_page

    def generate_bundle(self) -> bool:
        """Handle a build-complete notification. Returns True on the first call only."""
        with self._lock:
            if self._announced:
                return False
            self._announced = True

        if self.options.verbose:
            for base in self.options.content_base:
                print(green(self.url) + " -> " + os.path.abspath(base))

        if self.options.open:
            self.opener(self.page_url)
        return True
