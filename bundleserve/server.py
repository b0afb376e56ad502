"""Threaded static-file server with an explicit start/stop lifecycle."""

from __future__ import annotations

import enum
import http.server
import logging
import signal
import ssl
import threading
from typing import Any, Dict, Optional

from .config import ServeOptions
from .errors import BindError
from .hook import serving_url
from .resolver import IOFailure, resolve_with_fallback
from .response import MimeTable, ResponseEnvelope, build_response

LOG = logging.getLogger(__name__)

# How often the accept loop checks whether it has been asked to stop.
POLL_INTERVAL = 0.25
TERMINATION_SIGNALS = ("SIGINT", "SIGTERM", "SIGQUIT", "SIGHUP")


class ServerState(enum.Enum):
    CREATED = "created"
    LISTENING = "listening"
    CLOSING = "closing"
    CLOSED = "closed"


class DevRequestHandler(http.server.BaseHTTPRequestHandler):
    """Answers every method the same way: look the path up and send the file."""

    server_version = "bundleserve"

    def respond(self) -> None:
        envelope = self.server.dev_server.respond(self.path)
        self.send_response(envelope.status)
        for name, value in envelope.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(envelope.body)))
        self.end_headers()
        try:
            self.wfile.write(envelope.body)
        except ConnectionError as exc:
            LOG.debug("Client went away while sending %s: %s", self.path, exc)

    do_GET = do_HEAD = do_POST = do_PUT = do_PATCH = do_DELETE = do_OPTIONS = respond

    def log_message(self, format: str, *args: Any) -> None:
        LOG.info("%s - - %s", self.address_string(), format % args)


class _Listener(http.server.ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    dev_server: "DevServer"

    def finish_request(self, request: Any, client_address: Any) -> None:
        if isinstance(request, ssl.SSLSocket):
            try:
                request.do_handshake()
            except (ssl.SSLError, ConnectionError) as exc:
                LOG.debug("TLS handshake with %s failed: %s", client_address[0], exc)
                return
        super().finish_request(request, client_address)

    def handle_error(self, request: Any, client_address: Any) -> None:
        LOG.exception("Error while handling request from %s", client_address[0])


class DevServer:
    """Owns the listening socket and the accept loop.

    The socket is bound when the server is constructed, so a port clash or
    unusable TLS material surfaces as `BindError` before anything else runs.
    `serve()` blocks; `start()` runs it on a daemon thread. `close()` may be
    called from any thread, any number of times.
    """

    def __init__(self, options: Any = None, handle_signals: bool = True) -> None:
        self.options = ServeOptions.from_value(options)
        self.mime = MimeTable(self.options.mime_types)
        self.state = ServerState.CREATED
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._loop_thread: Optional[threading.Thread] = None
        self._previous_handlers: Dict[int, Any] = {}
        self._signalled = False
        self._httpd = self._bind()
        if handle_signals:
            self._install_signal_handlers()

    def __enter__(self) -> "DevServer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
        self.wait()

    @property
    def protocol(self) -> str:
        return self.options.protocol

    @property
    def host(self) -> str:
        return self.options.host

    @property
    def port(self) -> int:
        return self._httpd.server_address[1]

    @property
    def url(self) -> str:
        return serving_url(self.options, self.port)

    def _bind(self) -> _Listener:
        address = f"{self.options.host}:{self.options.port}"
        try:
            httpd = _Listener((self.options.host, self.options.port), DevRequestHandler)
        except OSError as exc:
            raise BindError(address, exc.strerror or str(exc)) from exc
        httpd.dev_server = self
        httpd.timeout = POLL_INTERVAL

        if self.options.https:
            try:
                context = self._tls_context()
                # Handshakes happen on the request thread, not in the accept loop.
                httpd.socket = context.wrap_socket(httpd.socket, server_side=True, do_handshake_on_connect=False)
            except OSError as exc:
                httpd.server_close()
                raise BindError(address, str(exc)) from exc
        return httpd

    def _tls_context(self) -> ssl.SSLContext:
        https = self.options.https
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(certfile=https.cert, keyfile=https.key)
        if https.ca:
            context.load_verify_locations(cafile=https.ca)
        return context

    def respond(self, url: str) -> ResponseEnvelope:
        result = resolve_with_fallback(url, self.options.content_base, self.options.history_api_fallback)
        if isinstance(result, IOFailure):
            LOG.warning("Failed to read %s: %s", result.path, result.error)
        return build_response(result, self.options.headers, self.options.default_type, self.mime)

    def serve(self) -> None:
        with self._lock:
            if self.state in (ServerState.CLOSING, ServerState.CLOSED):
                return
            if self.state is ServerState.LISTENING:
                raise RuntimeError("Server is already listening")
            self.state = ServerState.LISTENING
            self._loop_thread = threading.current_thread()

        try:
            self.options.on_listening({"protocol": self.protocol, "host": self.host, "port": self.port})
            while not self._stop.is_set():
                self._httpd.handle_request()
        finally:
            self._release()

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.serve, name=f"bundleserve-{self.port}", daemon=True)
        thread.start()
        return thread

    def close(self) -> bool:
        """Ask the server to stop. Returns False when it was already stopping."""
        with self._lock:
            if self.state in (ServerState.CLOSING, ServerState.CLOSED):
                return False
            loop_running = self.state is ServerState.LISTENING
            self.state = ServerState.CLOSING
        self._stop.set()
        if not loop_running:
            self._release()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop has released the socket."""
        loop = self._loop_thread
        if loop is not None and loop is not threading.current_thread():
            loop.join(timeout)
        if self.state is not ServerState.CLOSED:
            return False
        self._restore_signal_handlers()
        return True

    def _release(self) -> None:
        with self._lock:
            if self.state is ServerState.CLOSED:
                return
            self.state = ServerState.CLOSED
            self._stop.set()
            self._httpd.server_close()
        LOG.debug("Released listener on %s", self.url)
        self._restore_signal_handlers()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            LOG.debug("Not on the main thread; leaving termination signals alone")
            return
        for name in TERMINATION_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is not None:
                self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def _restore_signal_handlers(self) -> None:
        # After a signal our handler stays installed so repeats are absorbed until exit.
        if self._signalled or not self._previous_handlers or threading.current_thread() is not threading.main_thread():
            return
        handlers, self._previous_handlers = self._previous_handlers, {}
        for signum, handler in handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)

    def _handle_signal(self, signum: int, frame: Any) -> None:
        if self._signalled:
            return
        self._signalled = True
        if not self.close():
            return
        LOG.info("Received %s, shutting down", signal.Signals(signum).name)
        self.wait()
        raise SystemExit(0)
