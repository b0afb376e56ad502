import http.client

import pytest

from bundleserve import DevServer

ROOTS = [".", "base1", "base2"]


@pytest.fixture
def site(tmp_path_factory, monkeypatch):
    """Three content roots laid out like a bundler project with extra asset folders."""
    # Use a neutral directory name: tmp_path embeds the test name, which would
    # leak words like "fallback" into the paths that tests inspect.
    tmp_path = tmp_path_factory.mktemp("site")
    (tmp_path / "index.html").write_text("<h1>root index</h1>")
    (tmp_path / "style.css").write_text("body { margin: 0; }")
    (tmp_path / "notes.unknownext").write_text("plain notes")

    base1 = tmp_path / "base1"
    base1.mkdir()
    (base1 / "frames.html").write_text("<frameset>base1</frameset>")
    (base1 / "shared.txt").write_text("from base1")

    base2 = tmp_path / "base2"
    base2.mkdir()
    (base2 / "shared.txt").write_text("from base2")
    (base2 / "only2.js").write_text("console.log(2)")
    (base2 / "docs").mkdir()
    (base2 / "docs" / "index.html").write_text("docs index")

    (tmp_path / "outside").mkdir()
    (tmp_path / "outside" / "secret.txt").write_text("top secret")

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def start_server():
    servers = []

    def _start(**options):
        options.setdefault("content_base", ROOTS)
        options.setdefault("host", "127.0.0.1")
        options.setdefault("port", 0)
        options.setdefault("verbose", False)
        server = DevServer(options, handle_signals=False)
        server.start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.close()
        server.wait(timeout=5)


@pytest.fixture
def fetch():
    def _fetch(server, path, method="GET", context=None):
        if context is not None:
            conn = http.client.HTTPSConnection(server.host, server.port, timeout=5, context=context)
        else:
            conn = http.client.HTTPConnection(server.host, server.port, timeout=5)
        try:
            conn.request(method, path)
            response = conn.getresponse()
            return response.status, dict(response.getheaders()), response.read()
        finally:
            conn.close()

    return _fetch
