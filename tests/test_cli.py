import socket

from bundleserve.__main__ import build_arg_parser, main, options_from_args


def parse(*argv):
    return options_from_args(build_arg_parser().parse_args(list(argv)))


def test_defaults_serve_working_directory():
    options = parse()
    assert options.content_base == (".",)
    assert options.port == 10001
    assert options.history_api_fallback is None
    assert options.verbose is True


def test_roots_and_flags():
    options = parse(
        "dist",
        "static",
        "--port",
        "3000",
        "--header",
        "X-Frame-Options: DENY",
        "--mime",
        "md=text/markdown",
        "--open",
        "--open-page",
        "/frames.html",
        "--quiet",
    )
    assert options.content_base == ("dist", "static")
    assert options.port == 3000
    assert options.headers == {"X-Frame-Options": "DENY"}
    assert options.mime_types == {".md": "text/markdown"}
    assert options.open is True
    assert options.open_page == "/frames.html"
    assert options.verbose is False


def test_fallback_flag_with_and_without_path():
    assert parse("dist", "--fallback").history_api_fallback is True
    assert parse("dist", "--fallback", "/fallback.html").history_api_fallback == "/fallback.html"


def test_tls_flags():
    options = parse("--cert", "cert.pem", "--key", "key.pem")
    assert options.https.cert == "cert.pem"
    assert options.https.key == "key.pem"
    assert options.protocol == "https"


def test_bad_header_fails(capsys):
    assert main(["--header", "no-separator"]) == 1
    assert "expected KEY:VALUE" in capsys.readouterr().err


def test_key_without_cert_fails(capsys):
    assert main(["--key", "key.pem"]) == 1
    assert "--cert" in capsys.readouterr().err


def test_port_in_use_fails(capsys):
    with socket.socket() as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        port = blocker.getsockname()[1]
        assert main(["--host", "127.0.0.1", "--port", str(port), "--quiet"]) == 1
    assert "Cannot listen on" in capsys.readouterr().err
