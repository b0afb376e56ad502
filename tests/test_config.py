import pytest

from bundleserve import ConfigError, HttpsOptions, ServeOptions


def test_defaults():
    options = ServeOptions()
    assert options.content_base == (".",)
    assert options.port == 10001
    assert options.host == "localhost"
    assert options.headers == {}
    assert options.default_type == "text/plain"
    assert options.verbose is True
    assert options.open is False
    assert options.history_api_fallback is None
    assert options.protocol == "http"


def test_single_directory_shorthand():
    assert ServeOptions.from_value("dist").content_base == ("dist",)


def test_directory_list_shorthand_keeps_order():
    assert ServeOptions.from_value(["dist", "static", "public"]).content_base == ("dist", "static", "public")


@pytest.mark.parametrize("value", [None, "", [], [""]])
def test_empty_content_base_is_working_directory(value):
    assert ServeOptions(content_base=value).content_base == (".",)


def test_camel_case_mapping():
    calls = []
    options = ServeOptions.from_value(
        {
            "contentBase": [".", "base1", "base2"],
            "port": "3000",
            "openPage": "/frames.html",
            "historyApiFallback": "fallback.html",
            "defaultType": "application/octet-stream",
            "mimeTypes": {"md": "text/markdown"},
            "onListening": calls.append,
            "open": True,
        }
    )
    assert options.content_base == (".", "base1", "base2")
    assert options.port == 3000
    assert options.open_page == "/frames.html"
    assert options.history_api_fallback == "/fallback.html"
    assert options.default_type == "application/octet-stream"
    assert options.mime_types == {".md": "text/markdown"}
    assert options.on_listening == calls.append
    assert options.open is True


def test_unknown_option_rejected():
    with pytest.raises(ConfigError, match="Unknown option: colour"):
        ServeOptions.from_value({"colour": "green"})


def test_alias_and_name_together_rejected():
    with pytest.raises(ConfigError, match="given twice"):
        ServeOptions.from_value({"openPage": "/a", "open_page": "/b"})


@pytest.mark.parametrize("port", ["http", -1, 70000])
def test_bad_port_rejected(port):
    with pytest.raises(ConfigError):
        ServeOptions(port=port)


def test_bad_fallback_rejected():
    with pytest.raises(ConfigError):
        ServeOptions(history_api_fallback=["/index.html"])


def test_https_mapping():
    options = ServeOptions(https={"certFile": "cert.pem", "keyFile": "key.pem"})
    assert options.https == HttpsOptions(cert="cert.pem", key="key.pem")
    assert options.protocol == "https"


def test_https_needs_certificate():
    with pytest.raises(ConfigError, match="certificate"):
        ServeOptions(https={"key": "key.pem"})


def test_missing_listening_callback_is_a_no_op():
    options = ServeOptions(on_listening=None)
    assert options.on_listening({"port": 1}) is None


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        ServeOptions.from_value(42)
