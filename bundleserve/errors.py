"""Exceptions raised by the dev server."""


class ServeError(Exception):
    """Base class for errors that should stop the server from starting."""


class ConfigError(ServeError, ValueError):
    pass


class BindError(ServeError):
    """The listener could not be created (port in use, bad TLS material)."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Cannot listen on {address}: {reason}")
        self.address = address
        self.reason = reason
