"""
Error taxonomy for the gateway.

Every request-time failure is a GatewayError carrying the HTTP status it maps
to, so the route boundary can render exactly one JSON response for it.
StartupError is the exception: it is raised while wiring the process and never
reaches a client.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for failures that end a request with a JSON error body."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ConfigurationError(GatewayError):
    """Server-side misconfiguration (e.g. the shared secret is not set)."""

    def __init__(self, config_name: str):
        super().__init__(f"Missing {config_name}", status_code=500)
        self.config_name = config_name


class AuthenticationError(GatewayError):
    """Missing or mismatched bearer credential. Never carries detail."""

    def __init__(self) -> None:
        super().__init__("Unauthorized", status_code=401)


class MalformedInputError(GatewayError):
    """The request body could not be accepted as JSON."""

    def __init__(self, message: str = "Malformed JSON body"):
        super().__init__(message, status_code=400)


class PayloadTooLargeError(MalformedInputError):
    def __init__(self, limit: int):
        super().__init__("Request body too large")
        self.status_code = 413
        self.limit = limit


class HandlerError(GatewayError):
    """The external handler raised or returned something unusable."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "Internal error", status_code=500)


class StartupError(RuntimeError):
    """A handler could not be resolved; the process must not serve traffic."""
