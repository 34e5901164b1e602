from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from handler_gateway.adapter import HandlerAdapter
from handler_gateway.app import create_app
from handler_gateway.config import Settings

TOKEN = "s3cret-token-value"


class RecordingHandler:
    """Handler double that remembers every event it was called with."""

    def __init__(self, response: Any = None, error: Exception | None = None):
        self.calls: list[dict[str, Any]] = []
        self.response = response if response is not None else {"statusCode": 200, "body": "done"}
        self.error = error

    def __call__(self, event: dict[str, Any], context: Any) -> Any:
        self.calls.append(event)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings() -> Settings:
    return Settings(auth_token=TOKEN)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    def _make(
        settings: Settings,
        check: Callable[..., Any] | None = None,
        identify: Callable[..., Any] | None = None,
    ) -> TestClient:
        app = create_app(
            settings,
            HandlerAdapter(check or RecordingHandler(), "check"),
            HandlerAdapter(identify or RecordingHandler(), "identify-duplicates"),
        )
        return TestClient(app)

    return _make
