"""
FastAPI gateway exposing the check and identify-duplicates handlers over HTTP.

Each authenticated route runs the same pipeline:
parse body -> authenticate -> coerce leaves to strings -> invoke handler ->
write the handler's statusCode/body back. Failures become a single JSON
response; the process keeps serving.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .adapter import HandlerAdapter, RequestEnvelope
from .auth import AuthResult, authenticate
from .coerce import coerce
from .config import Settings
from .errors import (
    AuthenticationError,
    ConfigurationError,
    GatewayError,
    HandlerError,
    MalformedInputError,
    PayloadTooLargeError,
)

logger = logging.getLogger("handler-gateway")

CHECK_ROUTE = "/v1/check"
IDENTIFY_DUPLICATES_ROUTE = "/v1/identify-duplicates"

# Deeper bodies are rejected at parse time with 400.
MAX_JSON_DEPTH = 256

HOP_BY_HOP_HEADERS: set[str] = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


def _is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON literal: {name}")


def _json_depth(value: Any) -> int:
    deepest = 0
    stack: list[tuple[Any, int]] = [(value, 1)]
    while stack:
        node, depth = stack.pop()
        if not isinstance(node, (dict, list)):
            continue
        deepest = max(deepest, depth)
        children = node.values() if isinstance(node, dict) else node
        stack.extend((child, depth + 1) for child in children)
    return deepest


async def _read_body(request: Request, limit: int) -> bytes:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(limit)

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise PayloadTooLargeError(limit)
        chunks.append(chunk)
    return b"".join(chunks)


async def parse_json_body(request: Request, limit: int) -> Any:
    """
    Read and decode the request body.

    Non-JSON content types and empty bodies yield {}. Only objects and arrays
    are accepted at the top level, nested at most MAX_JSON_DEPTH levels.
    """
    raw = await _read_body(request, limit)
    if not raw or not _is_json_content_type(request.headers.get("content-type", "")):
        return {}

    try:
        payload = json.loads(raw, parse_constant=_reject_constant)
    except RecursionError as e:
        raise MalformedInputError("JSON body nested too deeply") from e
    except ValueError as e:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors.
        raise MalformedInputError() from e

    if not isinstance(payload, (dict, list)):
        raise MalformedInputError()
    if _json_depth(payload) > MAX_JSON_DEPTH:
        raise MalformedInputError("JSON body nested too deeply")
    return payload


def _collect_headers(request: Request) -> dict[str, str]:
    headers: dict[str, str] = {}
    for k, v in request.headers.items():
        lk = k.lower()
        headers[lk] = f"{headers[lk]}, {v}" if lk in headers else v
    return headers


def _filter_response_headers(headers: dict[str, str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for k, v in headers.items():
        lk = k.lower()
        if lk in HOP_BY_HOP_HEADERS:
            continue
        # The body is re-encoded here, so the framework owns the length.
        if lk == "content-length":
            continue
        out[k] = v
    return out


def require_auth(request: Request, settings: Settings) -> None:
    result = authenticate(request.headers.get("authorization"), settings.auth_token)
    if result is AuthResult.MISSING_SERVER_SECRET:
        logger.error("INTERNAL_AUTH_TOKEN is not configured; rejecting %s", request.url.path)
        raise ConfigurationError("INTERNAL_AUTH_TOKEN")
    if result is AuthResult.UNAUTHORIZED:
        logger.warning("Unauthorized request to %s", request.url.path)
        raise AuthenticationError()


async def dispatch(request: Request, adapter: HandlerAdapter, settings: Settings) -> Response:
    """Run one authenticated route end to end."""
    try:
        body = await parse_json_body(request, settings.max_body_bytes)
    except GatewayError:
        raise
    except Exception as e:
        logger.exception("Failed to read request body on %s", request.url.path)
        raise HandlerError(str(e)) from e
    require_auth(request, settings)

    try:
        envelope = RequestEnvelope(
            body=json.dumps(coerce(body), ensure_ascii=False, separators=(",", ":")),
            headers=_collect_headers(request),
        )
        out = await adapter.invoke(envelope)
    except GatewayError:
        raise
    except Exception as e:
        logger.exception(f"{adapter.name} handler failed")
        raise HandlerError(str(e)) from e

    return Response(
        content=out.body,
        status_code=out.status_code,
        headers=_filter_response_headers(out.headers),
    )


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if isinstance(exc, HandlerError):
        logger.error("Handler error on %s: %s", request.url.path, exc.message)
    elif isinstance(exc, MalformedInputError):
        logger.info("Rejected body on %s: %s", request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def create_app(
    settings: Settings,
    check_handler: HandlerAdapter,
    identify_duplicates_handler: HandlerAdapter,
) -> FastAPI:
    app = FastAPI(title="Handler Gateway", version="1.0")
    app.state.settings = settings
    app.add_exception_handler(GatewayError, _gateway_error_handler)

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        return "ok"

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "handler-gateway is running"

    @app.post(CHECK_ROUTE)
    async def check(request: Request) -> Response:
        return await dispatch(request, check_handler, settings)

    @app.post(IDENTIFY_DUPLICATES_ROUTE)
    async def identify_duplicates(request: Request) -> Response:
        return await dispatch(request, identify_duplicates_handler, settings)

    return app
