"""
Adapter between the HTTP gateway and serverless-style handlers.

A handler is anything with the shape ``handler(event, context)`` returning a
``{"statusCode": ..., "body": ...}`` dict, the same contract the platform
invokes serverless containers with. Handlers are usually plain synchronous
functions; coroutine functions are supported too.

The handler reference is resolved once at startup. Accepted shapes, tried in
order:
1) the reference itself is callable
2) ``ref.handler``
3) ``ref.default``
"""

from __future__ import annotations

import importlib
import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from fastapi.concurrency import run_in_threadpool

from .errors import HandlerError, StartupError

logger = logging.getLogger("handler-gateway.adapter")

HANDLER_ACCESSORS: tuple[str, ...] = ("handler", "default")

# 1xx codes are informational and cannot be a final response.
MIN_STATUS_CODE = 200
MAX_STATUS_CODE = 599


@dataclass(frozen=True)
class RequestEnvelope:
    body: str
    headers: Mapping[str, str]

    def to_event(self) -> dict[str, Any]:
        # Fresh dict per call; handlers are free to mutate their event.
        return {"body": self.body, "headers": dict(self.headers)}


@dataclass(frozen=True)
class HandlerResult:
    status_code: int = 200
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)


def _available_members(ref: Any) -> str:
    names = [n for n in dir(ref) if not n.startswith("_")] if ref is not None else []
    return ", ".join(names) if names else "<none>"


def resolve_handler(ref: Any, name: str) -> Callable[..., Any]:
    """Pick the first callable export of ``ref`` or raise StartupError."""
    if callable(ref):
        return ref
    for accessor in HANDLER_ACCESSORS:
        candidate = getattr(ref, accessor, None)
        if callable(candidate):
            logger.info("Resolved %s handler via .%s", name, accessor)
            return candidate
    raise StartupError(f"{name} handler export not found. Got: {_available_members(ref)}")


def load_handler(target: str, name: str) -> Callable[..., Any]:
    """
    Import and resolve a handler from ``"package.module"`` or
    ``"package.module:attribute"``.
    """
    module_name, _, attribute = target.partition(":")
    try:
        ref: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise StartupError(f"Cannot import {name} handler module {module_name!r}: {e}") from e

    if attribute:
        for part in attribute.split("."):
            try:
                ref = getattr(ref, part)
            except AttributeError as e:
                raise StartupError(f"{name} handler {target!r} has no attribute {part!r}") from e

    return resolve_handler(ref, name)


def _coerce_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    return json.dumps(body, ensure_ascii=False, default=str)


def to_handler_result(raw: Any) -> HandlerResult:
    """Read statusCode/body/headers off a handler's return value."""
    if not isinstance(raw, Mapping):
        raise HandlerError(f"Handler returned {type(raw).__name__}, expected a mapping")

    status_code = raw.get("statusCode") or 200
    try:
        status_code = int(status_code)
    except (TypeError, ValueError) as e:
        raise HandlerError(f"Handler returned invalid statusCode: {status_code!r}") from e
    if not MIN_STATUS_CODE <= status_code <= MAX_STATUS_CODE:
        raise HandlerError(f"Handler returned invalid statusCode: {status_code!r}")

    raw_headers = raw.get("headers")
    headers = (
        {str(k): str(v) for k, v in raw_headers.items()}
        if isinstance(raw_headers, Mapping)
        else {}
    )

    return HandlerResult(
        status_code=status_code,
        body=_coerce_body(raw.get("body")) if raw.get("body") else "",
        headers=headers,
    )


class HandlerAdapter:
    """Uniform async callable around one resolved handler."""

    def __init__(self, fn: Callable[..., Any], name: str):
        self.fn = fn
        self.name = name

    @classmethod
    def from_ref(cls, ref: Any, name: str) -> "HandlerAdapter":
        return cls(resolve_handler(ref, name), name)

    async def invoke(self, envelope: RequestEnvelope) -> HandlerResult:
        event = envelope.to_event()
        # No timeout: a hung handler holds its request until it returns.
        if inspect.iscoroutinefunction(self.fn):
            out = await self.fn(event, {})
        else:
            out = await run_in_threadpool(self.fn, event, {})
            if inspect.isawaitable(out):
                out = await out
        return to_handler_result(out)
