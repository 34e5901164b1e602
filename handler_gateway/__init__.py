"""HTTP gateway for serverless-style check and identify-duplicates handlers."""

from .adapter import HandlerAdapter, HandlerResult, RequestEnvelope, load_handler, resolve_handler
from .app import create_app
from .auth import AuthResult, authenticate
from .coerce import coerce
from .config import Settings, load_settings

__all__ = [
    "AuthResult",
    "HandlerAdapter",
    "HandlerResult",
    "RequestEnvelope",
    "Settings",
    "authenticate",
    "coerce",
    "create_app",
    "load_handler",
    "load_settings",
    "resolve_handler",
]
