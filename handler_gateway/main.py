"""Process entrypoint: validate handlers, then serve the gateway with uvicorn."""

from __future__ import annotations

import logging
import os
import sys

import uvicorn

from .app import create_app
from .config import Settings, load_settings
from .validate_env import validate_env_or_raise

logger = logging.getLogger("handler-gateway")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _log_startup_config(settings: Settings) -> None:
    logger.info(
        "Startup config: INTERNAL_AUTH_TOKEN=%s CHECK_HANDLER=%s IDENTIFY_DUPLICATES_HANDLER=%s "
        "MAX_BODY_BYTES=%s",
        "set" if settings.auth_token else "missing",
        settings.check_handler,
        settings.identify_duplicates_handler,
        settings.max_body_bytes,
    )


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    # Handler modules live next to the deployment, not inside this package.
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    _log_startup_config(settings)

    # Fail fast: an unresolvable handler raises StartupError before the port is bound.
    check, identify = validate_env_or_raise(settings)
    app = create_app(settings, check, identify)

    logger.info(f"Listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
