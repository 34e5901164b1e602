"""
Startup validation for the gateway.

Intent:
- Fail fast with human-readable errors when a handler cannot be imported or
  exposes no callable entrypoint.
- Make a missing INTERNAL_AUTH_TOKEN loud without refusing to start: the
  authenticated routes answer 500 until it is set.

Importable helper AND script, so:
- the server entrypoint validates before binding the port
- operators can run `python -m handler_gateway.validate_env` to debug config
"""

from __future__ import annotations

import logging
import sys
import textwrap

from .adapter import HandlerAdapter, load_handler
from .config import Settings, load_settings

logger = logging.getLogger("handler-gateway.validate")


def validate_env_or_raise(settings: Settings) -> tuple[HandlerAdapter, HandlerAdapter]:
    """
    Resolve both handlers; StartupError propagates if either is unusable.

    Returns (check, identify_duplicates) adapters ready to be mounted.
    """
    if not settings.auth_token:
        logger.warning(
            "INTERNAL_AUTH_TOKEN is not set; /v1/* routes will answer 500 until it is configured"
        )

    check = HandlerAdapter(load_handler(settings.check_handler, "check"), "check")
    identify = HandlerAdapter(
        load_handler(settings.identify_duplicates_handler, "identify-duplicates"),
        "identify-duplicates",
    )
    return check, identify


def main(argv: list[str]) -> int:
    try:
        settings = load_settings()
        validate_env_or_raise(settings)
    except Exception as e:
        msg = textwrap.dedent(
            f"""
            validate_env failed
            -------------------
            {e}
            """
        ).strip()
        print(msg, file=sys.stderr)
        return 1

    print(
        f"validate_env OK check={settings.check_handler} "
        f"identify-duplicates={settings.identify_duplicates_handler} "
        f"auth_token={'set' if settings.auth_token else 'missing'}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
