"""Console entry point (``mindscreen-server`` or ``python -m mindscreen.core.server.main``)."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from mindscreen.core.config.settings import Settings, get_settings
from mindscreen.core.server.app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _is_loopback_host(host: str) -> bool:
    if host.lower() == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_bind(settings: Settings) -> None:
    if _is_loopback_host(settings.mindscreen_host) or settings.mindscreen_allow_insecure_bind:
        return
    raise RuntimeError(
        f"Refusing to bind the assessment server to non-loopback host {settings.mindscreen_host!r}. "
        "Set MINDSCREEN_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.mindscreen_log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    _check_bind(settings)

    host, port = settings.mindscreen_host, settings.mindscreen_port
    logger.info("Mindscreen listening on %s:%d (streamable HTTP)", host, port)
    create_app().run(transport="streamable-http", host=host, port=port)


if __name__ == "__main__":
    run()
