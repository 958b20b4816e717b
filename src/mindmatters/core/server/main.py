"""MindMatters server entry point: ``python -m mindmatters.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from mindmatters.core.config.settings import Settings, get_settings
from mindmatters.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def startup_summary(settings: Settings) -> str:
    """One-line description of the focus cycle and storage mode for the start log."""
    cycle = (
        f"focus {settings.focus_work_seconds // 60}m work, "
        f"{settings.focus_short_break_seconds // 60}m short break, "
        f"{settings.focus_long_break_seconds // 60}m long break "
        f"every {settings.focus_long_break_interval} sessions"
    )
    instruments = settings.instrument_dir or "bundled"
    if settings.encryption_key:
        storage = f"encrypted store at {settings.db_path}"
    else:
        storage = "no persistence (ENCRYPTION_KEY unset)"
    return f"{cycle}; instruments: {instruments}; {storage}"


def run() -> None:
    """Start the MindMatters MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.mindmatters_log_level.upper(), logging.INFO)
    )

    logger = logging.getLogger(__name__)
    if not settings.mindmatters_allow_insecure_bind and not _is_loopback_host(
        settings.mindmatters_host
    ):
        raise RuntimeError(
            "Refusing to bind the MindMatters server to a non-loopback host without an "
            "auth layer. Set MINDMATTERS_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting MindMatters wellness server on %s:%d",
        settings.mindmatters_host,
        settings.mindmatters_port,
    )
    logger.info("Configuration: %s", startup_summary(settings))

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.mindmatters_host,
        port=settings.mindmatters_port,
    )


if __name__ == "__main__":
    run()
