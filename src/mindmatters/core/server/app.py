"""MindMatters wellness MCP server: application factory.

This module provides:
- create_app() for testability (tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from mindmatters.core.config.settings import get_settings
from mindmatters.core.storage.database import WellnessDatabase
from mindmatters.core.storage.encryption import EncryptionError, FieldEncryptor
from mindmatters.core.storage.repository import WellnessRepository
from mindmatters.domains.wellness.domain_logic.assessment_scoring import AssessmentScorer
from mindmatters.domains.wellness.domain_logic.focus_cycle import FocusDurations
from mindmatters.domains.wellness.domain_logic.instrument_loader import build_default_registry
from mindmatters.domains.wellness.domain_logic.instrument_registry import InstrumentRegistry
from mindmatters.domains.wellness.tools.assessment_tools import register_assessment_tools
from mindmatters.domains.wellness.tools.focus_tools import register_focus_tools

logger = logging.getLogger(__name__)

SERVER_VERSION = "0.1.0"


def create_app(
    *,
    repository_override: WellnessRepository | None = None,
    registry_override: InstrumentRegistry | None = None,
) -> FastMCP:
    """Create and configure the MindMatters MCP server.

    1. Creates the FastMCP server instance
    2. Loads assessment instruments and builds the scorer
    3. Initializes the encrypted wellness store (when a key is configured)
    4. Registers focus, assessment and wellness tools
    """
    settings = get_settings()

    server = FastMCP(
        "MindMatters Wellness",
        instructions=(
            "Student mental-wellness companion. Provides a pomodoro focus timer, "
            "validated screening questionnaires with severity scoring, and "
            "mood, journal and activity tracking with simple trend summaries."
        ),
    )

    # --- Instruments ---
    if registry_override is not None:
        registry = registry_override
    else:
        registry = build_default_registry(settings.instrument_dir or None)
    logger.info("Loaded %d assessment instruments", len(registry))
    scorer = AssessmentScorer(registry.all())

    # --- Focus cycle configuration ---
    durations = FocusDurations(
        work=settings.focus_work_seconds,
        short_break=settings.focus_short_break_seconds,
        long_break=settings.focus_long_break_seconds,
        long_break_interval=settings.focus_long_break_interval,
    )

    # --- Encrypted storage ---
    repository: WellnessRepository | None = None
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            db = WellnessDatabase(settings.db_path)
            db.initialize()
            repository = WellnessRepository(db, encryptor)
            logger.info(
                "Wellness store initialized: %s (schema v%d)",
                settings.db_path,
                db.get_schema_version(),
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence; data will not be stored")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured; running without persistence. "
            "Set ENCRYPTION_KEY to enable the wellness store."
        )

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": "MindMatters Wellness",
            "version": SERVER_VERSION,
            "instruments_loaded": len(registry),
            "storage_enabled": repository is not None,
        }
        if repository is not None:
            status["records_stored"] = repository.count_records()
        return status

    register_focus_tools(server, durations, repository)
    logger.info("Focus timer tools registered")

    register_assessment_tools(server, scorer, repository)
    logger.info("Assessment tools registered")

    if repository is not None:
        from mindmatters.domains.wellness.domain_logic.wellness_analytics import WellnessAnalyzer
        from mindmatters.domains.wellness.tools.wellness_tools import register_wellness_tools

        register_wellness_tools(server, repository, WellnessAnalyzer(repository))
        logger.info("Mood, journal and activity tools registered")

    return server


# Lazy module-level instance for FastMCP discovery; tests import create_app only.
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
