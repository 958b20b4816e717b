"""Shared test fixtures for MindMatters tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("INSTRUMENT_DIR", "")
    monkeypatch.setenv("FOCUS_WORK_SECONDS", "1500")
    monkeypatch.setenv("FOCUS_SHORT_BREAK_SECONDS", "300")
    monkeypatch.setenv("FOCUS_LONG_BREAK_SECONDS", "900")
    monkeypatch.setenv("FOCUS_LONG_BREAK_INTERVAL", "4")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from mindmatters.domains.wellness.domain_logic.assessment_models import (  # noqa: E402
    Instrument,
    Severity,
    SeverityBand,
)
from mindmatters.domains.wellness.domain_logic.assessment_scoring import (  # noqa: E402
    AssessmentScorer,
)
from mindmatters.domains.wellness.domain_logic.instrument_loader import (  # noqa: E402
    build_default_registry,
)
from mindmatters.domains.wellness.domain_logic.instrument_registry import (  # noqa: E402
    InstrumentRegistry,
)

FIVE_BANDS = (
    SeverityBand(0, Severity.MINIMAL),
    SeverityBand(5, Severity.MILD),
    SeverityBand(10, Severity.MODERATE),
    SeverityBand(15, Severity.MODERATELY_SEVERE),
    SeverityBand(20, Severity.SEVERE),
)


def make_test_instrument(
    id: str = "test",
    item_count: int = 3,
    bands: tuple[SeverityBand, ...] = FIVE_BANDS,
    max_item_value: int = 3,
) -> Instrument:
    """Create a test instrument with items ``q1..qN`` (prefixed unless id is 'test')."""
    prefix = "q" if id == "test" else f"{id}_"
    return Instrument(
        id=id,
        display_name=f"Test: {id}",
        item_ids=tuple(f"{prefix}{n}" for n in range(1, item_count + 1)),
        bands=bands,
        max_item_value=max_item_value,
    )


# ---------------------------------------------------------------------------
# Instruments
# ---------------------------------------------------------------------------

@pytest.fixture
def bundled_registry() -> InstrumentRegistry:
    """Registry with the bundled PHQ-9, GAD-7 and GHQ-12 definitions."""
    return build_default_registry()


@pytest.fixture
def scorer(bundled_registry: InstrumentRegistry) -> AssessmentScorer:
    return AssessmentScorer(bundled_registry.all())


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def wellness_db():
    """Create an in-memory WellnessDatabase for testing."""
    from mindmatters.core.storage.database import WellnessDatabase

    db = WellnessDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from mindmatters.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def wellness_repository(wellness_db, field_encryptor):
    """Create a WellnessRepository backed by in-memory SQLite."""
    from mindmatters.core.storage.repository import WellnessRepository

    return WellnessRepository(wellness_db, field_encryptor)


@pytest.fixture
def three_item_instrument() -> Instrument:
    """3-item instrument (q1..q3, values 0-3) with bands at 5/10/15/20."""
    return make_test_instrument()


@pytest.fixture
def four_band_instrument() -> Instrument:
    """7-item instrument (anx_1..anx_7) with GAD-style bands at 5/10/15."""
    return make_test_instrument(
        id="anx",
        item_count=7,
        bands=(
            SeverityBand(0, Severity.MINIMAL),
            SeverityBand(5, Severity.MILD),
            SeverityBand(10, Severity.MODERATE),
            SeverityBand(15, Severity.SEVERE),
        ),
    )


@pytest.fixture
def toy_scorer(three_item_instrument, four_band_instrument) -> AssessmentScorer:
    """Scorer over the 3-item instrument followed by the 4-band one."""
    return AssessmentScorer([three_item_instrument, four_band_instrument])
