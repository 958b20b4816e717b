"""Instrument loader: reads questionnaire definitions from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from mindmatters.domains.wellness.domain_logic.assessment_models import (
    Instrument,
    Severity,
    SeverityBand,
)
from mindmatters.domains.wellness.domain_logic.instrument_registry import InstrumentRegistry

logger = logging.getLogger(__name__)

# Bundled definitions live under src/mindmatters/domains/wellness/instruments/
BUNDLED_INSTRUMENT_DIR = Path(__file__).resolve().parent.parent / "instruments"


def load_instrument_directory(directory: str | Path, registry: InstrumentRegistry) -> int:
    """Load all YAML instrument definitions in a directory.

    Files are read in name order, which fixes the scoring order of the
    ``combined`` assessment. Files starting with underscore are skipped.
    Returns the number of instruments loaded.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Instrument directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.glob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            instrument = load_instrument_file(path)
            registry.register(instrument)
            count += 1
            logger.info("Loaded instrument: %s (%d items)", instrument.id, len(instrument.item_ids))
        except Exception:
            logger.exception("Failed to load instrument from %s", path)
    return count


def load_instrument_file(path: Path) -> Instrument:
    """Parse a YAML file into an Instrument."""
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f)
    return instrument_from_dict(data)


def instrument_from_dict(data: dict[str, Any]) -> Instrument:
    items_data = data.get("items", [])
    item_range = data.get("item_range", [0, 3])

    return Instrument(
        id=data["id"],
        display_name=data["display_name"],
        description=data.get("description", "").strip(),
        item_ids=tuple(item["id"] for item in items_data),
        questions={item["id"]: item.get("text", "") for item in items_data},
        min_item_value=int(item_range[0]),
        max_item_value=int(item_range[1]),
        bands=tuple(
            SeverityBand(lower_bound=int(band["from"]), severity=Severity(band["severity"]))
            for band in data.get("bands", [])
        ),
    )


def build_default_registry(directory: str | Path | None = None) -> InstrumentRegistry:
    """Create a registry filled from ``directory`` or the bundled definitions."""
    registry = InstrumentRegistry()
    load_instrument_directory(directory or BUNDLED_INSTRUMENT_DIR, registry)
    return registry
