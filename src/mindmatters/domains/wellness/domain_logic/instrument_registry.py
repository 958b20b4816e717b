"""Instrument registry: in-memory index of loaded assessment instruments."""

from __future__ import annotations

import logging

from mindmatters.domains.wellness.domain_logic.assessment_models import COMBINED, Instrument

logger = logging.getLogger(__name__)


class InstrumentRegistry:
    """Ordered registry of instrument definitions, keyed by id and item id."""

    def __init__(self) -> None:
        self._instruments: dict[str, Instrument] = {}
        self._by_item: dict[str, str] = {}

    def register(self, instrument: Instrument) -> None:
        """Add an instrument. Ids and item ids must be unique across the registry."""
        if instrument.id == COMBINED:
            raise ValueError(f"{COMBINED!r} is reserved and cannot be an instrument id")
        if instrument.id in self._instruments:
            raise ValueError(f"Duplicate instrument id registered: {instrument.id!r}")
        for item in instrument.item_ids:
            owner = self._by_item.get(item)
            if owner is not None:
                raise ValueError(
                    f"Item {item!r} of {instrument.id!r} already belongs to {owner!r}"
                )

        self._instruments[instrument.id] = instrument
        for item in instrument.item_ids:
            self._by_item[item] = instrument.id

    def get(self, instrument_id: str) -> Instrument | None:
        return self._instruments.get(instrument_id)

    def instrument_for_item(self, item_id: str) -> Instrument | None:
        owner = self._by_item.get(item_id)
        return self._instruments[owner] if owner is not None else None

    def all(self) -> list[Instrument]:
        """All instruments in registration order."""
        return list(self._instruments.values())

    def __len__(self) -> int:
        return len(self._instruments)

    def __contains__(self, instrument_id: object) -> bool:
        return instrument_id in self._instruments
