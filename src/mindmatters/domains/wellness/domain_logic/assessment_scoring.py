"""Assessment scoring: questionnaire responses -> severities and a risk level.

Scoring is pure. Input validation lives in :func:`validate_responses`, which
hosts call at the boundary before handing responses to the scorer.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from mindmatters.domains.wellness.domain_logic.assessment_models import (
    COMBINED,
    HIGH_RISK_SEVERITIES,
    MEDIUM_RISK_SEVERITIES,
    AggregateAssessment,
    AssessmentResult,
    Instrument,
    RiskLevel,
)

logger = logging.getLogger(__name__)


class AssessmentInputError(ValueError):
    """Raised when a response set or instrument selection is malformed."""


def validate_responses(
    raw: Mapping[str, Any],
    instruments: Iterable[Instrument],
) -> dict[str, int]:
    """Check a raw response mapping and return it as ``{item_id: int}``.

    Values must be real integers (booleans and numeric strings are rejected).
    Values for known items must lie within that instrument's item range.
    Unknown item ids are passed through untouched; the scorer ignores them.

    Raises:
        AssessmentInputError: On the first invalid entry.
    """
    if not isinstance(raw, Mapping):
        raise AssessmentInputError("responses must be a mapping of item id to integer")

    ranges: dict[str, tuple[int, int]] = {}
    for instrument in instruments:
        for item in instrument.item_ids:
            ranges[item] = (instrument.min_item_value, instrument.max_item_value)

    cleaned: dict[str, int] = {}
    for item_id, value in raw.items():
        if not isinstance(item_id, str):
            raise AssessmentInputError(f"Item id must be a string, got {item_id!r}")
        if isinstance(value, bool) or not isinstance(value, int):
            raise AssessmentInputError(
                f"Response for {item_id!r} must be an integer, got {value!r}"
            )
        if item_id in ranges:
            low, high = ranges[item_id]
            if not low <= value <= high:
                raise AssessmentInputError(
                    f"Response for {item_id!r} must be between {low} and {high}, got {value}"
                )
        cleaned[item_id] = value
    return cleaned


def aggregate_risk(results: Iterable[AssessmentResult]) -> RiskLevel:
    severities = {r.severity for r in results}
    if severities & HIGH_RISK_SEVERITIES:
        return RiskLevel.HIGH
    if severities & MEDIUM_RISK_SEVERITIES:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class AssessmentScorer:
    """Scores response sets against a fixed, ordered set of instruments.

    Usage::

        scorer = AssessmentScorer(registry.all())
        aggregate = scorer.score({"phq9_1": 2, "gad7_3": 1})
        aggregate.risk_level  # RiskLevel.LOW
    """

    def __init__(self, instruments: Sequence[Instrument]) -> None:
        ids = [i.id for i in instruments]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate instrument ids: {ids}")
        if COMBINED in ids:
            raise ValueError(f"{COMBINED!r} is reserved and cannot be an instrument id")
        self._instruments = list(instruments)

    @property
    def instruments(self) -> list[Instrument]:
        return list(self._instruments)

    def instrument_ids(self) -> list[str]:
        return [i.id for i in self._instruments]

    def select(self, instrument: str = COMBINED) -> list[Instrument]:
        """Instruments evaluated for ``instrument`` (all of them for ``combined``).

        Raises:
            AssessmentInputError: If the id is neither known nor ``combined``.
        """
        if instrument == COMBINED:
            return list(self._instruments)
        for candidate in self._instruments:
            if candidate.id == instrument:
                return [candidate]
        raise AssessmentInputError(
            f"Unknown instrument {instrument!r}. Valid: {self.instrument_ids() + [COMBINED]}"
        )

    def score_instrument(
        self, instrument: Instrument, responses: Mapping[str, int]
    ) -> AssessmentResult | None:
        """Score one instrument; ``None`` when none of its items were answered."""
        answered = instrument.answered_items(responses)
        if not answered:
            return None
        raw_score = sum(responses[item] for item in answered)
        severity = instrument.classify(raw_score)
        return AssessmentResult(
            instrument=instrument.id,
            raw_score=raw_score,
            severity=severity,
            requires_follow_up=instrument.requires_follow_up(severity),
            items_answered=len(answered),
            max_score=instrument.max_score,
        )

    def score(
        self,
        responses: Mapping[str, int],
        instrument: str = COMBINED,
    ) -> AggregateAssessment:
        """Score every selected instrument that has at least one answered item."""
        results: list[AssessmentResult] = []
        for candidate in self.select(instrument):
            result = self.score_instrument(candidate, responses)
            if result is None:
                logger.debug("No answered items for %s; skipping", candidate.id)
                continue
            results.append(result)

        return AggregateAssessment(
            scores=tuple(results),
            risk_level=aggregate_risk(results),
            requires_follow_up=any(r.requires_follow_up for r in results),
        )
