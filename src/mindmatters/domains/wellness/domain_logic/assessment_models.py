"""Assessment instruments, severity scale, and scoring result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


# ---------------------------------------------------------------------------
# Ordered scales
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    """Severity bands, lowest first. Comparison follows declaration order."""

    MINIMAL = "minimal"
    MILD = "mild"
    MODERATE = "moderate"
    MODERATELY_SEVERE = "moderately-severe"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = list(Severity)

# Top two bands of the scale -> high risk; the middle band -> medium risk.
HIGH_RISK_SEVERITIES = frozenset({Severity.MODERATELY_SEVERE, Severity.SEVERE})
MEDIUM_RISK_SEVERITIES = frozenset({Severity.MODERATE})


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


COMBINED = "combined"


# ---------------------------------------------------------------------------
# Instrument definition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SeverityBand:
    """A score range starting at ``lower_bound`` (inclusive)."""

    lower_bound: int
    severity: Severity


@dataclass(frozen=True)
class Instrument:
    """A questionnaire: its item ids and fixed severity thresholds."""

    id: str
    display_name: str
    item_ids: tuple[str, ...]
    bands: tuple[SeverityBand, ...]
    min_item_value: int = 0
    max_item_value: int = 3
    description: str = ""
    questions: dict[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not self.item_ids:
            raise ValueError(f"Instrument {self.id!r} has no items")
        if len(set(self.item_ids)) != len(self.item_ids):
            raise ValueError(f"Instrument {self.id!r} has duplicate item ids")
        if not self.bands:
            raise ValueError(f"Instrument {self.id!r} has no severity bands")
        if self.min_item_value > self.max_item_value:
            raise ValueError(f"Instrument {self.id!r} has an empty item value range")
        for lower, upper in zip(self.bands, self.bands[1:]):
            if upper.lower_bound <= lower.lower_bound:
                raise ValueError(
                    f"Instrument {self.id!r}: band lower bounds must strictly increase"
                )
            if upper.severity.rank <= lower.severity.rank:
                raise ValueError(
                    f"Instrument {self.id!r}: band severities must strictly increase"
                )

    @property
    def max_score(self) -> int:
        return self.max_item_value * len(self.item_ids)

    @property
    def follow_up_severity(self) -> Severity:
        """Second-highest band of this instrument (the only band if there is one)."""
        if len(self.bands) < 2:
            return self.bands[0].severity
        return self.bands[-2].severity

    def classify(self, score: int) -> Severity:
        """Return the highest band whose lower bound is ``<= score``."""
        severity = self.bands[0].severity
        for band in self.bands:
            if band.lower_bound <= score:
                severity = band.severity
            else:
                break
        return severity

    def requires_follow_up(self, severity: Severity) -> bool:
        return severity.rank >= self.follow_up_severity.rank

    def answered_items(self, responses: Mapping[str, int]) -> list[str]:
        """Item ids of this instrument present in ``responses``, in item order."""
        return [item for item in self.item_ids if item in responses]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "description": self.description,
            "item_ids": list(self.item_ids),
            "item_range": [self.min_item_value, self.max_item_value],
            "max_score": self.max_score,
            "bands": [
                {"lower_bound": b.lower_bound, "severity": b.severity.value}
                for b in self.bands
            ],
            "follow_up_at": self.follow_up_severity.value,
            "questions": dict(self.questions),
        }


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssessmentResult:
    """Score of a single instrument."""

    instrument: str
    raw_score: int
    severity: Severity
    requires_follow_up: bool
    items_answered: int
    max_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "instrument": self.instrument,
            "raw_score": self.raw_score,
            "severity": self.severity.value,
            "requires_follow_up": self.requires_follow_up,
            "items_answered": self.items_answered,
            "max_score": self.max_score,
        }


@dataclass(frozen=True)
class AggregateAssessment:
    """All instrument scores of one response set plus the overall risk signal."""

    scores: tuple[AssessmentResult, ...]
    risk_level: RiskLevel
    requires_follow_up: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "scores": [s.to_dict() for s in self.scores],
            "risk_level": self.risk_level.value,
            "requires_follow_up": self.requires_follow_up,
        }
