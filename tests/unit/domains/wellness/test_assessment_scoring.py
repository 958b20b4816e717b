"""Tests for assessment scoring: severities, follow-up flags and risk levels."""

from __future__ import annotations

import pytest

from mindmatters.domains.wellness.domain_logic.assessment_models import (
    Instrument,
    RiskLevel,
    Severity,
    SeverityBand,
)
from mindmatters.domains.wellness.domain_logic.assessment_scoring import (
    AssessmentInputError,
    AssessmentScorer,
    validate_responses,
)


class TestInstrument:
    def test_classify_inclusive_lower_bounds(self, three_item_instrument):
        assert three_item_instrument.classify(0) is Severity.MINIMAL
        assert three_item_instrument.classify(4) is Severity.MINIMAL
        assert three_item_instrument.classify(5) is Severity.MILD
        assert three_item_instrument.classify(9) is Severity.MILD
        assert three_item_instrument.classify(10) is Severity.MODERATE
        assert three_item_instrument.classify(20) is Severity.SEVERE

    def test_follow_up_at_second_highest_band(self, three_item_instrument, four_band_instrument):
        assert three_item_instrument.follow_up_severity is Severity.MODERATELY_SEVERE
        assert four_band_instrument.follow_up_severity is Severity.MODERATE

    def test_max_score(self, three_item_instrument):
        assert three_item_instrument.max_score == 9

    def test_bands_must_increase(self):
        with pytest.raises(ValueError, match="lower bounds"):
            Instrument(
                id="bad",
                display_name="Bad",
                item_ids=("x1",),
                bands=(SeverityBand(0, Severity.MINIMAL), SeverityBand(0, Severity.MILD)),
            )

    def test_severities_must_increase(self):
        with pytest.raises(ValueError, match="severities"):
            Instrument(
                id="bad",
                display_name="Bad",
                item_ids=("x1",),
                bands=(SeverityBand(0, Severity.MILD), SeverityBand(5, Severity.MINIMAL)),
            )

    def test_requires_items(self):
        with pytest.raises(ValueError, match="no items"):
            Instrument(id="bad", display_name="Bad", item_ids=(), bands=(SeverityBand(0, Severity.MINIMAL),))


class TestScoreSingleInstrument:
    def test_three_item_max_answers(self, three_item_instrument):
        scorer = AssessmentScorer([three_item_instrument])
        result = scorer.score({"q1": 3, "q2": 3, "q3": 3})
        assert len(result.scores) == 1
        score = result.scores[0]
        assert score.raw_score == 9
        assert score.severity is Severity.MILD
        assert score.requires_follow_up is False
        assert result.risk_level is RiskLevel.LOW
        assert result.requires_follow_up is False

    def test_unknown_items_ignored(self, three_item_instrument):
        scorer = AssessmentScorer([three_item_instrument])
        result = scorer.score({"q1": 2, "other": 3, "zzz": 99})
        assert result.scores[0].raw_score == 2
        assert result.scores[0].items_answered == 1

    def test_no_recognized_items_yields_no_entry(self, three_item_instrument):
        scorer = AssessmentScorer([three_item_instrument])
        result = scorer.score({"other": 3})
        assert result.scores == ()
        assert result.risk_level is RiskLevel.LOW
        assert result.requires_follow_up is False

    def test_empty_responses(self, toy_scorer):
        assert toy_scorer.score({}).scores == ()


class TestCombined:
    def test_results_in_instrument_order(self, toy_scorer):
        responses = {"anx_1": 1, "q1": 1}
        result = toy_scorer.score(responses)
        assert [s.instrument for s in result.scores] == ["test", "anx"]

    def test_order_stable_across_calls(self, toy_scorer):
        responses = {"anx_2": 2, "q3": 1, "anx_1": 0}
        assert toy_scorer.score(responses) == toy_scorer.score(dict(reversed(list(responses.items()))))

    def test_unanswered_instrument_skipped(self, toy_scorer):
        result = toy_scorer.score({"anx_1": 3})
        assert [s.instrument for s in result.scores] == ["anx"]

    def test_single_instrument_selection(self, toy_scorer):
        result = toy_scorer.score({"q1": 1, "anx_1": 3}, instrument="anx")
        assert [s.instrument for s in result.scores] == ["anx"]

    def test_unknown_instrument_rejected(self, toy_scorer):
        with pytest.raises(AssessmentInputError, match="Unknown instrument"):
            toy_scorer.score({"q1": 1}, instrument="nope")


class TestRiskLevel:
    def test_high_when_any_top_two_band(self, scorer):
        # PHQ-9 = 15 (moderately-severe), GAD-7 = 0 (minimal)
        responses = {f"phq9_{i}": 3 for i in range(1, 6)}
        responses.update({f"gad7_{i}": 0 for i in range(1, 8)})
        result = scorer.score(responses)
        assert result.risk_level is RiskLevel.HIGH
        assert result.requires_follow_up is True

    def test_high_on_severe(self, scorer):
        responses = {f"gad7_{i}": 3 for i in range(1, 6)}  # 15 -> severe
        result = scorer.score(responses)
        assert result.scores[0].severity is Severity.SEVERE
        assert result.risk_level is RiskLevel.HIGH

    def test_medium_on_moderate(self, scorer):
        responses = {f"phq9_{i}": 2 for i in range(1, 6)}  # 10 -> moderate
        result = scorer.score(responses)
        assert result.scores[0].severity is Severity.MODERATE
        assert result.risk_level is RiskLevel.MEDIUM
        assert result.requires_follow_up is False

    def test_low_when_mild_or_below(self, scorer):
        result = scorer.score({"phq9_1": 3, "phq9_2": 3, "gad7_1": 1})
        assert result.risk_level is RiskLevel.LOW

    def test_gad7_moderate_requires_follow_up(self, scorer):
        responses = {f"gad7_{i}": 2 for i in range(1, 6)}  # 10 -> moderate
        result = scorer.score(responses)
        assert result.scores[0].requires_follow_up is True
        assert result.requires_follow_up is True
        assert result.risk_level is RiskLevel.MEDIUM


class TestValidateResponses:
    def test_accepts_valid(self, three_item_instrument):
        assert validate_responses({"q1": 0, "q2": 3}, [three_item_instrument]) == {"q1": 0, "q2": 3}

    def test_unknown_ids_passed_through(self, three_item_instrument):
        assert validate_responses({"zzz": 42}, [three_item_instrument]) == {"zzz": 42}

    @pytest.mark.parametrize("value", ["2", 1.5, None, True, [1]])
    def test_non_integer_rejected(self, three_item_instrument, value):
        with pytest.raises(AssessmentInputError, match="must be an integer"):
            validate_responses({"q1": value}, [three_item_instrument])

    @pytest.mark.parametrize("value", [-1, 4])
    def test_out_of_range_rejected(self, three_item_instrument, value):
        with pytest.raises(AssessmentInputError, match="between 0 and 3"):
            validate_responses({"q1": value}, [three_item_instrument])

    def test_non_mapping_rejected(self, three_item_instrument):
        with pytest.raises(AssessmentInputError):
            validate_responses([("q1", 1)], [three_item_instrument])


class TestToDict:
    def test_aggregate_serializes(self, toy_scorer):
        data = toy_scorer.score({"q1": 3, "q2": 3, "q3": 3}).to_dict()
        assert data == {
            "scores": [
                {
                    "instrument": "test",
                    "raw_score": 9,
                    "severity": "mild",
                    "requires_follow_up": False,
                    "items_answered": 3,
                    "max_score": 9,
                }
            ],
            "risk_level": "low",
            "requires_follow_up": False,
        }


class TestScorerConstruction:
    def test_duplicate_ids_rejected(self, three_item_instrument):
        with pytest.raises(ValueError, match="Duplicate"):
            AssessmentScorer([three_item_instrument, three_item_instrument])
