"""MCP tools for questionnaire scoring and assessment history."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from mindmatters.core.storage.repository import WellnessRepository

from mindmatters.core.storage.models import StoredAssessment
from mindmatters.domains.wellness.domain_logic.assessment_models import COMBINED
from mindmatters.domains.wellness.domain_logic.assessment_scoring import (
    AssessmentInputError,
    AssessmentScorer,
    validate_responses,
)
from mindmatters.domains.wellness.domain_logic.wellness_analytics import assessment_trend

logger = logging.getLogger(__name__)

FOLLOW_UP_MESSAGE = (
    "Some of your answers suggest it could help to talk with a counselor or "
    "another qualified professional. This screening is not a diagnosis."
)


def register_assessment_tools(
    mcp: FastMCP,
    scorer: AssessmentScorer,
    repository: WellnessRepository | None = None,
) -> None:
    """Register assessment tools. History tools need storage."""

    @mcp.tool
    async def list_instruments(ctx: Context) -> str:
        """List the available questionnaires with their items and severity bands."""
        return json.dumps({
            "status": "ok",
            "instruments": [i.to_dict() for i in scorer.instruments],
            "combined": COMBINED,
        }, indent=2)

    @mcp.tool
    async def score_assessment(
        ctx: Context,
        responses: dict[str, Any],
        instrument: str = COMBINED,
        save: bool = True,
    ) -> str:
        """Score questionnaire responses into severities and an overall risk level.

        Args:
            responses: Mapping of item id (e.g. 'phq9_1') to the chosen answer value.
            instrument: An instrument id, or 'combined' to score every instrument answered.
            save: Store the result in the wellness store when storage is enabled.
        """
        try:
            selected = scorer.select(instrument)
            cleaned = validate_responses(responses, selected)
        except AssessmentInputError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        aggregate = scorer.score(cleaned, instrument)
        payload: dict[str, Any] = {"status": "ok", "assessment_type": instrument}
        payload.update(aggregate.to_dict())
        if aggregate.requires_follow_up:
            payload["message"] = FOLLOW_UP_MESSAGE

        if not aggregate.scores:
            payload["status"] = "no_scores"
            payload["message"] = "None of the responses belong to the selected instrument."
        elif save and repository is not None:
            payload["assessment_id"] = repository.save_assessment(
                StoredAssessment(
                    id="",
                    assessment_type=instrument,
                    responses=cleaned,
                    scores=[s.to_dict() for s in aggregate.scores],
                    risk_level=aggregate.risk_level.value,
                    requires_followup=aggregate.requires_follow_up,
                )
            )

        logger.info(
            "Scored %s assessment: %d instrument(s), risk=%s",
            instrument,
            len(aggregate.scores),
            aggregate.risk_level.value,
        )
        return json.dumps(payload)

    if repository is None:
        return

    @mcp.tool
    async def assessment_history(
        ctx: Context,
        assessment_type: str = "",
        limit: int = 10,
    ) -> str:
        """List stored assessment results, newest first.

        Args:
            assessment_type: Optional filter (an instrument id or 'combined').
            limit: Maximum number of results.
        """
        stored = repository.get_assessments(assessment_type=assessment_type or None, limit=limit)
        return json.dumps({
            "status": "ok",
            "count": len(stored),
            "assessments": [
                {
                    "assessment_id": a.id,
                    "assessment_type": a.assessment_type,
                    "scores": a.scores,
                    "risk_level": a.risk_level,
                    "requires_followup": a.requires_followup,
                    "completed_at": a.completed_at,
                }
                for a in stored
            ],
        }, indent=2)

    @mcp.tool
    async def assessment_trend_summary(ctx: Context) -> str:
        """Compare the risk level of your two most recent assessments."""
        trend = assessment_trend(repository.get_assessments(limit=5))
        if trend is None:
            return json.dumps({
                "status": "insufficient_data",
                "message": "At least 2 stored assessments are needed for a trend.",
            })
        return json.dumps({"status": "ok", **trend})
