"""Human overrides of engine recommendations.

An override is a separate annotation stored next to the AssessmentResult;
the result itself is never edited.  The engine's own recommendation stays
available for audit, and the effective recommendation is resolved on read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from lendrisk.models.risk import LoanRecommendation
from lendrisk.services.risk_engine.engine import AssessmentResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentOverride:
    original_recommendation: LoanRecommendation
    new_recommendation: LoanRecommendation
    reason: str
    reviewer: str
    overridden_at: datetime
    config_version: str
    risk_level: str = "HIGH"
    compliance_flags: tuple[str, ...] = ("MANUAL_OVERRIDE",)


def record_override(
    result: AssessmentResult,
    new_recommendation: LoanRecommendation | str,
    reason: str,
    reviewer: str,
    at: Optional[datetime] = None,
) -> AssessmentOverride:
    """Build an override annotation for *result*.

    Raises ValueError when the reason is blank, the reviewer is missing, or
    the new recommendation equals the engine's own.
    """
    new_recommendation = LoanRecommendation(new_recommendation)
    if not reason or not reason.strip():
        raise ValueError("An override reason is required")
    if not reviewer or not reviewer.strip():
        raise ValueError("An override reviewer is required")
    if new_recommendation == result.recommendation:
        raise ValueError(
            f"Override must change the recommendation (already {result.recommendation.value})"
        )

    override = AssessmentOverride(
        original_recommendation=result.recommendation,
        new_recommendation=new_recommendation,
        reason=reason.strip(),
        reviewer=reviewer.strip(),
        overridden_at=at or datetime.now(timezone.utc),
        config_version=result.config_version,
    )
    logger.info(
        "Recommendation overridden %s -> %s by %s (config=%s)",
        override.original_recommendation.value, override.new_recommendation.value,
        override.reviewer, override.config_version,
    )
    return override


def effective_recommendation(
    result: AssessmentResult,
    overrides: Sequence[AssessmentOverride] = (),
) -> LoanRecommendation:
    """The most recent override's recommendation, else the engine's."""
    if not overrides:
        return result.recommendation
    latest = max(overrides, key=lambda o: o.overridden_at)
    return latest.new_recommendation
