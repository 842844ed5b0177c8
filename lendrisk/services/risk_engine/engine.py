"""Risk Assessment Engine Orchestrator.

Runs the six factor assessors against one applicant snapshot and one
resolved configuration, then aggregates, categorises, recommends,
estimates confidence, flags indicators and builds the explainability
payload.

The engine is stateless and performs no I/O.  Loading the applicant and
resolving the active configuration happen before ``assess``; persisting the
result and writing the audit event happen after it.  The same
``(snapshot, configuration, assessed_at)`` always yields an equal
AssessmentResult, and concurrent calls share nothing mutable.

Scores run 0-100 with HIGHER = RISKIER throughout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from lendrisk.config import settings
from lendrisk.models.risk import LoanRecommendation, RiskFactor, RiskLevel
from lendrisk.services.risk_engine.aggregation import aggregate_score, categorize, recommend
from lendrisk.services.risk_engine.configuration import RiskConfiguration, validate_configuration
from lendrisk.services.risk_engine.confidence import estimate_confidence, requires_human_review
from lendrisk.services.risk_engine.exceptions import IncompleteInputError, MissingConfigurationError
from lendrisk.services.risk_engine.explainability import Explainability, build_explainability
from lendrisk.services.risk_engine.factors import FactorAssessor, FactorScore, default_assessors
from lendrisk.services.risk_engine.indicators import identify_risk_indicators, suggest_mitigations
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentResult:
    """Immutable engine output; overrides are separate annotations, never edits."""
    risk_score: float
    risk_category: RiskLevel
    recommendation: LoanRecommendation
    confidence: float
    factor_scores: Mapping[RiskFactor, FactorScore]
    key_risk_indicators: tuple[str, ...]
    mitigation_suggestions: tuple[str, ...]
    explainability: Explainability
    config_version: str
    human_review_required: bool
    assessed_at: datetime = field(compare=False)

    @property
    def summary(self) -> str:
        return (
            f"{self.risk_category.value} risk with {self.risk_score:.1f} score. "
            f"Recommendation: {self.recommendation.value}"
        )

    def to_record(self) -> dict[str, Any]:
        """Plain JSON-ready dict for persistence and rendering."""
        explain = self.explainability
        return {
            "risk_score": self.risk_score,
            "risk_category": self.risk_category.value,
            "recommendation": self.recommendation.value,
            "confidence": self.confidence,
            "factor_scores": {
                factor.value: {
                    "score": fs.score,
                    "weight": fs.weight,
                    "contribution": fs.contribution,
                    "explanation": fs.explanation,
                    "data_points": list(fs.data_points),
                    "confidence": fs.confidence,
                }
                for factor, fs in self.factor_scores.items()
            },
            "key_risk_indicators": list(self.key_risk_indicators),
            "mitigation_suggestions": list(self.mitigation_suggestions),
            "explainability": {
                "contributions": dict(explain.contributions),
                "decision_path": list(explain.decision_path),
                "alternative_scenarios": [
                    {
                        "name": s.name,
                        "description": s.description,
                        "changed_factors": list(s.changed_factors),
                        "score_change": s.score_change,
                        "new_score": s.new_score,
                    }
                    for s in explain.alternative_scenarios
                ],
                "methodology": explain.methodology,
                "data_point_count": explain.data_point_count,
                "confidence_factors": list(explain.confidence_factors),
                "limitations": list(explain.limitations),
            },
            "config_version": self.config_version,
            "human_review_required": self.human_review_required,
            "summary": self.summary,
            "assessed_at": self.assessed_at.isoformat(),
        }


class RiskEngine:
    """Configurable multi-factor risk scorer.

    Args:
        assessors: One assessor per RiskFactor.  Defaults to the six built-in
            assessors; tests and experiments may swap individual ones.
        confidence_floor: Confidence below which results are flagged for
            human review.  Defaults to ``settings.human_review_confidence_floor``.
    """

    def __init__(
        self,
        assessors: Optional[Iterable[FactorAssessor]] = None,
        *,
        confidence_floor: Optional[float] = None,
    ):
        self.assessors = list(assessors) if assessors is not None else default_assessors()
        covered = [a.factor for a in self.assessors]
        if set(covered) != set(RiskFactor) or len(covered) != len(RiskFactor):
            raise ValueError(
                f"Exactly one assessor per risk factor is required, got {[f.value for f in covered]}"
            )
        self._by_factor = {a.factor: a for a in self.assessors}
        self.confidence_floor = (
            settings.human_review_confidence_floor if confidence_floor is None else confidence_floor
        )

    def assess(
        self,
        snapshot: ApplicantSnapshot,
        config: RiskConfiguration,
        *,
        assessed_at: Optional[datetime] = None,
        allow_inactive: bool = False,
    ) -> AssessmentResult:
        """Assess one applicant under one configuration.

        Steps:
        1. Re-validate the configuration (never trust a stored flag)
        2. Run all six factor assessors; any failure aborts the assessment
        3. Aggregate, categorise, recommend
        4. Estimate confidence, flag indicators, suggest mitigations
        5. Build explainability and the immutable result

        ``allow_inactive`` permits replaying a candidate configuration that
        has not been activated yet (impact comparison, back-testing).
        """
        # 1. Configuration
        validate_configuration(config)
        if not config.is_active and not allow_inactive:
            raise MissingConfigurationError(config.version, reason="is not active")

        assessed_at = assessed_at or datetime.now(timezone.utc)
        as_of = assessed_at.date()

        # 2. Factors
        try:
            factor_scores = {
                assessor.factor: assessor.assess(snapshot, config, as_of)
                for assessor in self.assessors
            }
        except IncompleteInputError as exc:
            logger.warning(
                "Risk assessment aborted (config=%s): factor=%s field=%s %s",
                config.version, exc.factor, exc.field, exc.reason,
            )
            raise
        # Fixed factor order regardless of assessor list order
        factor_scores = {factor: factor_scores[factor] for factor in RiskFactor}

        # 3. Score, category, recommendation
        risk_score = aggregate_score(factor_scores.values())
        risk_category = categorize(risk_score, config.thresholds)
        recommendation = recommend(risk_score, config)

        # 4. Confidence, indicators, mitigations
        ordered = list(factor_scores.values())
        confidence = estimate_confidence(ordered, snapshot)
        indicators = identify_risk_indicators(factor_scores, snapshot)
        indicator_messages = tuple(i.message for i in indicators)
        mitigations = tuple(suggest_mitigations(indicators))
        human_review = requires_human_review(
            recommendation, confidence, indicator_messages,
            confidence_floor=self.confidence_floor,
            policy_requires_review=config.require_human_review,
        )

        # 5. Explainability
        explainability = build_explainability(
            snapshot, config, factor_scores, risk_score, self._by_factor, as_of,
        )

        result = AssessmentResult(
            risk_score=risk_score,
            risk_category=risk_category,
            recommendation=recommendation,
            confidence=confidence,
            factor_scores=MappingProxyType(factor_scores),
            key_risk_indicators=indicator_messages,
            mitigation_suggestions=mitigations,
            explainability=explainability,
            config_version=config.version,
            human_review_required=human_review,
            assessed_at=assessed_at,
        )

        logger.info(
            "Risk assessment complete: config=%s score=%.2f category=%s recommendation=%s "
            "confidence=%.2f human_review=%s",
            config.version, risk_score, risk_category.value, recommendation.value,
            confidence, human_review,
        )
        return result


def assess_risk(
    snapshot: ApplicantSnapshot,
    config: RiskConfiguration,
    *,
    assessed_at: Optional[datetime] = None,
    allow_inactive: bool = False,
) -> AssessmentResult:
    """Assess with the default assessors and settings."""
    return RiskEngine().assess(
        snapshot, config, assessed_at=assessed_at, allow_inactive=allow_inactive,
    )
