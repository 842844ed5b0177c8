"""Overall confidence and the human-review flag.

Confidence starts at the mean of the six per-factor confidences, then:
  +5   when collateral data is present (more complete picture)
  +5   when factor sub-scores agree (population std-dev < 15)
  -10  when they conflict (std-dev > 30)
and is clamped to 0-100.  It is reported independently of the risk score.
"""

import statistics
from typing import Sequence

from lendrisk.models.risk import LoanRecommendation
from lendrisk.services.risk_engine.factors import FactorScore
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

COLLATERAL_BONUS = 5
AGREEMENT_STDEV = 15
AGREEMENT_BONUS = 5
CONFLICT_STDEV = 30
CONFLICT_PENALTY = 10


def score_dispersion(factor_scores: Sequence[FactorScore]) -> float:
    return statistics.pstdev([fs.score for fs in factor_scores])


def estimate_confidence(factor_scores: Sequence[FactorScore], snapshot: ApplicantSnapshot) -> float:
    confidence = statistics.fmean([fs.confidence for fs in factor_scores])

    if snapshot.has_collateral:
        confidence += COLLATERAL_BONUS

    dispersion = score_dispersion(factor_scores)
    if dispersion < AGREEMENT_STDEV:
        confidence += AGREEMENT_BONUS
    elif dispersion > CONFLICT_STDEV:
        confidence -= CONFLICT_PENALTY

    return round(max(0.0, min(100.0, confidence)), 2)


def requires_human_review(
    recommendation: LoanRecommendation,
    confidence: float,
    indicators: Sequence[str],
    confidence_floor: float,
    policy_requires_review: bool = False,
) -> bool:
    """True when the result must not be actioned without a human looking at it."""
    return (
        policy_requires_review
        or recommendation == LoanRecommendation.REVIEW
        or confidence < confidence_floor
        or len(indicators) > 0
    )
