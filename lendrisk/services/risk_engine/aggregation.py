"""Aggregate factor contributions into one score and map it to a category and recommendation.

Boundary convention (higher = riskier): a score exactly on a threshold
falls on the riskier side.

    score <  low_risk               -> LOW
    low_risk    <= score < medium   -> MEDIUM
    medium_risk <= score < high     -> HIGH
    score >= high_risk              -> CRITICAL

Recommendations are inclusive at both cutoffs: ``score <= approve`` is
APPROVE, ``score >= reject`` is REJECT, anything else is REVIEW.  When the
cutoffs overlap so that a score satisfies both, REVIEW wins.
"""

from typing import Iterable

from lendrisk.models.risk import LoanRecommendation, RiskLevel
from lendrisk.services.risk_engine.configuration import RiskConfiguration, RiskThresholds
from lendrisk.services.risk_engine.factors import FactorScore


def aggregate_score(factor_scores: Iterable[FactorScore]) -> float:
    """Sum of weighted contributions, rounded to 2 dp.  Lies in 0-100 when weights sum to 100."""
    return round(sum(fs.contribution for fs in factor_scores), 2)


def categorize(score: float, thresholds: RiskThresholds) -> RiskLevel:
    if score < thresholds.low_risk:
        return RiskLevel.LOW
    if score < thresholds.medium_risk:
        return RiskLevel.MEDIUM
    if score < thresholds.high_risk:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def recommend(score: float, config: RiskConfiguration) -> LoanRecommendation:
    approve = score <= config.auto_approve_threshold
    reject = score >= config.auto_reject_threshold
    if approve and reject:
        return LoanRecommendation.REVIEW
    if approve:
        return LoanRecommendation.APPROVE
    if reject:
        return LoanRecommendation.REJECT
    return LoanRecommendation.REVIEW
