"""Explainability — additive contributions, decision path and what-if scenarios.

Contributions are the FactorScore contributions, copied unchanged; they sum
back to the overall score (a SHAP-like additive decomposition, not a
Shapley-value computation).

Scenario deltas are estimates: only the factor a change touches is
re-scored, every other factor is held at its current value.  A change with
knock-on effects in reality (more income usually lowers DTI too) is
therefore under-credited, never over-credited.  Only scenarios that
strictly lower the score are reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Mapping, Optional

from lendrisk.models.risk import RiskFactor
from lendrisk.services.risk_engine.configuration import RiskConfiguration
from lendrisk.services.risk_engine.factors import FactorAssessor, FactorScore
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

METHODOLOGY = "Multi-factor weighted risk analysis with configurable thresholds"

DECISION_PATH = (
    "Application snapshot received",
    "Risk configuration validated",
    "Credit history analyzed",
    "Income stability analyzed",
    "Employment analyzed",
    "Collateral assessed",
    "Market conditions assessed",
    "Debt-to-income ratio assessed",
    "Risk factors weighted",
    "Final score calculated",
    "Risk category assigned",
    "Recommendation generated",
    "Confidence estimated",
)

CONFIDENCE_FACTORS = (
    "Credit score data age",
    "Completeness of collateral data",
    "Agreement between factor sub-scores",
    "Market outlook uncertainty",
)

LIMITATIONS = (
    "Rule-based model; not calibrated against historical loan outcomes",
    "Market conditions are estimated from external indicators or a neutral default",
    "Scenario deltas re-score only the factor a change touches",
)

TARGET_CREDIT_SCORE = 720
TARGET_DTI = 0.35


@dataclass(frozen=True)
class AlternativeScenario:
    name: str
    description: str
    changed_factors: tuple[str, ...]
    score_change: float  # negative = less risky
    new_score: float


@dataclass(frozen=True)
class Explainability:
    contributions: Mapping[str, float]
    decision_path: tuple[str, ...]
    alternative_scenarios: tuple[AlternativeScenario, ...]
    methodology: str
    data_point_count: int
    confidence_factors: tuple[str, ...]
    limitations: tuple[str, ...]


def _scenario_delta(
    factor: RiskFactor,
    changed: ApplicantSnapshot,
    config: RiskConfiguration,
    factor_scores: Mapping[RiskFactor, FactorScore],
    assessors: Mapping[RiskFactor, FactorAssessor],
    as_of: date,
) -> Optional[float]:
    assessor = assessors.get(factor)
    if assessor is None or factor not in factor_scores:
        return None
    rescored = assessor.assess(changed, config, as_of)
    return rescored.contribution - factor_scores[factor].contribution


def generate_scenarios(
    snapshot: ApplicantSnapshot,
    config: RiskConfiguration,
    factor_scores: Mapping[RiskFactor, FactorScore],
    risk_score: float,
    assessors: Mapping[RiskFactor, FactorAssessor],
    as_of: date,
) -> list[AlternativeScenario]:
    candidates: list[tuple[str, str, RiskFactor, ApplicantSnapshot]] = []

    # Improved collateral
    if snapshot.has_collateral:
        improved = snapshot.collateral_value * 1.5
        candidates.append((
            "Improved collateral",
            f"If collateral value increased to ${improved:,.0f} (+50%)",
            RiskFactor.COLLATERAL,
            snapshot.with_changes(collateral_value=improved),
        ))
    elif snapshot.loan_amount:
        pledged = snapshot.loan_amount * 1.25
        candidates.append((
            "Secured loan",
            f"If collateral worth ${pledged:,.0f} (125% of the loan) were pledged",
            RiskFactor.COLLATERAL,
            snapshot.with_changes(collateral_value=pledged),
        ))

    # Reduced loan amount (only moves the score through LTV)
    if snapshot.has_collateral and snapshot.loan_amount:
        reduced = snapshot.loan_amount * 0.75
        candidates.append((
            "Reduced loan amount",
            f"If loan amount reduced to ${reduced:,.0f} (25% reduction)",
            RiskFactor.COLLATERAL,
            snapshot.with_changes(loan_amount=reduced),
        ))

    # Improved credit score
    if snapshot.credit_score is not None and snapshot.credit_score < TARGET_CREDIT_SCORE:
        candidates.append((
            "Improved credit score",
            f"If credit score improved to {TARGET_CREDIT_SCORE}",
            RiskFactor.CREDIT_HISTORY,
            snapshot.with_changes(credit_score=TARGET_CREDIT_SCORE),
        ))

    # Higher income
    if snapshot.monthly_income:
        changes = {"monthly_income": snapshot.monthly_income * 1.1}
        if snapshot.annual_income is not None:
            changes["annual_income"] = snapshot.annual_income * 1.1
        candidates.append((
            "Higher income",
            "If monthly income were 10% higher with expenses unchanged",
            RiskFactor.INCOME_STABILITY,
            snapshot.with_changes(**changes),
        ))

    # Lower debt burden
    if snapshot.debt_to_income_ratio is not None and snapshot.debt_to_income_ratio > TARGET_DTI:
        candidates.append((
            "Reduced debt burden",
            f"If debt-to-income ratio reduced to {TARGET_DTI:.0%}",
            RiskFactor.DEBT_TO_INCOME_RATIO,
            snapshot.with_changes(debt_to_income_ratio=TARGET_DTI),
        ))

    scenarios: list[AlternativeScenario] = []
    for name, description, factor, changed in candidates:
        delta = _scenario_delta(factor, changed, config, factor_scores, assessors, as_of)
        if delta is None or round(delta, 2) >= 0:
            continue
        scenarios.append(AlternativeScenario(
            name=name,
            description=description,
            changed_factors=(factor.value,),
            score_change=round(delta, 2),
            new_score=round(risk_score + delta, 2),
        ))
    return scenarios


def build_explainability(
    snapshot: ApplicantSnapshot,
    config: RiskConfiguration,
    factor_scores: Mapping[RiskFactor, FactorScore],
    risk_score: float,
    assessors: Mapping[RiskFactor, FactorAssessor],
    as_of: date,
) -> Explainability:
    contributions = MappingProxyType({
        factor.value: fs.contribution for factor, fs in factor_scores.items()
    })
    scenarios = generate_scenarios(snapshot, config, factor_scores, risk_score, assessors, as_of)
    return Explainability(
        contributions=contributions,
        decision_path=DECISION_PATH,
        alternative_scenarios=tuple(scenarios),
        methodology=METHODOLOGY,
        data_point_count=sum(len(fs.data_points) for fs in factor_scores.values()),
        confidence_factors=CONFIDENCE_FACTORS,
        limitations=LIMITATIONS,
    )
