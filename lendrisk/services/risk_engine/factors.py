"""Factor assessors — six independent risk dimensions.

Every assessor has the same shape: ``assess(snapshot, config, as_of)``
returns a FactorScore whose ``score`` is 0-100 (higher = riskier) and whose
``contribution`` is ``score * weight / 100``.  Assessors share no state and
may run in any order.

Each FactorScore carries its own explanation and the literal data points it
used; indicators and explainability read those values and never recompute
them from the raw snapshot.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from lendrisk.config import settings
from lendrisk.models.risk import RiskFactor
from lendrisk.services.risk_engine.configuration import RiskConfiguration
from lendrisk.services.risk_engine.exceptions import IncompleteInputError
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot, enum_value


@dataclass(frozen=True)
class FactorScore:
    """Output of one factor assessor."""
    factor: RiskFactor
    score: float  # 0-100, higher = riskier
    weight: float  # copied from the configuration
    contribution: float  # score * weight / 100
    explanation: str
    data_points: tuple[str, ...]
    confidence: float  # 0-100


def build_factor_score(
    factor: RiskFactor,
    base_score: float,
    config: RiskConfiguration,
    explanation: str,
    data_points: list[str],
    confidence: float,
) -> FactorScore:
    """Clamp and round the sub-score, then bake in the configured weight."""
    score = round(max(0.0, min(100.0, base_score)), 2)
    weight = config.weight_for(factor)
    return FactorScore(
        factor=factor,
        score=score,
        weight=weight,
        contribution=score * weight / 100,
        explanation=explanation,
        data_points=tuple(data_points),
        confidence=round(max(0.0, min(100.0, confidence)), 2),
    )


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


class FactorAssessor(ABC):
    """One risk dimension.  Implementations must be pure."""

    factor: RiskFactor

    @abstractmethod
    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        ...

    def _require(self, value: Any, field_name: str) -> Any:
        if value is None:
            raise IncompleteInputError(self.factor.value, field_name)
        if isinstance(value, float) and math.isnan(value):
            raise IncompleteInputError(self.factor.value, field_name, "is not a number")
        return value

    def _non_negative(self, value: Any, field_name: str) -> float:
        if value is None:
            return 0.0
        if isinstance(value, float) and math.isnan(value):
            raise IncompleteInputError(self.factor.value, field_name, "is not a number")
        if value < 0:
            raise IncompleteInputError(self.factor.value, field_name, f"must not be negative, got {value}")
        return float(value)


# ── 1. Credit history ──────────────────────────────────────────────

CREDIT_SCORE_MIN = 300
CREDIT_SCORE_MAX = 850
DEFAULT_RETENTION = 0.85  # share of creditworthiness kept per prior default


def credit_data_confidence(
    age_days: int,
    fresh_days: int,
    min_confidence: float,
) -> float:
    """Full confidence while fresh, then -1 point per 3 days down to the floor."""
    if age_days < fresh_days:
        return 100.0
    return max(min_confidence, 100 - (age_days - fresh_days) / 3)


def _credit_explanation(credit_score: int) -> str:
    if credit_score >= 750:
        return "Excellent credit history with strong repayment track record"
    if credit_score >= 700:
        return "Good credit history demonstrating reliable financial behavior"
    if credit_score >= 650:
        return "Fair credit history with some past challenges but improving"
    if credit_score >= 600:
        return "Below average credit history with notable risk factors"
    return "Poor credit history with significant concerns requiring careful review"


class CreditHistoryAssessor(FactorAssessor):
    """Normalised bureau score (300-850), cut by 15% per prior default.

    Risk is the inverse of normalised creditworthiness.  The default cut is
    multiplicative, so risk is strictly decreasing across 300-850 for any
    default count.  The age of the credit report drives this factor's
    confidence only, never its score.
    """

    factor = RiskFactor.CREDIT_HISTORY

    def __init__(self, fresh_days: Optional[int] = None, min_confidence: Optional[float] = None):
        self.fresh_days = settings.credit_score_fresh_days if fresh_days is None else fresh_days
        self.min_confidence = (
            settings.credit_score_min_confidence if min_confidence is None else min_confidence
        )

    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        credit_score = self._require(snapshot.credit_score, "credit_score")
        score_date = self._require(snapshot.credit_score_date, "credit_score_date")
        defaults = int(self._non_negative(snapshot.previous_defaults, "previous_defaults"))

        if isinstance(score_date, datetime):
            score_date = score_date.date()
        age_days = max(0, (as_of - score_date).days)

        normalized = (credit_score - CREDIT_SCORE_MIN) / (CREDIT_SCORE_MAX - CREDIT_SCORE_MIN) * 100
        normalized = max(0.0, min(100.0, normalized))
        normalized *= DEFAULT_RETENTION ** defaults

        return build_factor_score(
            self.factor,
            100 - normalized,
            config,
            explanation=_credit_explanation(credit_score),
            data_points=[
                f"Credit score: {credit_score}",
                f"Previous defaults: {defaults}",
                f"Score age: {age_days} days",
            ],
            confidence=credit_data_confidence(age_days, self.fresh_days, self.min_confidence),
        )


# ── 2. Income stability ────────────────────────────────────────────

def disposable_ratio_risk(ratio: float) -> float:
    if ratio >= 0.4:
        return 10
    if ratio >= 0.3:
        return 25
    if ratio >= 0.2:
        return 50
    if ratio >= 0.1:
        return 75
    return 90


def _income_explanation(ratio: float) -> str:
    if ratio >= 0.4:
        return "Strong income stability with significant disposable income"
    if ratio >= 0.3:
        return "Good income position supporting loan repayment capacity"
    if ratio >= 0.2:
        return "Adequate income but limited financial flexibility"
    return "Concerning income situation with minimal disposable income - CONCERN"


class IncomeStabilityAssessor(FactorAssessor):
    """Disposable-income bands, nudged by absolute income level and net worth."""

    factor = RiskFactor.INCOME_STABILITY
    confidence = 90

    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        monthly_income = self._require(snapshot.monthly_income, "monthly_income")
        if monthly_income <= 0:
            raise IncompleteInputError(
                self.factor.value, "monthly_income", f"must be greater than zero, got {monthly_income}"
            )
        monthly_expenses = self._non_negative(
            self._require(snapshot.monthly_expenses, "monthly_expenses"), "monthly_expenses"
        )
        annual_income = self._non_negative(snapshot.effective_annual_income, "annual_income")

        disposable = monthly_income - monthly_expenses
        ratio = disposable / monthly_income
        score = disposable_ratio_risk(ratio)

        # Absolute income level
        if annual_income < 15000:
            score += 10
        elif annual_income < 30000:
            score += 5
        elif annual_income > 100000:
            score -= 5

        data_points = [
            f"Annual income: {_money(annual_income)}",
            f"Monthly disposable: {_money(disposable)}",
            f"Disposable ratio: {ratio * 100:.1f}%",
        ]

        net_worth = snapshot.net_worth
        if net_worth is not None:
            if net_worth < 0:
                score += 5
            elif net_worth > 100000:
                score -= 5
            data_points.append(f"Net worth: {_money(net_worth)}")

        if snapshot.other_income:
            data_points.append(f"Other monthly income: {_money(snapshot.other_income)}")

        return build_factor_score(
            self.factor, score, config,
            explanation=_income_explanation(ratio),
            data_points=data_points,
            confidence=self.confidence,
        )


# ── 3. Employment ──────────────────────────────────────────────────

EMPLOYMENT_TYPE_RISK = {
    "FULL_TIME": 0,
    "SELF_EMPLOYED": 15,
    "RETIRED": 20,
    "CONTRACT": 25,
    "PART_TIME": 35,
    "UNEMPLOYED": 80,
}
UNKNOWN_EMPLOYMENT_RISK = 30


def _employment_explanation(employment_type: str, years: float) -> str:
    if employment_type == "FULL_TIME" and years >= 5:
        return "Stable full-time employment with excellent tenure"
    if employment_type == "FULL_TIME" and years >= 2:
        return "Good full-time employment stability"
    if employment_type == "SELF_EMPLOYED":
        return "Self-employed status requires enhanced income verification"
    if employment_type == "UNEMPLOYED":
        return "No current employment income - HIGH RISK"
    return "Employment situation requires additional assessment"


class EmploymentAssessor(FactorAssessor):
    """Additive: base 50 + employment-type risk +/- tenure and industry experience."""

    factor = RiskFactor.EMPLOYMENT
    confidence = 85

    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        employment_type = enum_value(self._require(snapshot.employment_type, "employment_type"))
        years = self._non_negative(snapshot.years_employed, "years_employed")
        industry = self._non_negative(snapshot.years_in_industry, "years_in_industry")

        score = 50 + EMPLOYMENT_TYPE_RISK.get(employment_type, UNKNOWN_EMPLOYMENT_RISK)

        if years >= 5:
            score -= 20
        elif years >= 3:
            score -= 10
        elif years >= 1:
            score -= 5
        else:
            score += 10

        if industry >= 10:
            score -= 10
        elif industry >= 5:
            score -= 5

        return build_factor_score(
            self.factor, score, config,
            explanation=_employment_explanation(employment_type, years),
            data_points=[
                f"Employment type: {employment_type}",
                f"Years employed: {years:g}",
                f"Industry experience: {industry:g} years",
            ],
            confidence=self.confidence,
        )


# ── 4. Collateral ──────────────────────────────────────────────────

UNSECURED_RISK = 80

COLLATERAL_TYPE_ADJUSTMENT = {
    "REAL_ESTATE": -5,
    "CASH_DEPOSIT": -10,
    "SECURITIES": 0,
    "VEHICLE": 5,
    "EQUIPMENT": 10,
    "INVENTORY": 15,
}


def ltv_risk(ltv_pct: float) -> float:
    if ltv_pct <= 50:
        return 10
    if ltv_pct <= 70:
        return 25
    if ltv_pct <= 90:
        return 50
    if ltv_pct <= 100:
        return 70
    return 90


def _collateral_explanation(ltv_pct: float) -> str:
    if ltv_pct <= 50:
        return f"Excellent collateral coverage providing strong security (LTV: {ltv_pct:.1f}%)"
    if ltv_pct <= 70:
        return f"Good collateral coverage with acceptable risk level (LTV: {ltv_pct:.1f}%)"
    if ltv_pct <= 90:
        return f"Moderate collateral coverage requiring monitoring (LTV: {ltv_pct:.1f}%)"
    if ltv_pct <= 100:
        return f"Limited collateral coverage increasing default risk (LTV: {ltv_pct:.1f}%)"
    return f"Loan exceeds collateral value - HIGH RISK (LTV: {ltv_pct:.1f}%)"


class CollateralAssessor(FactorAssessor):
    """Loan-to-value bands with a collateral-type adjustment.

    No collateral (absent or zero value) short-circuits to the fixed
    UNSECURED_RISK sub-score; the LTV division is never attempted.
    """

    factor = RiskFactor.COLLATERAL
    confidence = 80

    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        loan_amount = self._require(snapshot.loan_amount, "loan_amount")
        if loan_amount <= 0:
            raise IncompleteInputError(
                self.factor.value, "loan_amount", f"must be greater than zero, got {loan_amount}"
            )
        self._non_negative(snapshot.collateral_value, "collateral_value")

        if not snapshot.has_collateral:
            return build_factor_score(
                self.factor, UNSECURED_RISK, config,
                explanation="No collateral provided - unsecured loan increases risk significantly",
                data_points=["Loan type: Unsecured"],
                confidence=100,
            )

        collateral_value = snapshot.collateral_value
        collateral_type = enum_value(snapshot.collateral_type)
        ltv_pct = loan_amount / collateral_value * 100

        score = ltv_risk(ltv_pct) + COLLATERAL_TYPE_ADJUSTMENT.get(collateral_type, 0)

        return build_factor_score(
            self.factor, score, config,
            explanation=_collateral_explanation(ltv_pct),
            data_points=[
                f"Loan amount: {_money(loan_amount)}",
                f"Collateral value: {_money(collateral_value)}",
                f"LTV ratio: {ltv_pct:.1f}%",
                f"Type: {collateral_type or 'Not specified'}",
            ],
            confidence=self.confidence,
        )


# ── 5. Market conditions ───────────────────────────────────────────

NEUTRAL_MARKET_SCORE = 50


def _market_explanation(score: float) -> str:
    if score <= 30:
        return "Favorable market conditions supporting loan performance"
    if score <= 50:
        return "Neutral market conditions with balanced outlook"
    if score <= 70:
        return "Challenging market conditions requiring careful monitoring"
    return "Adverse market conditions - CONCERN"


class MarketConditionsAssessor(FactorAssessor):
    """External market score if supplied, otherwise neutral.

    Confidence is fixed at 60, the lowest of the six factors.
    """

    factor = RiskFactor.MARKET_CONDITIONS
    confidence = 60

    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        market_score = snapshot.market_score
        if market_score is None:
            score = NEUTRAL_MARKET_SCORE
            source = "neutral default"
        else:
            if isinstance(market_score, float) and math.isnan(market_score):
                raise IncompleteInputError(self.factor.value, "market_score", "is not a number")
            if not 0 <= market_score <= 100:
                raise IncompleteInputError(
                    self.factor.value, "market_score", f"must lie within 0-100, got {market_score}"
                )
            score = market_score
            source = "external feed"

        data_points = [f"Market condition score: {score:g} ({source})"]
        purpose = enum_value(snapshot.loan_purpose)
        if purpose:
            data_points.append(f"Loan purpose: {purpose}")

        return build_factor_score(
            self.factor, score, config,
            explanation=_market_explanation(score),
            data_points=data_points,
            confidence=self.confidence,
        )


# ── 6. Debt-to-income ratio ────────────────────────────────────────

def dti_risk(dti: float) -> float:
    """DTI (fraction) to risk: <=20% excellent, <=35% good, <=43% acceptable, <=50% high."""
    if dti <= 0.20:
        return 10
    if dti <= 0.35:
        return 25
    if dti <= 0.43:
        return 50
    if dti <= 0.50:
        return 75
    return 90


def _dti_explanation(dti: float) -> str:
    if dti <= 0.20:
        return "Excellent debt management with minimal existing obligations"
    if dti <= 0.35:
        return "Good debt levels supporting additional borrowing capacity"
    if dti <= 0.43:
        return "Acceptable debt burden at the standard qualifying limit"
    if dti <= 0.50:
        return "High debt burden limiting additional borrowing capacity - CONCERN"
    return "Critical debt burden exceeding prudent limits - HIGH RISK"


class DebtToIncomeAssessor(FactorAssessor):
    factor = RiskFactor.DEBT_TO_INCOME_RATIO
    confidence = 95

    def assess(self, snapshot: ApplicantSnapshot, config: RiskConfiguration, as_of: date) -> FactorScore:
        dti = self._non_negative(
            self._require(snapshot.debt_to_income_ratio, "debt_to_income_ratio"), "debt_to_income_ratio"
        )
        return build_factor_score(
            self.factor, dti_risk(dti), config,
            explanation=_dti_explanation(dti),
            data_points=[f"Debt-to-income ratio: {dti * 100:.1f}%"],
            confidence=self.confidence,
        )


def default_assessors() -> list[FactorAssessor]:
    """One assessor per RiskFactor, in RiskFactor order."""
    return [
        CreditHistoryAssessor(),
        IncomeStabilityAssessor(),
        EmploymentAssessor(),
        CollateralAssessor(),
        MarketConditionsAssessor(),
        DebtToIncomeAssessor(),
    ]
