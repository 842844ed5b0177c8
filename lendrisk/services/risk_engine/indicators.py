"""Key risk indicators and rule-based mitigation suggestions.

An indicator fires for a factor when its sub-score exceeds the factor's
trigger level, or when the factor's own explanation carries a textual flag
("HIGH RISK", "CONCERN").  Prior defaults always raise their own indicator.
Mitigations are looked up per fired factor; generic monitoring suggestions
are appended whenever anything fired.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from lendrisk.models.risk import RiskFactor
from lendrisk.services.risk_engine.factors import FactorScore
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

TEXT_FLAGS = ("HIGH RISK", "CONCERN")


@dataclass(frozen=True)
class RiskIndicator:
    code: str
    factor: RiskFactor
    message: str


INDICATOR_RULES: dict[RiskFactor, dict] = {
    RiskFactor.CREDIT_HISTORY: {"code": "K01", "trigger": 60, "message": "Poor credit history"},
    RiskFactor.INCOME_STABILITY: {"code": "K02", "trigger": 60, "message": "Limited disposable income"},
    RiskFactor.EMPLOYMENT: {"code": "K03", "trigger": 60, "message": "Employment instability"},
    RiskFactor.COLLATERAL: {"code": "K04", "trigger": 70, "message": "Insufficient collateral coverage"},
    RiskFactor.MARKET_CONDITIONS: {"code": "K05", "trigger": 70, "message": "Adverse market conditions"},
    RiskFactor.DEBT_TO_INCOME_RATIO: {"code": "K06", "trigger": 60, "message": "High existing debt burden"},
}
PRIOR_DEFAULT_CODE = "K07"
UNSECURED_DATA_POINT = "Loan type: Unsecured"

MITIGATIONS: dict[RiskFactor, list[str]] = {
    RiskFactor.CREDIT_HISTORY: [
        "Require co-signer with better credit history",
        "Require credit counseling or financial education",
    ],
    RiskFactor.INCOME_STABILITY: [
        "Reduce loan amount or extend repayment term",
    ],
    RiskFactor.EMPLOYMENT: [
        "Verify income through multiple sources",
        "Wait for employment stability (6+ months)",
    ],
    RiskFactor.COLLATERAL: [
        "Request additional collateral or co-signer",
        "Consider credit insurance",
    ],
    RiskFactor.MARKET_CONDITIONS: [
        "Review portfolio exposure to the affected market segment",
    ],
    RiskFactor.DEBT_TO_INCOME_RATIO: [
        "Recommend debt consolidation or reduced loan amount",
        "Require proof of debt reduction plan",
    ],
}
GENERIC_MITIGATIONS = [
    "Monthly progress monitoring and reporting",
    "Personal guarantee from the borrower or a principal",
]
NO_INDICATOR_MITIGATIONS = ["Standard loan terms appropriate"]


def identify_risk_indicators(
    factor_scores: Mapping[RiskFactor, FactorScore],
    snapshot: ApplicantSnapshot,
) -> list[RiskIndicator]:
    indicators: list[RiskIndicator] = []

    for factor, fs in factor_scores.items():
        rule = INDICATOR_RULES[factor]
        if fs.score > rule["trigger"]:
            message = rule["message"]
            if factor == RiskFactor.COLLATERAL and UNSECURED_DATA_POINT in fs.data_points:
                message = "Unsecured loan - no collateral pledged"
            indicators.append(RiskIndicator(rule["code"], factor, message))
        elif any(flag in fs.explanation for flag in TEXT_FLAGS):
            indicators.append(RiskIndicator(rule["code"], factor, f"{factor.label}: {fs.explanation}"))

    defaults = snapshot.previous_defaults or 0
    if defaults > 0:
        indicators.append(RiskIndicator(
            PRIOR_DEFAULT_CODE, RiskFactor.CREDIT_HISTORY, f"{defaults} previous default(s)",
        ))

    return indicators


def suggest_mitigations(indicators: Sequence[RiskIndicator]) -> list[str]:
    if not indicators:
        return list(NO_INDICATOR_MITIGATIONS)

    suggestions: list[str] = []
    for indicator in indicators:
        for suggestion in MITIGATIONS[indicator.factor]:
            if suggestion not in suggestions:
                suggestions.append(suggestion)
    suggestions.extend(GENERIC_MITIGATIONS)
    return suggestions
