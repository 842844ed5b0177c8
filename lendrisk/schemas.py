"""Pydantic schemas for validating engine inputs and persisted records."""

from datetime import datetime, date
from typing import Any, Optional
from pydantic import BaseModel, Field, model_validator

from lendrisk.models.risk import (
    CollateralType,
    EmploymentType,
    LoanPurpose,
    LoanRecommendation,
    RiskLevel,
)
from lendrisk.services.risk_engine.configuration import (
    WEIGHT_TOLERANCE,
    FactorWeights,
    RiskThresholds,
)
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot


# ── Applicant snapshot ───────────────────────────────

class ApplicantSnapshotPayload(BaseModel):
    credit_score: Optional[int] = Field(None, ge=300, le=850)
    credit_score_date: Optional[date] = None
    previous_defaults: int = Field(0, ge=0)
    monthly_income: Optional[float] = Field(None, gt=0)
    monthly_expenses: Optional[float] = Field(None, ge=0)
    annual_income: Optional[float] = Field(None, ge=0)
    other_income: float = Field(0.0, ge=0)
    net_worth: Optional[float] = None
    employment_type: Optional[EmploymentType] = None
    years_employed: float = Field(0.0, ge=0)
    years_in_industry: float = Field(0.0, ge=0)
    loan_amount: Optional[float] = Field(None, gt=0)
    collateral_value: Optional[float] = Field(None, ge=0)
    collateral_type: Optional[CollateralType] = None
    loan_purpose: Optional[LoanPurpose] = None
    debt_to_income_ratio: Optional[float] = Field(None, ge=0)  # fraction, 0.30 == 30%
    market_score: Optional[float] = Field(None, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def empty_strings_to_none(cls, values: Any) -> Any:
        """Convert empty strings to None so Optional fields don't choke."""
        if isinstance(values, dict):
            return {k: (None if v == "" else v) for k, v in values.items()}
        return values

    def to_snapshot(self) -> ApplicantSnapshot:
        return ApplicantSnapshot(**self.model_dump())


# ── Risk configuration ───────────────────────────────

class FactorWeightsSchema(BaseModel):
    credit_history: float = Field(ge=0, le=100)
    income_stability: float = Field(ge=0, le=100)
    employment: float = Field(ge=0, le=100)
    collateral: float = Field(ge=0, le=100)
    market_conditions: float = Field(ge=0, le=100)
    debt_to_income_ratio: float = Field(ge=0, le=100)

    def to_weights(self) -> FactorWeights:
        return FactorWeights(**self.model_dump())


class RiskThresholdsSchema(BaseModel):
    low_risk: float = Field(ge=0, le=100)
    medium_risk: float = Field(ge=0, le=100)
    high_risk: float = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _ascending(self) -> "RiskThresholdsSchema":
        if not self.low_risk < self.medium_risk < self.high_risk:
            raise ValueError("Thresholds must be strictly ascending (low < medium < high)")
        return self

    def to_thresholds(self) -> RiskThresholds:
        return RiskThresholds(**self.model_dump())


class RiskConfigurationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: str = Field(min_length=1, max_length=1000)
    weights: FactorWeightsSchema
    thresholds: RiskThresholdsSchema
    auto_approve_threshold: float = Field(ge=0, le=100)
    auto_reject_threshold: float = Field(ge=0, le=100)
    require_human_review: bool = False

    @model_validator(mode="after")
    def _weights_sum_to_100(self) -> "RiskConfigurationCreate":
        total = sum(self.weights.model_dump().values())
        if abs(total - 100) > WEIGHT_TOLERANCE:
            raise ValueError(f"Risk configuration weights must sum to 100, got {round(total, 4)}")
        return self

    def registry_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ConfigurationRegistry.create."""
        return {
            "name": self.name,
            "description": self.description,
            "weights": self.weights.to_weights(),
            "thresholds": self.thresholds.to_thresholds(),
            "auto_approve_threshold": self.auto_approve_threshold,
            "auto_reject_threshold": self.auto_reject_threshold,
            "require_human_review": self.require_human_review,
        }


class RiskConfigurationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    weights: Optional[dict[str, float]] = None  # partial; merged by the registry
    thresholds: Optional[dict[str, float]] = None
    auto_approve_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    auto_reject_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    require_human_review: Optional[bool] = None

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class RiskConfigurationResponse(BaseModel):
    version: str
    name: str
    description: str
    is_active: bool
    require_human_review: bool
    weights: FactorWeightsSchema
    thresholds: RiskThresholdsSchema
    auto_approve_threshold: float
    auto_reject_threshold: float
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Assessment records ───────────────────────────────

class FactorScoreRecord(BaseModel):
    score: float = Field(ge=0, le=100)
    weight: float = Field(ge=0, le=100)
    contribution: float
    explanation: str
    data_points: list[str]
    confidence: float = Field(ge=0, le=100)


class ScenarioRecord(BaseModel):
    name: str
    description: str
    changed_factors: list[str]
    score_change: float = Field(lt=0)
    new_score: float


class ExplainabilityRecord(BaseModel):
    contributions: dict[str, float]
    decision_path: list[str]
    alternative_scenarios: list[ScenarioRecord] = []
    methodology: str
    data_point_count: int = Field(ge=0)
    confidence_factors: list[str] = []
    limitations: list[str] = []


class AssessmentRecord(BaseModel):
    risk_score: float = Field(ge=0, le=100)
    risk_category: RiskLevel
    recommendation: LoanRecommendation
    confidence: float = Field(ge=0, le=100)
    factor_scores: dict[str, FactorScoreRecord]
    key_risk_indicators: list[str]
    mitigation_suggestions: list[str]
    explainability: ExplainabilityRecord
    config_version: str
    human_review_required: bool
    summary: str
    assessed_at: datetime

    @model_validator(mode="after")
    def _contributions_match_score(self) -> "AssessmentRecord":
        total = sum(self.explainability.contributions.values())
        if abs(total - self.risk_score) > 0.01:
            raise ValueError(
                f"Factor contributions sum to {round(total, 4)}, risk score is {self.risk_score}"
            )
        return self


class AssessmentOverrideRequest(BaseModel):
    new_recommendation: LoanRecommendation
    reason: str = Field(min_length=1, max_length=2000)
    reviewer: str = Field(min_length=1, max_length=150)
