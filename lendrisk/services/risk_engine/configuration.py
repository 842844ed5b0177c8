"""Risk configuration — immutable, versioned weights, thresholds and cutoffs.

Polarity: every score in this engine runs 0-100 with HIGHER = RISKIER.
Thresholds partition that space into LOW / MEDIUM / HIGH / CRITICAL, and the
approve cutoff sits at the low (safe) end, the reject cutoff at the high end.

Validation runs in ``__post_init__``, so a configuration that exists is a
valid one: created, edited (via ``dataclasses.replace``), activated or loaded
from storage, the same checks apply.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime
from typing import Any

from lendrisk.config import settings
from lendrisk.models.risk import RiskFactor
from lendrisk.services.risk_engine.exceptions import ConfigurationError

WEIGHT_TOLERANCE = 0.01


@dataclass(frozen=True)
class FactorWeights:
    """Percentage weight per factor; must sum to 100."""
    credit_history: float
    income_stability: float
    employment: float
    collateral: float
    market_conditions: float
    debt_to_income_ratio: float

    def for_factor(self, factor: RiskFactor) -> float:
        return getattr(self, factor.value)

    @property
    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RiskThresholds:
    """Ascending cut points: below low_risk is LOW, at/above high_risk is CRITICAL."""
    low_risk: float
    medium_risk: float
    high_risk: float


@dataclass(frozen=True)
class RiskConfiguration:
    version: str
    weights: FactorWeights
    thresholds: RiskThresholds
    auto_approve_threshold: float
    auto_reject_threshold: float
    name: str = ""
    description: str = ""
    is_active: bool = False
    require_human_review: bool = False
    created_by: str | None = None
    created_at: datetime | None = field(default=None, compare=False)

    def __post_init__(self):
        validate_configuration(self)

    def weight_for(self, factor: RiskFactor) -> float:
        return self.weights.for_factor(factor)

    def to_record(self) -> dict[str, Any]:
        """Flatten into the column layout used for storage."""
        record: dict[str, Any] = {
            "version": self.version,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "require_human_review": self.require_human_review,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "threshold_low_risk": self.thresholds.low_risk,
            "threshold_medium_risk": self.thresholds.medium_risk,
            "threshold_high_risk": self.thresholds.high_risk,
            "auto_approve_threshold": self.auto_approve_threshold,
            "auto_reject_threshold": self.auto_reject_threshold,
        }
        for factor in RiskFactor:
            record[f"weight_{factor.value}"] = self.weights.for_factor(factor)
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RiskConfiguration":
        """Rebuild from a stored record.  Stored data is re-validated, never trusted."""
        def _required(key: str) -> Any:
            if record.get(key) is None:
                raise ConfigurationError(
                    f"Stored configuration is missing '{key}'",
                    field=key, constraint="required",
                )
            return record[key]

        created_at = record.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            version=_required("version"),
            weights=FactorWeights(**{
                factor.value: _required(f"weight_{factor.value}") for factor in RiskFactor
            }),
            thresholds=RiskThresholds(
                low_risk=_required("threshold_low_risk"),
                medium_risk=_required("threshold_medium_risk"),
                high_risk=_required("threshold_high_risk"),
            ),
            auto_approve_threshold=_required("auto_approve_threshold"),
            auto_reject_threshold=_required("auto_reject_threshold"),
            name=record.get("name") or "",
            description=record.get("description") or "",
            is_active=bool(record.get("is_active", False)),
            require_human_review=bool(record.get("require_human_review", False)),
            created_by=record.get("created_by"),
            created_at=created_at,
        )


def _check_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigurationError(
            f"{field_name} must be a finite number, got {value!r}",
            field=field_name, constraint="finite_number",
        )
    return float(value)


def _check_score_range(value: Any, field_name: str) -> float:
    number = _check_number(value, field_name)
    if not 0 <= number <= 100:
        raise ConfigurationError(
            f"{field_name} must lie within 0-100, got {number}",
            field=field_name, constraint="range_0_100",
        )
    return number


def validate_configuration(config: RiskConfiguration) -> None:
    """Raise ConfigurationError unless *config* is structurally sound.

    Checks:
      - version is a non-empty string
      - every weight is a finite, non-negative number
      - weights sum to 100 (within WEIGHT_TOLERANCE)
      - thresholds lie in 0-100 and are strictly ascending
      - approve / reject cutoffs lie in 0-100
    Nothing is ever corrected silently.
    """
    if not isinstance(config.version, str) or not config.version.strip():
        raise ConfigurationError(
            "Configuration version must be a non-empty string",
            field="version", constraint="required",
        )

    for factor in RiskFactor:
        field_name = f"weights.{factor.value}"
        weight = _check_number(config.weights.for_factor(factor), field_name)
        if weight < 0:
            raise ConfigurationError(
                f"{field_name} must not be negative, got {weight}",
                field=field_name, constraint="non_negative",
            )

    total = config.weights.total
    if abs(total - 100) > WEIGHT_TOLERANCE:
        raise ConfigurationError(
            f"Risk configuration weights must sum to 100, got {round(total, 4)}",
            field="weights", constraint="sum_to_100",
        )

    low = _check_score_range(config.thresholds.low_risk, "thresholds.low_risk")
    medium = _check_score_range(config.thresholds.medium_risk, "thresholds.medium_risk")
    high = _check_score_range(config.thresholds.high_risk, "thresholds.high_risk")
    if not low < medium < high:
        raise ConfigurationError(
            f"Thresholds must be strictly ascending (low < medium < high), got {low} / {medium} / {high}",
            field="thresholds", constraint="strictly_ascending",
        )

    _check_score_range(config.auto_approve_threshold, "auto_approve_threshold")
    _check_score_range(config.auto_reject_threshold, "auto_reject_threshold")


DEFAULT_WEIGHTS = FactorWeights(
    credit_history=30,
    income_stability=25,
    employment=15,
    collateral=15,
    market_conditions=5,
    debt_to_income_ratio=10,
)

DEFAULT_THRESHOLDS = RiskThresholds(low_risk=30, medium_risk=50, high_risk=70)


def default_configuration(version: str | None = None, *, is_active: bool = False) -> RiskConfiguration:
    """The built-in configuration: 30/25/15/15/5/10, thresholds 30/50/70, approve <=25, reject >=75."""
    return RiskConfiguration(
        version=version or settings.default_config_version,
        weights=DEFAULT_WEIGHTS,
        thresholds=DEFAULT_THRESHOLDS,
        auto_approve_threshold=25,
        auto_reject_threshold=75,
        name="Standard Risk Configuration",
        description="Default multi-factor weighting for personal and secured loans",
        is_active=is_active,
    )
