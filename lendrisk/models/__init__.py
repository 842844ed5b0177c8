"""Enums for the lendrisk risk assessment engine."""

from lendrisk.models.risk import (
    RiskLevel,
    LoanRecommendation,
    EmploymentType,
    CollateralType,
    LoanPurpose,
    RiskFactor,
    ConfigAction,
)

__all__ = [
    "RiskLevel",
    "LoanRecommendation",
    "EmploymentType",
    "CollateralType",
    "LoanPurpose",
    "RiskFactor",
    "ConfigAction",
]
