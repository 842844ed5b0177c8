"""Applicant snapshot — the plain data the engine scores.

The caller assembles this from its stored applicant and loan-application
rows before the engine runs; the engine never fetches anything itself.
Required fields are Optional here: a missing value fails inside the owning
factor assessor with an IncompleteInputError naming the field.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional, Union

from lendrisk.models.risk import CollateralType, EmploymentType, LoanPurpose


@dataclass(frozen=True)
class ApplicantSnapshot:
    # Credit
    credit_score: Optional[int] = None
    credit_score_date: Optional[Union[date, datetime]] = None
    previous_defaults: int = 0

    # Income
    monthly_income: Optional[float] = None
    monthly_expenses: Optional[float] = None
    annual_income: Optional[float] = None  # derived from monthly_income when absent
    other_income: float = 0.0
    net_worth: Optional[float] = None

    # Employment
    employment_type: Optional[Union[EmploymentType, str]] = None
    years_employed: float = 0.0
    years_in_industry: float = 0.0

    # Loan
    loan_amount: Optional[float] = None
    collateral_value: Optional[float] = None
    collateral_type: Optional[Union[CollateralType, str]] = None
    loan_purpose: Optional[Union[LoanPurpose, str]] = None

    # Debt
    debt_to_income_ratio: Optional[float] = None  # fraction: 0.30 == 30%

    # External
    market_score: Optional[float] = None  # 0-100, higher = worse conditions

    @property
    def effective_annual_income(self) -> Optional[float]:
        if self.annual_income is not None:
            return self.annual_income
        if self.monthly_income is None:
            return None
        return self.monthly_income * 12

    @property
    def has_collateral(self) -> bool:
        return self.collateral_value is not None and self.collateral_value > 0

    def with_changes(self, **changes) -> "ApplicantSnapshot":
        """Return a copy with *changes* applied (used for what-if scenarios)."""
        return replace(self, **changes)


def enum_value(value) -> Optional[str]:
    """Normalise an enum member or free-text code to its upper-case string value."""
    if value is None:
        return None
    if hasattr(value, "value"):
        value = value.value
    text = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    return text or None
