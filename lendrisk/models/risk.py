"""Risk assessment enums shared by the engine, schemas and callers."""

import enum


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class LoanRecommendation(str, enum.Enum):
    APPROVE = "APPROVE"
    REVIEW = "REVIEW"
    REJECT = "REJECT"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    SELF_EMPLOYED = "SELF_EMPLOYED"
    RETIRED = "RETIRED"
    UNEMPLOYED = "UNEMPLOYED"


class CollateralType(str, enum.Enum):
    REAL_ESTATE = "REAL_ESTATE"
    CASH_DEPOSIT = "CASH_DEPOSIT"
    SECURITIES = "SECURITIES"
    VEHICLE = "VEHICLE"
    EQUIPMENT = "EQUIPMENT"
    INVENTORY = "INVENTORY"


class LoanPurpose(str, enum.Enum):
    HOME_PURCHASE = "HOME_PURCHASE"
    HOME_REFINANCE = "HOME_REFINANCE"
    BUSINESS = "BUSINESS"
    VEHICLE = "VEHICLE"
    PERSONAL = "PERSONAL"
    EDUCATION = "EDUCATION"
    DEBT_CONSOLIDATION = "DEBT_CONSOLIDATION"
    OTHER = "OTHER"


class RiskFactor(str, enum.Enum):
    """The six independent risk dimensions, in assessment order."""
    CREDIT_HISTORY = "credit_history"
    INCOME_STABILITY = "income_stability"
    EMPLOYMENT = "employment"
    COLLATERAL = "collateral"
    MARKET_CONDITIONS = "market_conditions"
    DEBT_TO_INCOME_RATIO = "debt_to_income_ratio"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


class ConfigAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    ACTIVATE = "ACTIVATE"
    DELETE = "DELETE"
