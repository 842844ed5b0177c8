"""Tests for the pydantic payload and record schemas."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from lendrisk.models.risk import EmploymentType, LoanRecommendation
from lendrisk.schemas import (
    ApplicantSnapshotPayload,
    AssessmentOverrideRequest,
    AssessmentRecord,
    RiskConfigurationCreate,
    RiskConfigurationUpdate,
)
from lendrisk.services.risk_engine.configuration import default_configuration
from lendrisk.services.risk_engine.engine import RiskEngine
from lendrisk.services.risk_engine.registry import ConfigurationRegistry
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot


def _payload(**overrides) -> dict:
    data = dict(
        credit_score=620,
        credit_score_date="2025-05-01",
        previous_defaults=1,
        monthly_income=5000,
        monthly_expenses=3500,
        employment_type="SELF_EMPLOYED",
        years_employed=3,
        years_in_industry=4,
        loan_amount=60000,
        collateral_value=72290,
        collateral_type="VEHICLE",
        debt_to_income_ratio=0.5,
    )
    data.update(overrides)
    return data


def _config_payload(**overrides) -> dict:
    data = dict(
        name="Standard",
        description="Baseline weighting",
        weights=dict(
            credit_history=30, income_stability=25, employment=15,
            collateral=15, market_conditions=5, debt_to_income_ratio=10,
        ),
        thresholds=dict(low_risk=30, medium_risk=50, high_risk=70),
        auto_approve_threshold=25,
        auto_reject_threshold=75,
    )
    data.update(overrides)
    return data


class TestApplicantSnapshotPayload:
    def test_to_snapshot(self):
        snapshot = ApplicantSnapshotPayload(**_payload()).to_snapshot()
        assert isinstance(snapshot, ApplicantSnapshot)
        assert snapshot.credit_score_date == date(2025, 5, 1)
        assert snapshot.employment_type == EmploymentType.SELF_EMPLOYED

    def test_empty_strings_become_none(self):
        payload = ApplicantSnapshotPayload(**_payload(collateral_value="", collateral_type=""))
        assert payload.collateral_value is None
        assert payload.collateral_type is None

    @pytest.mark.parametrize("field,value", [
        ("credit_score", 200),
        ("monthly_income", 0),
        ("debt_to_income_ratio", -0.1),
        ("market_score", 101),
        ("employment_type", "ASTRONAUT"),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            ApplicantSnapshotPayload(**_payload(**{field: value}))

    def test_missing_fields_left_for_engine(self):
        payload = ApplicantSnapshotPayload(**_payload(debt_to_income_ratio=None))
        assert payload.to_snapshot().debt_to_income_ratio is None


class TestRiskConfigurationCreate:
    def test_valid(self):
        body = RiskConfigurationCreate(**_config_payload())
        config = ConfigurationRegistry().create(**body.registry_kwargs())
        assert config.version == "v1.0"

    def test_weights_must_sum_to_100(self):
        payload = _config_payload()
        payload["weights"]["credit_history"] = 20
        with pytest.raises(ValidationError, match="sum to 100"):
            RiskConfigurationCreate(**payload)

    def test_thresholds_must_ascend(self):
        with pytest.raises(ValidationError, match="ascending"):
            RiskConfigurationCreate(**_config_payload(thresholds=dict(low_risk=50, medium_risk=50, high_risk=70)))

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            RiskConfigurationCreate(**_config_payload(name=""))


class TestRiskConfigurationUpdate:
    def test_changes_only_sent_fields(self):
        body = RiskConfigurationUpdate(description="Revised", weights={"credit_history": 25, "market_conditions": 10})
        assert body.changes() == {
            "description": "Revised",
            "weights": {"credit_history": 25, "market_conditions": 10},
        }

    def test_applies_through_registry(self):
        registry = ConfigurationRegistry()
        config = registry.create(**RiskConfigurationCreate(**_config_payload()).registry_kwargs())
        body = RiskConfigurationUpdate(weights={"credit_history": 25, "market_conditions": 10})
        updated = registry.update(config.version, **body.changes())
        assert updated.weights.market_conditions == 10


class TestAssessmentRecord:
    def test_validates_engine_output(self):
        snapshot = ApplicantSnapshotPayload(**_payload()).to_snapshot()
        result = RiskEngine().assess(
            snapshot, default_configuration(is_active=True),
            assessed_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
        )
        record = AssessmentRecord.model_validate(result.to_record())
        assert record.recommendation == LoanRecommendation.REVIEW
        assert record.explainability.alternative_scenarios

    def test_contribution_mismatch_rejected(self):
        snapshot = ApplicantSnapshotPayload(**_payload()).to_snapshot()
        result = RiskEngine().assess(
            snapshot, default_configuration(is_active=True),
            assessed_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
        )
        data = result.to_record()
        data["risk_score"] = 10
        with pytest.raises(ValidationError, match="contributions"):
            AssessmentRecord.model_validate(data)


class TestAssessmentOverrideRequest:
    def test_valid(self):
        body = AssessmentOverrideRequest(new_recommendation="APPROVE", reason="Verified", reviewer="uw-17")
        assert body.new_recommendation == LoanRecommendation.APPROVE

    def test_empty_reason_rejected(self):
        with pytest.raises(ValidationError):
            AssessmentOverrideRequest(new_recommendation="APPROVE", reason="", reviewer="uw-17")
