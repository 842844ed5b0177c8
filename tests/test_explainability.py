"""Tests for explainability: contributions, decision path and what-if scenarios."""

from datetime import date, datetime, timezone

import pytest

from lendrisk.models.risk import CollateralType, EmploymentType, RiskFactor
from lendrisk.services.risk_engine.configuration import default_configuration
from lendrisk.services.risk_engine.engine import RiskEngine
from lendrisk.services.risk_engine.explainability import DECISION_PATH
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

ASSESSED_AT = datetime(2025, 6, 1, tzinfo=timezone.utc)
ACTIVE = default_configuration(is_active=True)


def _snapshot(**overrides) -> ApplicantSnapshot:
    defaults = dict(
        credit_score=620,
        credit_score_date=date(2025, 5, 1),
        previous_defaults=1,
        monthly_income=5000,
        monthly_expenses=3500,
        employment_type=EmploymentType.SELF_EMPLOYED,
        years_employed=3,
        years_in_industry=4,
        loan_amount=60000,
        collateral_value=72290,
        collateral_type=CollateralType.VEHICLE,
        debt_to_income_ratio=0.50,
    )
    defaults.update(overrides)
    return ApplicantSnapshot(**defaults)


def _assess(snapshot):
    return RiskEngine().assess(snapshot, ACTIVE, assessed_at=ASSESSED_AT)


class TestContributions:
    def test_keys_and_sum(self):
        result = _assess(_snapshot())
        contributions = result.explainability.contributions
        assert set(contributions) == {f.value for f in RiskFactor}
        assert sum(contributions.values()) == pytest.approx(result.risk_score, abs=0.01)

    def test_match_factor_scores(self):
        result = _assess(_snapshot())
        for factor, fs in result.factor_scores.items():
            assert result.explainability.contributions[factor.value] == fs.contribution

    def test_decision_path_fixed(self):
        result = _assess(_snapshot())
        assert result.explainability.decision_path == DECISION_PATH
        assert len(DECISION_PATH) == 13

    def test_data_point_count(self):
        result = _assess(_snapshot())
        expected = sum(len(fs.data_points) for fs in result.factor_scores.values())
        assert result.explainability.data_point_count == expected

    def test_methodology_and_limitations_present(self):
        explain = _assess(_snapshot()).explainability
        assert explain.methodology
        assert explain.limitations
        assert explain.confidence_factors


class TestScenarios:
    def test_borderline_scenarios(self):
        scenarios = {s.name: s for s in _assess(_snapshot()).explainability.alternative_scenarios}
        assert list(scenarios) == [
            "Improved collateral", "Reduced loan amount", "Improved credit score", "Reduced debt burden",
        ]
        assert scenarios["Improved collateral"].score_change == pytest.approx(-3.75)
        assert scenarios["Improved credit score"].score_change == pytest.approx(-4.64)
        assert scenarios["Reduced debt burden"].score_change == pytest.approx(-5.0)
        assert scenarios["Reduced debt burden"].changed_factors == ("debt_to_income_ratio",)

    def test_only_risk_reducing_scenarios_reported(self):
        for snapshot in (_snapshot(), _snapshot(credit_score=800, debt_to_income_ratio=0.1)):
            for scenario in _assess(snapshot).explainability.alternative_scenarios:
                assert scenario.score_change < 0
                assert scenario.new_score < _assess(snapshot).risk_score

    def test_no_change_scenario_omitted(self):
        # +10% income keeps the disposable ratio in the same band
        names = [s.name for s in _assess(_snapshot()).explainability.alternative_scenarios]
        assert "Higher income" not in names

    @pytest.mark.parametrize("name,changes", [
        ("Improved credit score", {"credit_score": 720}),
        ("Reduced debt burden", {"debt_to_income_ratio": 0.35}),
        ("Reduced loan amount", {"loan_amount": 45000}),
    ])
    def test_delta_matches_full_rerun(self, name, changes):
        base = _assess(_snapshot())
        scenario = next(s for s in base.explainability.alternative_scenarios if s.name == name)
        rerun = _assess(_snapshot(**changes))
        assert scenario.new_score == pytest.approx(rerun.risk_score, abs=0.02)

    def test_unsecured_loan_suggests_securing(self):
        result = _assess(_snapshot(collateral_value=None, collateral_type=None))
        names = [s.name for s in result.explainability.alternative_scenarios]
        assert "Secured loan" in names
        assert "Reduced loan amount" not in names

    def test_strong_credit_skips_credit_scenario(self):
        result = _assess(_snapshot(credit_score=780))
        names = [s.name for s in result.explainability.alternative_scenarios]
        assert "Improved credit score" not in names
