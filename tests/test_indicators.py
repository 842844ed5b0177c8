"""Tests for key risk indicators and mitigation suggestions."""

import pytest

from lendrisk.models.risk import RiskFactor
from lendrisk.services.risk_engine.configuration import default_configuration
from lendrisk.services.risk_engine.factors import build_factor_score
from lendrisk.services.risk_engine.indicators import (
    GENERIC_MITIGATIONS,
    identify_risk_indicators,
    suggest_mitigations,
)
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

CONFIG = default_configuration()


def _scores(**overrides):
    """Quiet sub-scores for every factor, with per-factor (score, explanation) overrides."""
    result = {}
    for factor in RiskFactor:
        score, explanation = overrides.get(factor.value, (20, "Fine"))
        result[factor] = build_factor_score(factor, score, CONFIG, explanation, ["x"], 90)
    return result


class TestIdentifyIndicators:
    def test_quiet_profile(self):
        assert identify_risk_indicators(_scores(), ApplicantSnapshot()) == []

    def test_level_trigger(self):
        indicators = identify_risk_indicators(
            _scores(credit_history=(61, "Poor")), ApplicantSnapshot(),
        )
        assert [(i.code, i.message) for i in indicators] == [("K01", "Poor credit history")]

    def test_trigger_is_strict(self):
        assert identify_risk_indicators(_scores(credit_history=(60, "Meh")), ApplicantSnapshot()) == []
        assert identify_risk_indicators(_scores(collateral=(70, "Meh")), ApplicantSnapshot()) == []

    def test_text_flag_below_trigger(self):
        indicators = identify_risk_indicators(
            _scores(debt_to_income_ratio=(40, "Rising debt - CONCERN")), ApplicantSnapshot(),
        )
        assert indicators[0].factor == RiskFactor.DEBT_TO_INCOME_RATIO
        assert indicators[0].message == "Debt to income ratio: Rising debt - CONCERN"

    def test_prior_defaults(self):
        indicators = identify_risk_indicators(_scores(), ApplicantSnapshot(previous_defaults=2))
        assert [(i.code, i.message) for i in indicators] == [("K07", "2 previous default(s)")]

    def test_unsecured_message(self):
        scores = _scores()
        scores[RiskFactor.COLLATERAL] = build_factor_score(
            RiskFactor.COLLATERAL, 80, CONFIG, "No collateral", ["Loan type: Unsecured"], 100,
        )
        indicators = identify_risk_indicators(scores, ApplicantSnapshot())
        assert indicators[0].message == "Unsecured loan - no collateral pledged"


class TestMitigations:
    def test_none_needed(self):
        assert suggest_mitigations([]) == ["Standard loan terms appropriate"]

    def test_deduplicated_per_factor(self):
        indicators = identify_risk_indicators(
            _scores(credit_history=(80, "Poor")), ApplicantSnapshot(previous_defaults=1),
        )
        assert len(indicators) == 2
        suggestions = suggest_mitigations(indicators)
        assert suggestions.count("Require co-signer with better credit history") == 1
        assert suggestions[-len(GENERIC_MITIGATIONS):] == GENERIC_MITIGATIONS

    @pytest.mark.parametrize("factor", list(RiskFactor))
    def test_every_factor_has_mitigations(self, factor):
        indicators = identify_risk_indicators(
            _scores(**{factor.value: (100, "Bad")}), ApplicantSnapshot(),
        )
        assert len(suggest_mitigations(indicators)) > len(GENERIC_MITIGATIONS)
