"""Tests for risk configuration validation and storage records."""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from lendrisk.models.risk import RiskFactor
from lendrisk.services.risk_engine.configuration import (
    DEFAULT_THRESHOLDS,
    DEFAULT_WEIGHTS,
    FactorWeights,
    RiskConfiguration,
    RiskThresholds,
    default_configuration,
)
from lendrisk.services.risk_engine.exceptions import ConfigurationError


def _weights(**overrides) -> FactorWeights:
    values = DEFAULT_WEIGHTS.as_dict()
    values.update(overrides)
    return FactorWeights(**values)


def _config(**overrides) -> RiskConfiguration:
    defaults = dict(
        version="v1.0",
        weights=DEFAULT_WEIGHTS,
        thresholds=DEFAULT_THRESHOLDS,
        auto_approve_threshold=25,
        auto_reject_threshold=75,
    )
    defaults.update(overrides)
    return RiskConfiguration(**defaults)


class TestDefaults:
    def test_default_weights_sum_to_100(self):
        assert DEFAULT_WEIGHTS.total == 100

    def test_default_configuration(self):
        config = default_configuration()
        assert config.version == "v1.0"
        assert config.is_active is False
        assert config.weight_for(RiskFactor.CREDIT_HISTORY) == 30
        assert config.thresholds == RiskThresholds(30, 50, 70)
        assert config.auto_approve_threshold == 25
        assert config.auto_reject_threshold == 75


class TestWeightValidation:
    def test_sum_not_100_rejected(self):
        with pytest.raises(ConfigurationError, match="sum to 100") as exc_info:
            _config(weights=_weights(credit_history=35))
        assert exc_info.value.constraint == "sum_to_100"

    def test_within_tolerance_accepted(self):
        config = _config(weights=_weights(credit_history=30.005))
        assert config.weights.total == pytest.approx(100.005)

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _config(weights=_weights(credit_history=-5, income_stability=60))
        assert exc_info.value.field == "weights.credit_history"
        assert exc_info.value.constraint == "non_negative"

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "30", None, True])
    def test_non_numeric_weight_rejected(self, bad):
        with pytest.raises(ConfigurationError) as exc_info:
            _config(weights=_weights(credit_history=bad))
        assert exc_info.value.constraint == "finite_number"

    def test_zero_weight_allowed(self):
        config = _config(weights=_weights(market_conditions=0, debt_to_income_ratio=15))
        assert config.weight_for(RiskFactor.MARKET_CONDITIONS) == 0


class TestThresholdValidation:
    @pytest.mark.parametrize("low,medium,high", [(50, 30, 70), (30, 30, 70), (30, 70, 70)])
    def test_not_strictly_ascending_rejected(self, low, medium, high):
        with pytest.raises(ConfigurationError, match="strictly ascending"):
            _config(thresholds=RiskThresholds(low, medium, high))

    def test_out_of_range_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _config(thresholds=RiskThresholds(30, 50, 120))
        assert exc_info.value.constraint == "range_0_100"

    def test_cutoff_out_of_range_rejected(self):
        with pytest.raises(ConfigurationError, match="auto_reject_threshold"):
            _config(auto_reject_threshold=101)

    def test_overlapping_cutoffs_allowed(self):
        config = _config(auto_approve_threshold=60, auto_reject_threshold=40)
        assert config.auto_approve_threshold > config.auto_reject_threshold

    def test_empty_version_rejected(self):
        with pytest.raises(ConfigurationError, match="version"):
            _config(version="  ")

    def test_replace_revalidates(self):
        config = _config()
        with pytest.raises(ConfigurationError):
            replace(config, thresholds=RiskThresholds(70, 50, 30))


class TestRecords:
    def test_record_round_trip(self):
        created = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        config = _config(name="Strict", description="Tighter cutoffs", created_by="risk-team", created_at=created)
        record = config.to_record()
        assert record["weight_credit_history"] == 30
        assert record["threshold_high_risk"] == 70
        assert record["created_at"] == "2025-01-02T03:04:05+00:00"

        restored = RiskConfiguration.from_record(record)
        assert restored == config
        assert restored.created_at == created

    def test_missing_column_rejected(self):
        record = _config().to_record()
        del record["weight_collateral"]
        with pytest.raises(ConfigurationError, match="weight_collateral") as exc_info:
            RiskConfiguration.from_record(record)
        assert exc_info.value.constraint == "required"

    def test_tampered_record_revalidated(self):
        record = _config().to_record()
        record["weight_employment"] = 50
        with pytest.raises(ConfigurationError, match="sum to 100"):
            RiskConfiguration.from_record(record)
