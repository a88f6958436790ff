"""
Tests for pool config validation and decision records.
"""

import logging

import pytest

from impact_guard.engine import (
    OVERRIDE_FEE_FLAG,
    AdminCredential,
    AggregationMode,
    ConfigurationError,
    Decision,
    FeeTier,
    PoolConfig,
    ReferencePool,
)

from .conftest import REFERENCE, REFERENCE_2, make_config


class TestPoolConfigValidation:
    """Registration-time checks."""

    def test_valid_config_passes(self):
        config = make_config()
        assert config.validate() is config

    def test_list_references_become_tuple(self):
        config = make_config(references=[ReferencePool(REFERENCE)])
        assert isinstance(config.references, tuple)

    def test_empty_reference_list(self):
        with pytest.raises(ConfigurationError, match="must not be empty"):
            make_config(references=()).validate()

    def test_too_many_references(self):
        refs = tuple(ReferencePool("0x" + f"{i:02x}" * 32) for i in range(6))
        with pytest.raises(ConfigurationError, match="Too many reference pools"):
            make_config(references=refs).validate()

    def test_custom_reference_limit(self):
        with pytest.raises(ConfigurationError, match="2 > 1"):
            make_config(references=(REFERENCE, REFERENCE_2)).validate(max_references=1)

    def test_unknown_aggregation_mode(self):
        with pytest.raises(ConfigurationError, match="Unknown aggregation mode"):
            make_config(aggregation_mode=7).validate()

    def test_integer_mode_is_resolved(self):
        validated = make_config(aggregation_mode=1).validate()
        assert validated.aggregation_mode is AggregationMode.MEDIAN

    def test_fee_out_of_range(self):
        with pytest.raises(ConfigurationError, match="elevated_fee"):
            make_config(elevated_fee=1_000_001).validate()

    def test_negative_threshold(self):
        with pytest.raises(ConfigurationError, match="reject_threshold_bps"):
            make_config(reject_threshold_bps=-1).validate()

    def test_strict_rejects_inverted_fees(self):
        with pytest.raises(ConfigurationError, match="elevated_fee 1000 < base_fee 3000"):
            make_config(elevated_fee=1000).validate(strict=True)

    def test_strict_rejects_inverted_thresholds(self):
        with pytest.raises(ConfigurationError, match="reject_threshold_bps 100 <"):
            make_config(reject_threshold_bps=100).validate(strict=True)

    def test_permissive_accepts_and_warns(self, caplog):
        caplog.set_level(logging.WARNING)
        config = make_config(elevated_fee=1000, reject_threshold_bps=100)

        assert config.validate(strict=False) is config
        assert "Accepting inverted tier ordering" in caplog.text


class TestPoolConfigSerialization:

    def test_round_trip(self):
        config = make_config(
            references=(ReferencePool(REFERENCE, inverted=True), REFERENCE_2),
            aggregation_mode=AggregationMode.MEDIAN,
            max_reference_move_cap_bps=500,
        )
        assert PoolConfig.from_dict(config.to_dict()) == config

    def test_dict_form(self):
        data = make_config().to_dict()

        assert data["aggregation_mode"] == "maximum"
        assert data["references"] == [{"pool_id": REFERENCE, "inverted": False}]

    def test_defaults_for_optional_keys(self):
        config = PoolConfig.from_dict({
            "references": [{"pool_id": REFERENCE}],
            "base_fee": 3000,
            "elevated_fee": 10000,
            "elevated_threshold_bps": 200,
            "reject_threshold_bps": 1000,
        })
        assert config.max_reference_move_cap_bps == 0
        assert config.aggregation_mode is AggregationMode.MAXIMUM
        assert config.references[0].inverted is False

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="Invalid pool config"):
            PoolConfig.from_dict({"references": []})

    def test_bad_reference_entry(self):
        with pytest.raises(ConfigurationError, match="Invalid reference pool entry"):
            ReferencePool.from_dict({"inverted": True})


class TestDecision:

    def test_allowed_and_override_fee(self):
        decision = Decision("pool", FeeTier.ELEVATED, 10000, 500, 100, 400)

        assert decision.allowed is True
        assert decision.override_fee == 10000 | OVERRIDE_FEE_FLAG

    def test_rejected(self):
        decision = Decision("pool", FeeTier.REJECTED, None, 5000, 0, 5000, reason="too much")

        assert decision.allowed is False
        assert decision.override_fee is None

    def test_to_dict_stringifies_prices(self):
        decision = Decision("pool", FeeTier.BASE, 3000, 10, 0, 10, reference_sqrt_prices=(2**100,))
        data = decision.to_dict()

        assert data["tier"] == "base"
        assert data["reference_sqrt_prices"] == [str(2**100)]
        assert data["timestamp"].endswith("+00:00")


class TestAdminCredential:

    def test_matching_is_case_insensitive(self):
        assert AdminCredential("0xABcd").matches("0xabCD")

    def test_other_identity(self):
        assert not AdminCredential("0xabcd").matches("0xdead")

    def test_blank_identity_never_matches(self):
        assert not AdminCredential("").matches("")
        assert not AdminCredential("0xabcd").matches("")
