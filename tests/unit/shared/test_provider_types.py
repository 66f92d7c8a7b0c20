"""Tests for static provider configuration."""

from __future__ import annotations

from dataclasses import fields

import pytest

from lingorelay.shared.providers.types import ProviderConfig, ProviderTier


class TestProviderConfig:
    def test_fields(self):
        assert [f.name for f in fields(ProviderConfig)] == [
            "name",
            "tier",
            "capacity",
            "priority",
            "timeout_s",
        ]

    def test_configs_are_hashable(self):
        paid = ProviderConfig(name="RapidAPI-Primary", capacity=1000, priority=1)
        free = ProviderConfig(name="LibreTranslate", tier=ProviderTier.FREE, priority=2)
        by_config = {paid: "paid", free: "free"}
        assert by_config[ProviderConfig(name="RapidAPI-Primary", capacity=1000, priority=1)] == "paid"
        assert free.is_unlimited and not paid.is_unlimited

    @pytest.mark.parametrize("kwargs", [{"capacity": -1}, {"timeout_s": 0}])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ProviderConfig(name="P1", **kwargs)
