"""Tests for container wiring."""

from __future__ import annotations

from conftest import FakeProvider
from lingorelay.config import get_settings
from lingorelay.dependencies import build_container


def test_injected_providers_share_one_hub(tmp_path):
    providers = [FakeProvider("P1"), FakeProvider("Free", capacity=None, priority=2)]

    container = build_container(get_settings(state_dir=tmp_path), providers=providers)

    assert container.client is None
    assert container.service.hub is container.hub
    assert container.service.gateway is container.gateway
    assert container.gateway.quota is container.quota
    assert container.providers == providers
