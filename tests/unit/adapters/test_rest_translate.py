"""Tests for the /translate handler's handling of callers that hang up."""

from __future__ import annotations

import asyncio

import pytest
from starlette.requests import Request

from conftest import FakeProvider, ok
from lingorelay.adapters.inbound.rest.routers import translate
from lingorelay.adapters.outbound.broadcast import BroadcastHub
from lingorelay.adapters.outbound.persistence.repositories import InMemoryBroadcastStateRepository
from lingorelay.application.dtos import TranslateRequest, TranslateResponse
from lingorelay.application.services import TranslationService
from lingorelay.shared.providers.gateway import FailoverGateway


def _request(receive) -> Request:
    return Request({"type": "http", "method": "POST", "path": "/translate", "headers": []}, receive)


async def _hung_up():
    return {"type": "http.disconnect"}


async def _still_connected():
    await asyncio.Event().wait()


@pytest.fixture
def make_service(make_store):
    async def _make(provider: FakeProvider) -> TranslationService:
        store = make_store([provider])
        await store.load()
        hub = BroadcastHub(InMemoryBroadcastStateRepository(), waiting_placeholder="waiting")
        return TranslationService(FailoverGateway([provider], store), hub)

    return _make


class TestTranslateDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_cancels_provider_call(self, make_service):
        provider = FakeProvider("P1", [5.0], timeout_s=10.0)
        service = await make_service(provider)
        sub = service.hub.subscribe()

        resp = await asyncio.wait_for(
            translate(TranslateRequest(text="hello"), _request(_hung_up), service), 1.0
        )

        assert resp.status_code == 499
        assert sub.pending == 0
        assert service.current_text() == "waiting"
        assert (await service.gateway.quota.snapshot())["P1"].used == 0

    @pytest.mark.asyncio
    async def test_connected_client_gets_translation(self, make_service):
        service = await make_service(FakeProvider("P1", [ok("salam")]))

        resp = await translate(TranslateRequest(text="hello"), _request(_still_connected), service)

        assert isinstance(resp, TranslateResponse)
        assert resp.translation == "salam"
        assert service.current_text() == "salam"
