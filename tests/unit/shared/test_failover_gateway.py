"""Tests for FailoverGateway — ordering, quota skipping, timeouts, fallback."""

from __future__ import annotations

import asyncio
import time

import pytest

from conftest import FailingRepo, FakeProvider, bad, misconfigured, network, ok
from lingorelay.domain.enums import FailureReason
from lingorelay.domain.value_objects import Failure, Success
from lingorelay.shared.providers.gateway import FailoverGateway


async def _gateway(make_store, providers, **kwargs) -> FailoverGateway:
    store = make_store(providers)
    await store.load()
    return FailoverGateway(providers, store, grace_s=kwargs.pop("grace_s", 0.05))


class TestOrdering:
    @pytest.mark.asyncio
    async def test_first_provider_success(self, make_store):
        p1 = FakeProvider("P1", [ok("salam")], priority=1)
        p2 = FakeProvider("P2", priority=2)
        gateway = await _gateway(make_store, [p2, p1])

        outcome = await gateway.translate("hello")

        assert outcome == Success("salam", provider="P1")
        assert p2.calls == []

    @pytest.mark.asyncio
    async def test_empty_text_touches_nothing(self, make_store):
        p1 = FakeProvider("P1")
        gateway = await _gateway(make_store, [p1])
        assert await gateway.translate("   ") == Success("")
        assert p1.calls == []
        assert (await gateway.quota.snapshot())["P1"].used == 0

    @pytest.mark.asyncio
    async def test_text_is_trimmed_before_sending(self, make_store):
        p1 = FakeProvider("P1")
        gateway = await _gateway(make_store, [p1])
        await gateway.translate("  hi  ")
        assert p1.calls == ["hi"]


class TestCapacityScenario:
    @pytest.mark.asyncio
    async def test_two_paid_providers_then_free(self, make_store):
        p1 = FakeProvider("P1", [ok("a1"), ok("a2")], capacity=2, priority=1)
        p2 = FakeProvider("P2", [ok("b1"), ok("b2")], capacity=2, priority=2)
        p3 = FakeProvider("P3", [ok("c1")], capacity=None, priority=3)
        gateway = await _gateway(make_store, [p1, p2, p3])

        providers = [(await gateway.translate(f"t{i}")).provider for i in range(5)]

        assert providers == ["P1", "P1", "P2", "P2", "P3"]
        snap = await gateway.quota.snapshot()
        assert snap["P1"].remaining == 0
        assert snap["P2"].remaining == 0
        assert snap["P3"].used == 1

    @pytest.mark.asyncio
    async def test_skipped_provider_is_untouched(self, make_store):
        p1 = FakeProvider("P1", capacity=0, priority=1)
        p2 = FakeProvider("P2", priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        outcome = await gateway.translate("x")

        assert outcome.provider == "P2"
        assert p1.calls == []
        assert (await gateway.quota.snapshot())["P1"].used == 0

    @pytest.mark.asyncio
    async def test_all_exhausted_reports_quota(self, make_store):
        p1 = FakeProvider("P1", capacity=0, priority=1)
        p2 = FakeProvider("P2", capacity=0, priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        outcome = await gateway.translate("x")

        assert isinstance(outcome, Failure)
        assert outcome.reason is FailureReason.QUOTA_EXHAUSTED
        assert p1.calls == [] and p2.calls == []


class TestFailover:
    @pytest.mark.asyncio
    async def test_falls_back_and_stops_at_first_success(self, make_store):
        p1 = FakeProvider("P1", [network()], priority=1)
        p2 = FakeProvider("P2", [ok("ok2")], priority=2)
        p3 = FakeProvider("P3", capacity=None, priority=3)
        gateway = await _gateway(make_store, [p1, p2, p3])

        outcome = await gateway.translate("x")

        assert outcome == Success("ok2", provider="P2")
        assert p3.calls == []
        snap = await gateway.quota.snapshot()
        # Network failures never reached the vendor
        assert snap["P1"].used == 0
        assert snap["P2"].used == 1
        assert snap["P3"].used == 0

    @pytest.mark.asyncio
    async def test_bad_response_counts_against_quota(self, make_store):
        p1 = FakeProvider("P1", [bad()], priority=1)
        p2 = FakeProvider("P2", priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        await gateway.translate("x")

        assert (await gateway.quota.snapshot())["P1"].used == 1

    @pytest.mark.asyncio
    async def test_all_failed_returns_last_reason(self, make_store):
        p1 = FakeProvider("P1", [bad()], priority=1)
        p2 = FakeProvider("P2", [network()], priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        outcome = await gateway.translate("hello")

        assert isinstance(outcome, Failure)
        assert outcome.reason is FailureReason.NETWORK
        assert outcome.source_text == "hello"

    @pytest.mark.asyncio
    async def test_provider_exception_is_contained(self, make_store):
        class Exploding(FakeProvider):
            async def attempt(self, text, timeout):
                raise RuntimeError("boom")

        p1 = Exploding("P1", priority=1)
        p2 = FakeProvider("P2", priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        outcome = await gateway.translate("x")

        assert outcome.provider == "P2"

    @pytest.mark.asyncio
    async def test_hint_is_recorded(self, make_store):
        p1 = FakeProvider("P1", [ok("a", hint=0)], capacity=2, priority=1)
        p2 = FakeProvider("P2", priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        await gateway.translate("one")
        second = await gateway.translate("two")

        assert second.provider == "P2"
        assert p1.calls == ["one"]


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_hanging_provider_is_bounded(self, make_store):
        p1 = FakeProvider("P1", [5.0], timeout_s=0.1, priority=1)
        p2 = FakeProvider("P2", [ok("fast")], priority=2)
        gateway = await _gateway(make_store, [p1, p2], grace_s=0.05)

        start = time.monotonic()
        outcome = await gateway.translate("x")
        elapsed = time.monotonic() - start

        assert outcome == Success("fast", provider="P2")
        assert elapsed < 1.0
        assert (await gateway.quota.snapshot())["P1"].used == 0

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, make_store):
        p1 = FakeProvider("P1", [5.0], timeout_s=5.0, priority=1)
        gateway = await _gateway(make_store, [p1])

        task = asyncio.create_task(gateway.translate("x"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestMisconfigured:
    @pytest.mark.asyncio
    async def test_misconfigured_provider_is_disabled(self, make_store):
        p1 = FakeProvider("P1", [misconfigured()], priority=1)
        p2 = FakeProvider("P2", priority=2)
        gateway = await _gateway(make_store, [p1, p2])

        await gateway.translate("one")
        await gateway.translate("two")

        assert p1.calls == ["one"]
        assert gateway.disabled == frozenset({"P1"})
        assert (await gateway.quota.snapshot())["P1"].used == 0

    @pytest.mark.asyncio
    async def test_nothing_available(self, make_store):
        p1 = FakeProvider("P1", [misconfigured()], priority=1)
        gateway = await _gateway(make_store, [p1])

        await gateway.translate("one")
        outcome = await gateway.translate("two")

        assert isinstance(outcome, Failure)
        assert outcome.reason is FailureReason.MISCONFIGURED

    @pytest.mark.asyncio
    async def test_admin_reset_reenables(self, make_store):
        p1 = FakeProvider("P1", [misconfigured(), ok("back")], priority=1)
        gateway = await _gateway(make_store, [p1])

        await gateway.translate("one")
        await gateway.reset_provider("P1")
        outcome = await gateway.translate("two")

        assert outcome == Success("back", provider="P1")
        assert gateway.disabled == frozenset()


class TestPersistenceDegraded:
    @pytest.mark.asyncio
    async def test_translation_survives_failed_write(self, make_store):
        repo = FailingRepo()
        p1 = FakeProvider("P1", [ok("a")], priority=1)
        store = make_store([p1], repo)
        await store.load()
        gateway = FailoverGateway([p1], store)
        repo.fail_save = True

        outcome = await gateway.translate("x")

        assert outcome == Success("a", provider="P1")
        assert store.degraded
        assert await store.remaining("P1") == 1
