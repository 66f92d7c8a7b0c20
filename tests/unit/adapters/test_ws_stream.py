"""Tests for the viewer WebSocket handler outside a running server."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from lingorelay.adapters.inbound.ws import projector_stream
from lingorelay.adapters.outbound.broadcast import BroadcastHub
from lingorelay.adapters.outbound.persistence.repositories import InMemoryBroadcastStateRepository
from lingorelay.domain.value_objects import Success


class HandshakeFailsSocket:
    """Just enough of a WebSocket for the handler to reach ``accept``."""

    def __init__(self, hub: BroadcastHub) -> None:
        self.app = SimpleNamespace(state=SimpleNamespace(container=SimpleNamespace(hub=hub)))
        self.sent: list[str] = []

    async def accept(self) -> None:
        raise RuntimeError("client went away during handshake")

    async def send_text(self, data: str) -> None:
        self.sent.append(data)


class TestProjectorStream:
    @pytest.mark.asyncio
    async def test_failed_handshake_unsubscribes_viewer(self):
        hub = BroadcastHub(InMemoryBroadcastStateRepository())
        ws = HandshakeFailsSocket(hub)

        await projector_stream(ws, catch_up=True)

        assert hub.subscriber_count == 0
        await hub.publish(Success("after"))
        assert ws.sent == []
