"""In-process broadcast hub for live viewers.

Every outcome is pushed to all attached subscribers and remembered as the
current "projector text" so late viewers can catch up with a plain read.
Delivery never awaits a viewer: each subscriber owns a bounded queue and the
oldest undelivered message is dropped when it overflows.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import AsyncIterator

import structlog

from lingorelay.domain.exceptions import PersistenceError
from lingorelay.domain.value_objects import (
    BroadcastMessage,
    Failure,
    Success,
    TranslationOutcome,
)
from lingorelay.ports.outbound import BroadcastStateRepository
from lingorelay.shared.observability.metrics import (
    BROADCAST_DROPPED,
    BROADCAST_MESSAGES,
    BROADCAST_SUBSCRIBERS,
)

logger = structlog.get_logger(__name__)

_CLOSED = object()


class Subscriber:
    """Delivery channel to one viewer, FIFO with drop-oldest overflow."""

    def __init__(self, queue_size: int = 32) -> None:
        self.id = uuid.uuid4().hex
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, message: BroadcastMessage) -> bool:
        """Enqueue without waiting. Returns False once the subscriber is closed."""
        if self._closed:
            return False
        self._put(message)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._put(_CLOSED)

    async def receive(self) -> BroadcastMessage | None:
        """Next message, or ``None`` after the subscriber is closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def __aiter__(self) -> AsyncIterator[BroadcastMessage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[BroadcastMessage]:
        while True:
            message = await self.receive()
            if message is None:
                return
            yield message

    def _put(self, item: object) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self.dropped += 1
            BROADCAST_DROPPED.inc()
            logger.warning("broadcast_message_dropped", subscriber=self.id, dropped=self.dropped)
            self._queue.put_nowait(item)


class BroadcastHub:
    """Fan-out of outcomes plus the durable last-broadcast slot."""

    def __init__(
        self,
        repository: BroadcastStateRepository,
        *,
        queue_size: int = 32,
        waiting_placeholder: str = "",
        failure_prefix: str = "[Translation failed]",
    ) -> None:
        self._repository = repository
        self._queue_size = queue_size
        self._waiting = waiting_placeholder
        self._failure_prefix = failure_prefix

        self._subscribers: dict[str, Subscriber] = {}
        self._last = ""
        # Serialises slot update + fan-out so each viewer sees the slot's order
        self._lock = asyncio.Lock()

    @property
    def last_broadcast(self) -> str:
        """Raw slot value; empty when nothing is shown."""
        return self._last

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def current_text(self) -> str:
        return self._last or self._waiting

    async def restore(self) -> None:
        """Load the persisted slot at startup."""
        try:
            stored = await self._repository.load()
        except PersistenceError as exc:
            logger.error("broadcast_state_unreadable", error=exc.message)
            return
        self._last = stored or ""
        logger.info("broadcast_state_restored", has_text=bool(self._last))

    # ── Publishing ───────────────────────────────────────────
    async def publish(self, outcome: TranslationOutcome) -> BroadcastMessage:
        if isinstance(outcome, Success):
            text = outcome.text
        elif isinstance(outcome, Failure):
            text = outcome.placeholder(self._failure_prefix)
        else:
            raise TypeError(f"unsupported outcome: {outcome!r}")
        message = BroadcastMessage.translation(text)
        await self._broadcast(text, message)
        return message

    async def clear(self) -> None:
        await self._broadcast("", BroadcastMessage.clear())

    async def _broadcast(self, slot: str, message: BroadcastMessage) -> None:
        async with self._lock:
            # Slot and queues change together with no await in between
            self._last = slot
            delivered = 0
            for sub in list(self._subscribers.values()):
                if sub.offer(message):
                    delivered += 1
                else:
                    self._subscribers.pop(sub.id, None)

            try:
                await self._repository.save(slot)
            except PersistenceError as exc:
                logger.error("broadcast_state_not_persisted", error=exc.message)

        BROADCAST_MESSAGES.labels(type=message.type.value).inc()
        BROADCAST_SUBSCRIBERS.set(len(self._subscribers))
        logger.info("broadcast_sent", type=message.type.value, subscribers=delivered)

    # ── Subscriptions ────────────────────────────────────────
    def subscribe(self) -> Subscriber:
        sub = Subscriber(self._queue_size)
        self._subscribers[sub.id] = sub
        BROADCAST_SUBSCRIBERS.set(len(self._subscribers))
        logger.debug("broadcast_subscribed", subscriber=sub.id, total=len(self._subscribers))
        return sub

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Detach ``subscriber``; safe to call more than once."""
        removed = self._subscribers.pop(subscriber.id, None)
        subscriber.close()
        if removed is not None:
            BROADCAST_SUBSCRIBERS.set(len(self._subscribers))
            logger.debug(
                "broadcast_unsubscribed", subscriber=subscriber.id, total=len(self._subscribers)
            )

    async def close(self) -> None:
        """Close every subscriber (shutdown)."""
        async with self._lock:
            for sub in self._subscribers.values():
                sub.close()
            self._subscribers.clear()
        BROADCAST_SUBSCRIBERS.set(0)
