"""Event Bus — in-process publish/subscribe channel for committed mutations.

Invariants:
    - publish() snapshots the current subscribers; later subscribers never see the event
    - Events are delivered in publish order, each to its handlers in subscription order
    - Each event is delivered no earlier than delivery_delay_ms after it was published
    - A handler that raises is logged and skipped; remaining handlers still receive the event
    - A subscription released before delivery is skipped (disposed views get nothing)
    - No replay, no persistence: events published while nobody listens are gone

Design Decisions:
    - One dispatcher task draining an asyncio.Queue: a single consumer is what keeps
      ordering stable, per-event deadlines keep the delay from accumulating
    - Owned by the application root (main.open_backend): start() on startup, close() on shutdown
    - Subscription doubles as the unsubscribe callable and as a context manager
"""

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from roomcast.core.domain_types import EventType
from roomcast.schemas.events import Event

logger = logging.getLogger(__name__)

Handler = Callable[[Event], Awaitable[None] | None]


class Subscription:
    """Handle for one subscribed handler. Calling it unsubscribes."""

    def __init__(self, bus: "EventBus", handler: Handler):
        self._bus = bus
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._bus._remove(self)

    __call__ = unsubscribe

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


@dataclass(frozen=True)
class _Delivery:
    event: Event
    subscribers: tuple[Subscription, ...]
    deliver_at: float


class EventBus:
    """Fire-and-forget, best-effort, in-process event delivery."""

    def __init__(self, delivery_delay_ms: int = 100):
        self._delay = max(delivery_delay_ms, 0) / 1000
        self._subscriptions: list[Subscription] = []
        self._sequence = itertools.count(1)
        self._queue: asyncio.Queue[_Delivery] | None = None
        self._dispatcher: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._dispatcher is not None and not self._dispatcher.done()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._dispatcher = asyncio.create_task(
            self._dispatch_loop(), name="roomcast-event-bus",
        )
        logger.info("Event bus started")

    async def close(self, drain: bool = True) -> None:
        """Stop the dispatcher. With drain, queued events are delivered first."""
        if not self.running:
            return
        if drain:
            await self.drain()
        self._dispatcher.cancel()
        try:
            await self._dispatcher
        except asyncio.CancelledError:
            pass
        self._dispatcher = None
        self._queue = None
        logger.info("Event bus closed")

    async def drain(self) -> None:
        """Wait until every event published so far has been delivered."""
        if self._queue is not None:
            await self._queue.join()

    def subscribe(self, handler: Handler) -> Subscription:
        subscription = Subscription(self, handler)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def publish(self, event_type: EventType, payload: dict[str, Any]) -> Event:
        """Enqueue an event for every current subscriber."""
        if not self.running:
            raise RuntimeError("Event bus is not running; call start() first")
        event = Event(type=event_type, payload=payload, sequence=next(self._sequence))
        loop = asyncio.get_running_loop()
        self._queue.put_nowait(_Delivery(
            event=event,
            subscribers=tuple(self._subscriptions),
            deliver_at=loop.time() + self._delay,
        ))
        logger.debug(
            "Published %s", event_type.value,
            extra={"event_type": event_type.value, "sequence": event.sequence},
        )
        return event

    async def __aenter__(self) -> "EventBus":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _dispatch_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            delivery = await self._queue.get()
            try:
                wait = delivery.deliver_at - loop.time()
                if wait > 0:
                    await asyncio.sleep(wait)
                for subscription in delivery.subscribers:
                    if subscription.active:
                        await self._deliver(subscription, delivery.event)
            finally:
                self._queue.task_done()

    async def _deliver(self, subscription: Subscription, event: Event) -> None:
        try:
            result = subscription.handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "Event handler failed",
                extra={"event_type": event.type.value, "sequence": event.sequence},
            )
