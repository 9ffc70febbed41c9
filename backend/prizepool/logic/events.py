"""
Tournament event bus.

Writers publish after their transaction commits, so subscribers never observe state that
could still roll back. Delivery is best effort; the database remains the source of truth.
"""

import abc
import asyncio
from enum import auto

from pydantic import BaseModel, Field

from prizepool.utils.id_types import TournamentId
from prizepool.utils.logging import logger
from prizepool.utils.types import EnumAutoStr, JsonDict

SUBSCRIBER_QUEUE_SIZE = 100


class TournamentEventType(EnumAutoStr):
    STANDINGS_UPDATED = auto()
    ROUND_STARTED = auto()
    TOURNAMENT_STARTED = auto()
    TOURNAMENT_COMPLETED = auto()
    TOURNAMENT_CANCELLED = auto()
    LEDGER_UPDATED = auto()
    PAYOUT_UPDATED = auto()


class TournamentEvent(BaseModel):
    type: TournamentEventType
    tournament_id: TournamentId
    payload: JsonDict = Field(default_factory=dict)

    @property
    def channel(self) -> str:
        return tournament_channel(self.tournament_id)


def tournament_channel(tournament_id: TournamentId) -> str:
    return f"tournament:{tournament_id}"


class EventSubscription:
    def __init__(self, bus: "InMemoryEventBus", channel: str) -> None:
        self.bus = bus
        self.channel = channel
        self.queue: asyncio.Queue[TournamentEvent] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)

    async def get(self) -> TournamentEvent:
        return await self.queue.get()

    def close(self) -> None:
        self.bus.unsubscribe(self)

    def __aiter__(self) -> "EventSubscription":
        return self

    async def __anext__(self) -> TournamentEvent:
        return await self.get()


class EventBus(abc.ABC):
    @abc.abstractmethod
    async def publish(self, event: TournamentEvent) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def subscribe(self, channel: str) -> EventSubscription:
        raise NotImplementedError

    @abc.abstractmethod
    async def close(self) -> None:
        raise NotImplementedError


class InMemoryEventBus(EventBus):
    """Single-process bus; a multi-instance deployment swaps in a broker-backed bus."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, set[EventSubscription]] = {}

    async def publish(self, event: TournamentEvent) -> None:
        for subscription in list(self._subscriptions.get(event.channel, ())):
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Dropping {event.type} for slow subscriber on {event.channel}")

    def subscribe(self, channel: str) -> EventSubscription:
        subscription = EventSubscription(self, channel)
        self._subscriptions.setdefault(channel, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: EventSubscription) -> None:
        subscriptions = self._subscriptions.get(subscription.channel)
        if subscriptions is None:
            return
        subscriptions.discard(subscription)
        if len(subscriptions) < 1:
            del self._subscriptions[subscription.channel]

    async def close(self) -> None:
        self._subscriptions.clear()


event_bus: EventBus = InMemoryEventBus()


async def publish_tournament_event(
    event_type: TournamentEventType, tournament_id: TournamentId, **payload: object
) -> None:
    await event_bus.publish(
        TournamentEvent(type=event_type, tournament_id=tournament_id, payload=payload)
    )


def subscribe_to_tournament(tournament_id: TournamentId) -> EventSubscription:
    return event_bus.subscribe(tournament_channel(tournament_id))
