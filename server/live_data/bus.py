"""
In-Memory Pub/Sub Bus

Typed, synchronous publish/subscribe between the pipelines and their
consumers. Subscribers register a callback on a Topic; publish() invokes
every callback for that topic in registration order.

    bus = PubSub()
    sub = bus.subscribe(Topic.MARKET_UPDATE, on_markets)
    bus.publish(Topic.MARKET_UPDATE, snapshots)   # on_markets(snapshots)
    sub.cancel()
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class Topic(str, Enum):
    """Published event kinds."""

    MARKET_UPDATE = "marketUpdate"
    NEWS_UPDATE = "newsUpdate"


@dataclass(eq=False)
class Subscription:
    """Handle returned by subscribe(); pass to unsubscribe() or call cancel()."""

    topic: Topic
    callback: Callback
    id: int
    _bus: Optional[PubSub] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._bus is not None and self._bus.is_subscribed(self)

    def cancel(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(self)


class PubSub:
    """
    In-memory pub/sub with per-topic subscriber lists.

    - publish iterates over a snapshot of the subscriber list, so callbacks
      may subscribe or unsubscribe (themselves or others) while it runs.
      Changes take effect from the next publish.
    - Each callback runs in its own failure boundary: an exception is logged
      and the remaining callbacks are still invoked.
    """

    __slots__ = ("_subs", "_ids", "_callback_failures")

    def __init__(self) -> None:
        self._subs: dict[Topic, list[Subscription]] = {topic: [] for topic in Topic}
        self._ids = itertools.count(1)
        self._callback_failures = 0

    def subscribe(self, topic: Union[Topic, str], cb: Callback) -> Subscription:
        topic = Topic(topic)
        sub = Subscription(topic=topic, callback=cb, id=next(self._ids), _bus=self)
        # Rebind rather than append so in-progress publishes keep their snapshot.
        self._subs[topic] = [*self._subs[topic], sub]
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        current = self._subs.get(sub.topic, [])
        if sub not in current:
            return False
        self._subs[sub.topic] = [s for s in current if s is not sub]
        return True

    def is_subscribed(self, sub: Subscription) -> bool:
        return sub in self._subs.get(sub.topic, [])

    def publish(self, topic: Union[Topic, str], payload: Any) -> int:
        """
        Fan out payload to every subscriber of topic.

        Returns the number of callbacks that completed without raising.
        """
        topic = Topic(topic)
        delivered = 0

        for sub in self._subs[topic]:
            try:
                sub.callback(payload)
            except Exception:
                self._callback_failures += 1
                logger.exception(
                    f"Subscriber {sub.id} on {topic.value} raised; continuing fan-out"
                )
                continue
            delivered += 1

        return delivered

    def subscriber_count(self, topic: Optional[Union[Topic, str]] = None) -> int:
        if topic is None:
            return sum(len(subs) for subs in self._subs.values())
        return len(self._subs[Topic(topic)])

    @property
    def callback_failures(self) -> int:
        return self._callback_failures
