"""In-process event hub.

The hub is the simplest transport behind the ``Publisher`` contract: every
dashboard session (or test) subscribes to a topic and receives the events
published on it from then on. There is no replay log; a subscription created
after an event was published never sees that event.

Subscribers of ``GLOBAL_TOPIC`` receive every event regardless of its topic,
which gives operators a fleet-wide view while owners only see their channel.

Events for one topic are delivered in publish order: callbacks run
synchronously in the publishing thread and queued subscriptions are appended
in order.
"""

from collections import defaultdict
from collections.abc import Callable, Iterator
import logging
from queue import Empty, Queue
import threading

from .event import GLOBAL_TOPIC, Event, EventKind
from .publisher import Publisher

logger = logging.getLogger(__name__)

EventCallback = Callable[[Event], None]


class Subscription:
    """A live listener on one topic.

    Events are either handed to ``callback`` as they are published or, without
    a callback, buffered in a queue the consumer drains with ``get`` or by
    iterating.

    Attributes:
        topic (str): Subscribed topic.
    """

    def __init__(self, hub: "EventHub", topic: str, callback: EventCallback | None = None):
        self.topic = topic
        self._hub = hub
        self._callback = callback
        self._queue: Queue[Event] = Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: Event) -> None:
        if self._closed:
            return
        if self._callback is None:
            self._queue.put(event)
            return
        try:
            self._callback(event)
        except Exception:
            logger.exception("Subscriber callback on %s failed for %s", self.topic, event.kind.value)

    def get(self, timeout: float | None = None) -> Event | None:
        """Next buffered event, or None when nothing arrived within ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def drain(self) -> list[Event]:
        """All buffered events, oldest first, without blocking."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except Empty:
                return events

    def __iter__(self) -> Iterator[Event]:
        return iter(self.drain())

    def close(self) -> None:
        """Detach from the hub; buffered events stay readable."""
        if not self._closed:
            self._closed = True
            self._hub._unsubscribe(self)


class EventHub(Publisher):
    """Topic-keyed fan-out to in-process subscribers.

    Example:
        >>> hub = EventHub()
        >>> sub = hub.subscribe("user_42")
        >>> hub.publish("user_42", EventKind.DRONE_UPDATE, {"id": "d1"})
        >>> [e.payload for e in sub.drain()]
        [{'id': 'd1'}]
    """

    def __init__(self):
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()
        self.published_count = 0

    def subscribe(self, topic: str, callback: EventCallback | None = None) -> Subscription:
        subscription = Subscription(self, topic, callback)
        with self._lock:
            self._subscribers[topic].append(subscription)
        logger.debug("New subscriber on %s", topic)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._subscribers.get(subscription.topic, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscribers.pop(subscription.topic, None)

    def subscriber_count(self, topic: str | None = None) -> int:
        with self._lock:
            if topic is not None:
                return len(self._subscribers.get(topic, []))
            return sum(len(subs) for subs in self._subscribers.values())

    def publish(self, topic: str, kind: EventKind, payload: dict) -> None:
        event = Event(kind=kind, topic=topic, payload=payload)
        with self._lock:
            targets = list(self._subscribers.get(topic, []))
            if topic != GLOBAL_TOPIC:
                targets.extend(self._subscribers.get(GLOBAL_TOPIC, []))
            self.published_count += 1

        for subscription in targets:
            subscription.deliver(event)
