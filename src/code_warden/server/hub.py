"""Subscription-filtered fan-out of live events to connected observers."""

from __future__ import annotations

import asyncio
import itertools
import logging
import queue
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .events import LiveEvent, parse_subscription

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 32
DEFAULT_MAX_MESSAGE_BYTES = 64 * 1024


class Subscriber:
    """One connected observer.

    Owns its subscription set and a bounded outbound queue.  When the
    queue belongs to an event loop running in another thread, messages are
    handed over with ``call_soon_threadsafe``.
    """

    def __init__(
        self,
        subscriber_id: int,
        queue: Any,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.id = subscriber_id
        self.queue = queue
        self.loop = loop
        self.subscriptions: set[str] = set()
        self.closed = False

    def offer(self, message: dict[str, Any]) -> bool:
        """Queue *message* without blocking; False if it was dropped."""
        if self.closed:
            return False
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        try:
            if self.loop is None or running is self.loop:
                self.queue.put_nowait(message)
                return True
            if self.queue.full():
                logger.debug("Queue of subscriber %d full, dropping message", self.id)
                return False
            self.loop.call_soon_threadsafe(self._put_quietly, message)
            return True
        except (asyncio.QueueFull, queue.Full):
            logger.debug("Queue of subscriber %d full, dropping message", self.id)
            return False
        except RuntimeError as exc:
            # owning loop already closed
            logger.debug("Dropping message for subscriber %d: %s", self.id, exc)
            return False

    def _put_quietly(self, message: dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.debug("Queue of subscriber %d full, dropping message", self.id)


class LiveUpdateHub:
    """Routes each event only to observers subscribed to its repository.

    Thread-safe: the scan pipeline broadcasts from worker threads while the
    Starlette handlers connect, subscribe and disconnect.
    """

    def __init__(
        self,
        is_valid_slug: Callable[[str], bool],
        queue_size: int = DEFAULT_QUEUE_SIZE,
        max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES,
    ) -> None:
        self._is_valid_slug = is_valid_slug
        self._queue_size = queue_size
        self._max_message_bytes = max_message_bytes
        self._lock = threading.RLock()
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count(1)

    def connect(
        self,
        queue: Any = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> Subscriber:
        """Register a new observer with an empty subscription set."""
        if queue is None:
            queue = asyncio.Queue(maxsize=self._queue_size)
        with self._lock:
            subscriber = Subscriber(next(self._ids), queue, loop)
            self._subscribers[subscriber.id] = subscriber
        logger.debug("Observer %d connected", subscriber.id)
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        """Forget *subscriber* and all of its subscriptions. Idempotent."""
        with self._lock:
            self._subscribers.pop(subscriber.id, None)
            subscriber.closed = True
            subscriber.subscriptions.clear()
        logger.debug("Observer %d disconnected", subscriber.id)

    @contextmanager
    def connection(
        self,
        queue: Any = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> Iterator[Subscriber]:
        """``connect`` paired with a guaranteed ``disconnect``."""
        subscriber = self.connect(queue, loop)
        try:
            yield subscriber
        finally:
            self.disconnect(subscriber)

    def subscribe(self, subscriber: Subscriber, slug: str) -> bool:
        if not self._is_valid_slug(slug):
            logger.debug("Observer %d asked for unknown repository %r", subscriber.id, slug)
            return False
        with self._lock:
            if subscriber.id not in self._subscribers:
                return False
            subscriber.subscriptions.add(slug)
        return True

    def handle_message(self, subscriber: Subscriber, raw: Any) -> bool:
        """Apply an inbound message; anything but a valid subscribe is dropped."""
        slug = parse_subscription(raw, self._max_message_bytes)
        if slug is None:
            logger.debug("Dropped malformed message from observer %d", subscriber.id)
            return False
        return self.subscribe(subscriber, slug)

    def broadcast(self, event: LiveEvent) -> int:
        """Deliver *event* to its subscribers; returns how many got it.

        Never blocks and never raises for a failing observer.
        """
        with self._lock:
            targets = [s for s in self._subscribers.values() if event.slug in s.subscriptions]

        message = event.to_dict()
        delivered = 0
        for subscriber in targets:
            if subscriber.offer(message):
                delivered += 1
        return delivered

    def observer_count(self, slug: Optional[str] = None) -> int:
        """Connected observers, or those subscribed to *slug*."""
        with self._lock:
            if slug is None:
                return len(self._subscribers)
            return sum(1 for s in self._subscribers.values() if slug in s.subscriptions)
