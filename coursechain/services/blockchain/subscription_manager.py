"""
Live event subscriptions.

A background poller fetches course contract logs for every new block range,
decodes them and pushes the resulting CourseEvents onto a queue. A separate
dispatcher task drains the queue and invokes the registered handlers, so slow
handlers never stall log polling and per-kind delivery order is preserved.

The handler registry is only touched from the event loop thread, which makes
registration and teardown safe without a lock.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from coursechain.config.constants import (
    EVENT_MAX_BLOCK_RANGE,
    EVENT_POLL_ERROR_DELAY,
    EVENT_POLL_INTERVAL,
)
from coursechain.utils.exceptions import is_retryable

from .core_constants import EventKind
from .event_decoder import EventDecoder
from .results import CourseEvent


EventHandler = Callable[[CourseEvent], Awaitable[None] | None]


@dataclass(eq=False)
class Subscription:
    """Handle for one registered handler."""

    kind: EventKind
    handler: EventHandler
    _manager: "SubscriptionManager" = field(repr=False)
    active: bool = True

    def cancel(self) -> None:
        """Remove this handler. Safe to call more than once."""
        self._manager._remove(self)


class SubscriptionManager:
    """
    Registers handlers for course events and feeds them from the chain.

    Features:
    - Lazy start: the listener tasks start with the first subscription
    - Exactly-once delivery per decoded log while the listener runs
    - Idempotent teardown
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        decoder: EventDecoder,
        course_count: Callable[[], Awaitable[int]] | None = None,
        poll_interval: float = EVENT_POLL_INTERVAL,
        error_delay: float = EVENT_POLL_ERROR_DELAY,
        max_block_range: int = EVENT_MAX_BLOCK_RANGE,
    ) -> None:
        """
        Initialize subscription manager.

        Args:
            web3: AsyncWeb3 instance
            decoder: Event decoder for fetched logs
            course_count: Optional coroutine returning the current course
                count; events above it are dropped
            poll_interval: Seconds between polls for new blocks
            error_delay: Seconds to back off after a failed poll
            max_block_range: Max blocks requested per eth_getLogs call
        """
        self.web3 = web3
        self.decoder = decoder
        self.course_count = course_count
        self.poll_interval = poll_interval
        self.error_delay = error_delay
        self.max_block_range = max_block_range

        self._handlers: dict[EventKind, list[Subscription]] = {
            kind: [] for kind in EventKind
        }
        self._poller: asyncio.Task | None = None
        self._dispatcher: asyncio.Task | None = None
        self._stopped_tasks: list[asyncio.Task] = []
        self._next_block: int | None = None

    @property
    def is_running(self) -> bool:
        return self._poller is not None and not self._poller.done()

    @property
    def handler_count(self) -> int:
        return sum(len(subs) for subs in self._handlers.values())

    def subscribe(self, kind: EventKind | str, handler: EventHandler) -> Subscription:
        """
        Register a handler for an event kind.

        Returns immediately; the listener starts in the background if it is
        not running yet. Must be called from within a running event loop.

        Args:
            kind: Event kind (EventKind or its name, e.g. "CourseCreated")
            handler: Sync or async callable taking a CourseEvent

        Returns:
            Subscription handle
        """
        kind = EventKind(kind)
        subscription = Subscription(kind=kind, handler=handler, _manager=self)
        self._handlers[kind].append(subscription)
        logger.info(f"Subscribed to {kind} ({self.handler_count} handler(s) total)")
        self._ensure_running()
        return subscription

    def unsubscribe_all(self) -> None:
        """
        Remove every handler and stop the listener.

        Safe to call repeatedly and when nothing is registered.
        """
        removed = 0
        for subscriptions in self._handlers.values():
            for subscription in subscriptions:
                subscription.active = False
            removed += len(subscriptions)
            subscriptions.clear()

        self._stop_tasks()
        if removed:
            logger.info(f"Stopped listening to all events ({removed} handler(s) removed)")

    async def aclose(self) -> None:
        """Remove every handler and wait for the listener tasks to finish."""
        self.unsubscribe_all()
        tasks, self._stopped_tasks = self._stopped_tasks, []
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._handlers[subscription.kind]
        subscription.active = False
        if subscription in subscriptions:
            subscriptions.remove(subscription)
            logger.debug(f"Unsubscribed handler from {subscription.kind}")
        if self.handler_count == 0:
            self._stop_tasks()

    def _ensure_running(self) -> None:
        if self.is_running:
            return

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[CourseEvent] = asyncio.Queue()
        self._next_block = None
        self._poller = loop.create_task(
            self._poll_loop(queue), name="course-event-poller"
        )
        self._dispatcher = loop.create_task(
            self._dispatch_loop(queue), name="course-event-dispatcher"
        )
        logger.info("Course event listener started")

    def _stop_tasks(self) -> None:
        self._stopped_tasks = [t for t in self._stopped_tasks if not t.done()]
        for task in (self._poller, self._dispatcher):
            if task is not None and not task.done():
                task.cancel()
                self._stopped_tasks.append(task)
        self._poller = None
        self._dispatcher = None

    async def _poll_loop(self, queue: asyncio.Queue) -> None:
        while True:
            try:
                await self.poll_once(queue)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if is_retryable(e):
                    logger.warning(
                        f"Event poll failed: {e}. Retrying in {self.error_delay}s..."
                    )
                else:
                    # The listener only stops through teardown
                    logger.error(
                        f"Event poll failed with {e.__class__.__name__}: {e}. "
                        f"Retrying in {self.error_delay}s..."
                    )
                await asyncio.sleep(self.error_delay)
                continue
            await asyncio.sleep(self.poll_interval)

    async def poll_once(self, queue: asyncio.Queue) -> int:
        """
        Fetch, decode and enqueue the events of newly mined blocks.

        The first call only records the chain head, so the listener reports
        events from blocks mined after it started. The block cursor advances
        only after a range was fetched and decoded successfully.

        Returns:
            Number of events enqueued
        """
        latest = await self.web3.eth.block_number

        if self._next_block is None:
            self._next_block = latest + 1
            logger.debug(f"Event listener starting after block {latest}")
            return 0

        if latest < self._next_block:
            return 0

        from_block = self._next_block
        to_block = min(latest, from_block + self.max_block_range - 1)

        logs = await self.web3.eth.get_logs(
            {
                "address": self.decoder.contract_address,
                "fromBlock": from_block,
                "toBlock": to_block,
                "topics": [[self.decoder.topic_for(kind) for kind in EventKind]],
            }
        )

        max_course_id = None
        if logs and self.course_count is not None:
            max_course_id = await self.course_count()

        events = self.decoder.decode_logs(logs, max_course_id=max_course_id)
        events.sort(key=lambda event: (event.block_number, event.log_index))
        for event in events:
            queue.put_nowait(event)

        self._next_block = to_block + 1
        if events:
            logger.debug(
                f"Blocks {from_block}-{to_block}: {len(events)} course event(s)"
            )
        return len(events)

    async def _dispatch_loop(self, queue: asyncio.Queue) -> None:
        while True:
            event = await queue.get()
            try:
                await self._dispatch(event)
            finally:
                queue.task_done()

    async def _dispatch(self, event: CourseEvent) -> None:
        for subscription in list(self._handlers[event.kind]):
            if not subscription.active:
                continue
            try:
                result: Any = subscription.handler(event)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"{event.kind} handler failed for course {event.course_id}: {e}"
                )
