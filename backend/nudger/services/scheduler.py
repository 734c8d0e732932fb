"""Scheduler service - runs the notification policies once a minute.

Design:
- One APScheduler cron job fires on every minute boundary
- A pass walks every registered user and runs the Motivation, Screen Time and
  Nudge policies in that order, holding that user's lock
- Notifications are handed to the dispatcher as background tasks as soon as
  they are produced; concurrency is capped by a semaphore
- A user is not evaluated again until its own earlier dispatches have finished
- Passes never overlap, and a failure for one user never stops the pass
"""
import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Callable, Dict, List, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..models import Notification, UserState
from ..utils.time_utils import Clock, local_now
from .policies import PolicyOutcome, evaluate_motivation, evaluate_nudge, evaluate_screen_time
from .push_sender import PushDispatcher
from .quotes import QuoteRotator
from .registry import UserRegistry

logger = logging.getLogger(__name__)

# Maximum concurrent push gateway calls
MAX_CONCURRENT_DISPATCHES = 10

Policy = Callable[[UserState, datetime], PolicyOutcome]


class TickDriver:
    """Service for evaluating every user on each minute tick."""

    def __init__(
        self,
        registry: UserRegistry,
        dispatcher: PushDispatcher,
        rotator: Optional[QuoteRotator] = None,
        clock: Clock = local_now,
        max_concurrent_dispatches: int = MAX_CONCURRENT_DISPATCHES,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.rotator = rotator or QuoteRotator()
        self.clock = clock
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.evaluating = False
        self._running = False
        self._pass_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrent_dispatches)
        self._tasks: Set[asyncio.Task] = set()
        self._pending: Dict[str, Set[asyncio.Task]] = {}
        self._policies: List[Policy] = [
            partial(evaluate_motivation, rotator=self.rotator),
            evaluate_screen_time,
            evaluate_nudge,
        ]

    def start(self):
        """Start the minute tick."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._run_tick_job,
            trigger=CronTrigger(second=0),
            id="evaluate_users",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=30,
        )
        self.scheduler.start()
        self._running = True
        logger.info("Scheduler started (tick=every minute)")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def pending_dispatches(self) -> int:
        return len(self._tasks)

    async def _run_tick_job(self):
        try:
            await self.run_tick()
        except Exception:
            logger.exception("Error running evaluation pass")

    async def run_tick(self, now: Optional[datetime] = None) -> int:
        """Run one evaluation pass over all users.

        Args:
            now: Time to evaluate against; defaults to the clock

        Returns:
            Number of notifications handed to the dispatcher
        """
        async with self._pass_lock:
            if now is None:
                now = self.clock()

            self.evaluating = True
            scheduled = 0
            try:
                tokens = self.registry.tokens()
                for token in tokens:
                    try:
                        scheduled += await self._evaluate_user(token, now)
                    except Exception:
                        logger.exception(f"Error evaluating user {token[:16]}...")
            finally:
                self.evaluating = False

            if scheduled:
                logger.info(f"Tick {now:%H:%M}: {scheduled} notifications for {len(tokens)} users")
            else:
                logger.debug(f"Tick {now:%H:%M}: nothing to send for {len(tokens)} users")
            return scheduled

    async def _evaluate_user(self, token: str, now: datetime) -> int:
        """Run every policy for one user and store the result."""
        async with self.registry.lock_for(token):
            # Don't touch tracking fields while this user's last sends are in flight
            pending = self._pending.get(token)
            if pending:
                await asyncio.gather(*list(pending), return_exceptions=True)

            state = self.registry.get(token)
            if state is None:
                return 0

            scheduled = 0
            for policy in self._policies:
                outcome = policy(state, now)
                state = outcome.state
                # Commit per policy: its notifications are already on their way
                self.registry.put(state)
                for notification in outcome.notifications:
                    self._dispatch(notification)
                    scheduled += 1
            return scheduled

    def _dispatch(self, notification: Notification):
        task = asyncio.create_task(self._send(notification))
        self._tasks.add(task)
        self._pending.setdefault(notification.token, set()).add(task)
        task.add_done_callback(partial(self._forget, notification.token))

    def _forget(self, token: str, task: asyncio.Task):
        self._tasks.discard(task)
        pending = self._pending.get(token)
        if pending is not None:
            pending.discard(task)
            if not pending:
                del self._pending[token]

    async def _send(self, notification: Notification) -> bool:
        async with self._semaphore:
            try:
                return await self.dispatcher.send(notification)
            except Exception as e:
                logger.error(f"Dispatch failed for {notification.token[:16]}...: {e}")
                return False

    async def drain(self):
        """Wait for every in-flight dispatch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
