"""User registry - the in-memory store of every device's notification state.

There is one registry per process. It is shared by the HTTP handlers
(preference upserts, activity reports) and the scheduler. Each token has its
own asyncio lock; whoever reads-modifies-writes a user's state must hold it.
"""
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..models import UserState
from ..schemas.users import ActivityReport, PreferenceUpdate
from ..utils.time_utils import Clock, local_now, to_local_naive

logger = logging.getLogger(__name__)


def apply_preferences(
    existing: Optional[UserState],
    update: PreferenceUpdate,
    now: datetime,
) -> UserState:
    """Merge a preference update into a user's state.

    Plain settings are always overwritten. Tracking fields only change when a
    feature is switched on (tracking restarts from now) or off (tracking is
    cleared); an unchanged feature keeps its progress.
    """
    state = existing or UserState(token=update.token)

    # Motivation
    if update.motivation_enabled != state.motivation_enabled:
        state = replace(state, used_quotes=frozenset())
    state = replace(state, motivation_enabled=update.motivation_enabled)

    # Screen time
    if update.screen_time_enabled and not state.screen_time_enabled:
        state = replace(state, screen_time_start=now, screen_time_count=0)
    elif not update.screen_time_enabled and state.screen_time_enabled:
        state = replace(state, screen_time_start=None, screen_time_count=0)
    state = replace(
        state,
        screen_time_enabled=update.screen_time_enabled,
        screen_time=update.screen_time if update.screen_time is not None else state.screen_time,
    )

    # Nudges; the repeat timer is armed by the first evaluation
    if update.nudge_enabled != state.nudge_enabled:
        state = replace(state, last_nudge_sent=None, last_special_nudge_sent=None)
    state = replace(
        state,
        nudge_enabled=update.nudge_enabled,
        nudge_time=update.nudge_time if update.nudge_time is not None else state.nudge_time,
    )

    return state


class UserRegistry:
    """Token -> UserState mapping with per-user locking."""

    def __init__(self, clock: Clock = local_now):
        self._clock = clock
        self._users: Dict[str, UserState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, token: str) -> bool:
        return token in self._users

    def tokens(self) -> List[str]:
        """Snapshot of registered tokens, safe to iterate while users are added."""
        return list(self._users)

    def get(self, token: str) -> Optional[UserState]:
        return self._users.get(token)

    def lock_for(self, token: str) -> asyncio.Lock:
        """Get (or create) the lock guarding one user's state."""
        lock = self._locks.get(token)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[token] = lock
        return lock

    def put(self, state: UserState) -> None:
        """Store a state. Caller must hold the user's lock."""
        self._users[state.token] = state

    async def upsert(self, update: PreferenceUpdate) -> Tuple[UserState, bool]:
        """Create or update a user from a preference update.

        Returns:
            Tuple of (stored state, created)
        """
        async with self.lock_for(update.token):
            existing = self._users.get(update.token)
            state = apply_preferences(existing, update, self._clock())
            self._users[update.token] = state

        if existing is None:
            logger.info(f"New user registered: {update.token[:16]}...")
        else:
            logger.info(f"User preferences updated: {update.token[:16]}...")
        return state, existing is None

    async def report_activity(self, report: ActivityReport) -> Optional[UserState]:
        """Record the app's last activity time. Returns None for unknown tokens."""
        if report.token not in self._users:
            return None

        async with self.lock_for(report.token):
            state = self._users.get(report.token)
            if state is None:
                return None
            state = replace(
                state,
                last_active=to_local_naive(report.last_active),
                app_state=report.app_state,
            )
            self._users[report.token] = state

        logger.debug(f"Activity from {report.token[:16]}...: {report.app_state}")
        return state

    def counts(self) -> Dict[str, int]:
        """Count registered users and how many have each feature on."""
        users = list(self._users.values())
        return {
            "total": len(users),
            "motivation_enabled": sum(1 for u in users if u.motivation_enabled),
            "screen_time_enabled": sum(1 for u in users if u.screen_time_enabled),
            "nudge_enabled": sum(1 for u in users if u.nudge_enabled),
        }
