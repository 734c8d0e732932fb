"""Notification policies - decide what a user should receive at a given minute.

Each evaluator is a pure function: it takes a user's state and the current
local time and returns the (possibly) updated state plus any notifications to
send. The input state is never mutated; the scheduler writes the returned
state back into the registry.
"""
from dataclasses import replace
from datetime import datetime, timedelta
from typing import NamedTuple, Tuple

from ..models import Notification, UserState
from ..utils.time_utils import hours_between, is_minute, same_calendar_day
from .quotes import QuoteRotator

# Motivation quotes go out at these hours, on the hour
MOTIVATION_HOURS = (10, 14)
MOTIVATION_TITLE = "✨ Daily Motivation"

SCREEN_TIME_TITLE = "📱 Screen Time"

# App counts as closed after this long without an activity report
INACTIVITY_THRESHOLD = timedelta(minutes=5)

# Nudges are only sent between 09:00:00 and 18:59:59
NUDGE_WINDOW_START_HOUR = 9
NUDGE_WINDOW_END_HOUR = 19

SPECIAL_NUDGE_HOUR = 9
SPECIAL_NUDGE_TITLE = "Good Morning!"
SPECIAL_NUDGE_BODY = "It's a new day to not go on your phone"

REPEAT_NUDGE_TITLE = "A Nudge"
REPEAT_NUDGE_BODY = "Tap this and take control of your screen time today"


class PolicyOutcome(NamedTuple):
    """Result of running one policy for one user."""
    state: UserState
    notifications: Tuple[Notification, ...] = ()


def evaluate_motivation(state: UserState, now: datetime, rotator: QuoteRotator) -> PolicyOutcome:
    """Send the next quote at 10:00 and 14:00.

    A minute that is skipped is not made up later.
    """
    if not state.motivation_enabled:
        return PolicyOutcome(state)

    if not any(is_minute(now, hour) for hour in MOTIVATION_HOURS):
        return PolicyOutcome(state)

    quote, used = rotator.next_quote(state.used_quotes)
    notification = Notification(
        token=state.token,
        title=MOTIVATION_TITLE,
        body=quote,
        vibrate=True,
    )
    return PolicyOutcome(replace(state, used_quotes=used), (notification,))


def format_hours(hours: float) -> str:
    """Render an hour count the way it was entered: 2 -> '2', 1.5 -> '1.5'."""
    return f"{hours:g}"


def screen_time_message(screen_time: float, count: int) -> str:
    unit = "hours" if screen_time > 1 else "hour"
    amount = format_hours(screen_time)
    if count == 0:
        return f"You have spent {amount} {unit} on your phone"
    return f"You have spent another {amount} {unit} on your phone"


def evaluate_screen_time(state: UserState, now: datetime) -> PolicyOutcome:
    """Remind the user each time another screen_time interval has elapsed.

    Thresholds are multiples of the interval measured from tracking start, and
    the counter moves by at most one per evaluation, so a late tick never
    sends the same multiple twice.
    """
    if not state.screen_time_enabled or state.screen_time_start is None:
        return PolicyOutcome(state)
    if state.screen_time <= 0:
        return PolicyOutcome(state)

    elapsed = hours_between(state.screen_time_start, now)
    threshold = (state.screen_time_count + 1) * state.screen_time
    if elapsed < threshold:
        return PolicyOutcome(state)

    notification = Notification(
        token=state.token,
        title=SCREEN_TIME_TITLE,
        body=screen_time_message(state.screen_time, state.screen_time_count),
        vibrate=True,
    )
    return PolicyOutcome(
        replace(state, screen_time_count=state.screen_time_count + 1),
        (notification,),
    )


def is_app_closed(state: UserState, now: datetime) -> bool:
    if state.last_active is None:
        return True
    return now - state.last_active > INACTIVITY_THRESHOLD


def in_nudge_window(now: datetime) -> bool:
    return NUDGE_WINDOW_START_HOUR <= now.hour < NUDGE_WINDOW_END_HOUR


def evaluate_nudge(state: UserState, now: datetime) -> PolicyOutcome:
    """Re-engage users whose app has been closed for a while.

    Two independent behaviours share the same gate (enabled, app closed,
    inside the daytime window):

    - a good-morning nudge exactly at 09:00, at most once per calendar day
    - a repeat nudge every nudge_time hours; the first evaluation only arms
      the timer and sends nothing

    Both can fire in the same evaluation.
    """
    if not state.nudge_enabled:
        return PolicyOutcome(state)
    if not is_app_closed(state, now) or not in_nudge_window(now):
        return PolicyOutcome(state)

    notifications = []

    if is_minute(now, SPECIAL_NUDGE_HOUR):
        last_special = state.last_special_nudge_sent
        if last_special is None or not same_calendar_day(last_special, now):
            notifications.append(Notification(
                token=state.token,
                title=SPECIAL_NUDGE_TITLE,
                body=SPECIAL_NUDGE_BODY,
                vibrate=False,
            ))
            state = replace(state, last_special_nudge_sent=now)

    if state.last_nudge_sent is None:
        state = replace(state, last_nudge_sent=now)
    elif hours_between(state.last_nudge_sent, now) >= state.nudge_time:
        notifications.append(Notification(
            token=state.token,
            title=REPEAT_NUDGE_TITLE,
            body=REPEAT_NUDGE_BODY,
            vibrate=False,
        ))
        state = replace(state, last_nudge_sent=now)

    return PolicyOutcome(state, tuple(notifications))
