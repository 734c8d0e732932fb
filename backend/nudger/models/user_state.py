"""UserState model - in-memory notification state for one device token."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Notification:
    """A single push notification waiting to be dispatched."""
    token: str
    title: str
    body: str
    vibrate: bool = False


@dataclass
class UserState:
    """Everything the scheduler knows about one registered device.
    
    Tracking fields (screen_time_start, used_quotes, last_nudge_sent, ...) are
    owned by the scheduler; the preference upsert only resets them when a
    feature is switched on or off.
    """
    token: str
    
    # Motivation quotes
    motivation_enabled: bool = False
    used_quotes: FrozenSet[str] = field(default_factory=frozenset)
    
    # Screen time reminders (hours)
    screen_time_enabled: bool = False
    screen_time: float = 0.0
    screen_time_start: Optional[datetime] = None
    screen_time_count: int = 0
    
    # Re-engagement nudges (hours)
    nudge_enabled: bool = False
    nudge_time: float = 0.0
    last_nudge_sent: Optional[datetime] = None
    last_special_nudge_sent: Optional[datetime] = None
    
    # Reported by the app
    last_active: Optional[datetime] = None
    app_state: Optional[str] = None
