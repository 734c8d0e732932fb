"""Services for state, policies, scheduling, and push delivery."""
from .quotes import QuoteRotator, QUOTES
from .registry import UserRegistry
from .push_sender import PushDispatcher
from .scheduler import TickDriver

__all__ = ["QuoteRotator", "QUOTES", "UserRegistry", "PushDispatcher", "TickDriver"]
