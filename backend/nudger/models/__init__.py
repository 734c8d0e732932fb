"""State models."""
from .user_state import UserState, Notification

__all__ = ["UserState", "Notification"]
