"""Pydantic schemas for API request/response models."""
from .users import (
    PreferenceUpdate,
    ActivityReport,
    ApiResponse,
    UserCountResponse,
)

__all__ = [
    "PreferenceUpdate",
    "ActivityReport",
    "ApiResponse",
    "UserCountResponse",
]
