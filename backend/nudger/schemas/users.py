"""User preference and activity schemas for API."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PreferenceUpdate(BaseModel):
    """Schema for the preference upsert sent by the app.

    Hour values are required (and must be positive) only when the matching
    feature is enabled.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str = Field(..., min_length=1)
    motivation_enabled: bool = Field(False, alias="motivationEnabled")
    screen_time_enabled: bool = Field(False, alias="screenTimeEnabled")
    screen_time: Optional[float] = Field(None, alias="screenTime")
    nudge_enabled: bool = Field(False, alias="nudgeEnabled")
    nudge_time: Optional[float] = Field(None, alias="nudgeTime")

    @model_validator(mode="after")
    def check_intervals(self) -> "PreferenceUpdate":
        if self.screen_time_enabled and (self.screen_time is None or self.screen_time <= 0):
            raise ValueError("screenTime must be greater than 0 when screenTimeEnabled is true")
        if self.nudge_enabled and (self.nudge_time is None or self.nudge_time <= 0):
            raise ValueError("nudgeTime must be greater than 0 when nudgeEnabled is true")
        return self


class ActivityReport(BaseModel):
    """Schema for the app's foreground/background report."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str = Field(..., min_length=1)
    last_active: datetime = Field(..., alias="lastActive")
    app_state: Optional[str] = Field(None, alias="appState")


class ApiResponse(BaseModel):
    """Schema for success/failure responses."""
    success: bool
    message: str
    errors: Optional[List[Any]] = None


class UserCountResponse(BaseModel):
    """Schema for the registered user summary."""
    model_config = ConfigDict(populate_by_name=True)

    total: int
    motivation_enabled: int = Field(0, serialization_alias="motivationEnabled")
    screen_time_enabled: int = Field(0, serialization_alias="screenTimeEnabled")
    nudge_enabled: int = Field(0, serialization_alias="nudgeEnabled")
