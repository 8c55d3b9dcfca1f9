# cosynq/core/config.py
"""
Application settings for the Cosynq booking backend.

Values come from the environment (and a local ``.env`` file when present).
Booking-window defaults live here so the time validation rules and the
orchestrator read the same numbers.
"""

import logging
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BOOKING_REFERENCE_MAX_PREFIX_LENGTH

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

load_dotenv(_PROJECT_ROOT / ".env", override=False)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "test", "production"] = "development"
    database_url: str = Field(
        default="sqlite:///./cosynq.db",
        validation_alias=AliasChoices("database_url", "cosynq_database_url"),
    )
    log_level: str = "INFO"

    # Location defaults
    default_timezone: str = "Asia/Kolkata"
    default_open_time: str = "09:00"
    default_close_time: str = "18:00"

    # Booking window rules
    minimum_advance_minutes: int = Field(default=30, ge=0)
    maximum_advance_days: int = Field(default=90, ge=1)
    short_notice_warning_minutes: int = Field(default=120, ge=0)
    far_advance_warning_days: int = Field(default=30, ge=0)
    modification_cutoff_hours: float = Field(default=4, ge=0)
    cancellation_cutoff_hours: float = Field(default=2, ge=0)

    # Space defaults
    default_minimum_booking_minutes: int = 60
    default_maximum_booking_minutes: int = 480
    default_advance_booking_limit_days: int = 30

    # Availability listing
    slot_stride_minutes: int = Field(default=30, ge=5)
    unavailable_slot_preview_limit: int = 5
    availability_min_duration_minutes: int = 15
    availability_max_duration_minutes: int = 1440

    booking_reference_prefix: str = Field(
        default="BK",
        min_length=1,
        max_length=BOOKING_REFERENCE_MAX_PREFIX_LENGTH,
        pattern=r"^[A-Z0-9]+$",
    )
    booking_reference_attempts: int = 5

    @field_validator("default_open_time", "default_close_time")
    @classmethod
    def _validate_hhmm(cls, value: str) -> str:
        hours, _, minutes = value.partition(":")
        if not (hours.isdigit() and minutes.isdigit()):
            raise ValueError("Time must use HH:MM format")
        if not (0 <= int(hours) <= 23 and 0 <= int(minutes) <= 59):
            raise ValueError("Time must use HH:MM format")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()


settings = Settings()
