"""Courier configuration."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CourierConfig(BaseSettings):
    """Runtime config for the courier router.

    Reads from environment variables with COURIER_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="COURIER_")

    database_url: str = "sqlite+aiosqlite:///courier.db"
    currency: str = Field(default="usd", min_length=3, max_length=3)

    # Field limits
    location_max_length: int = 255
    notes_max_length: int = 1000
    tracking_id_max_length: int = 50
    track_many_max: int = 10

    # Capabilities
    staff_roles: frozenset[str] = frozenset({"staff", "admin", "super_admin"})
    admin_roles: frozenset[str] = frozenset({"admin", "super_admin"})

    # Listing
    default_page_size: int = 20
    max_page_size: int = 100
