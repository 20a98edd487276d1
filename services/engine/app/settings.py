from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ENGINE_", extra="forbid")

    log_level: str = "info"
    currency: str = "USD"

    # Reservation-level fees (charged once per reservation, not per room).
    resort_fee_per_night: float = 15.0
    service_fee_rate: float = 0.02
    cleaning_fee: float = 25.0

    default_nightly_rate: float = 100.0

    # Floor preference thresholds for room scoring.
    low_floor_max: int = 3
    high_floor_min: int = 5

    max_upgrade_options_per_room: int = 2


SETTINGS = EngineSettings()
