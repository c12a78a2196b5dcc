"""
Configuration settings for the TripSync client core.

Loaded from the environment (or .env) using Pydantic settings, the same way
the backend loads its own settings.
"""

from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Client settings."""

    # Backend
    api_base_url: str = "http://localhost:8000/v1"
    api_timeout_seconds: float = 15.0

    # Map provider
    google_maps_api_key: str = ""
    maps_base_url: str = "https://maps.googleapis.com/maps/api"
    maps_timeout_seconds: float = 10.0
    maps_language: str = "en"
    maps_failure_threshold: int = 5
    maps_reset_timeout_seconds: int = 30
    place_details_cache_ttl_seconds: int = 300

    # Planner / navigation tuning
    search_radius_meters: int = 5000
    min_prediction_chars: int = 3
    autocomplete_debounce_ms: int = 300
    step_advance_threshold_meters: float = 40.0
    geolocation_timeout_seconds: float = 10.0

    # Client-local key-value store
    redis_url: str = "redis://localhost:6379/1"
    redis_decode_responses: bool = True

    class Config:
        env_file = ".env"
        env_prefix = "TRIPSYNC_"
        case_sensitive = False


client_settings = ClientSettings()
