from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Mapping, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    environment: str = Field(default="development", alias="NODE_ENV")
    mock_mode: bool = Field(default=False, alias="MOCK_MODE")
    log_api_calls: bool = Field(default=False, alias="LOG_API_CALLS")

    # AI backends
    perplexity_api_key: str | None = Field(default=None, alias="PERPLEXITY_API_KEY")
    perplexity_base_url: str = Field(default="https://api.perplexity.ai")
    perplexity_model: str = Field(default="sonar", alias="PERPLEXITY_MODEL")
    ai_timeout: float = Field(default=30.0, alias="AI_TIMEOUT")
    ai_temperature: float = Field(default=0.2, alias="AI_TEMPERATURE")
    ai_max_tokens: int = Field(default=1000, alias="AI_MAX_TOKENS")
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")

    # Property data
    simplyrets_api_key: str | None = Field(default=None, alias="SIMPLYRETS_API_KEY")
    simplyrets_api_secret: str | None = Field(default=None, alias="SIMPLYRETS_API_SECRET")
    estated_api_token: str | None = Field(default=None, alias="ESTATED_API_TOKEN")
    rentcast_api_key: str | None = Field(default=None, alias="RENTCAST_API_KEY")
    mashvisor_api_key: str | None = Field(default=None, alias="MASHVISOR_API_KEY")
    regrid_api_token: str | None = Field(default=None, alias="REGRID_API_TOKEN")

    # Neighborhood
    neighborhoodscout_api_key: str | None = Field(default=None, alias="NEIGHBORHOODSCOUT_API_KEY")
    greatschools_api_key: str | None = Field(default=None, alias="GREATSCHOOLS_API_KEY")
    census_api_key: str | None = Field(default=None, alias="CENSUS_API_KEY")
    spotcrime_api_key: str | None = Field(default=None, alias="SPOTCRIME_API_KEY")

    # Environmental, financial, utilities
    google_maps_api_key: str | None = Field(default=None, alias="GOOGLE_MAPS_API_KEY")
    howloud_api_key: str | None = Field(default=None, alias="HOWLOUD_API_KEY")
    fred_api_key: str | None = Field(default=None, alias="FRED_API_KEY")
    fred_base_url: str = Field(default="https://api.stlouisfed.org/fred")
    broadband_api_key: str | None = Field(default=None, alias="BROADBAND_API_KEY")

    # FEMA, USGS and the wildfire index are public endpoints
    enable_public_providers: bool = Field(default=True, alias="ENABLE_PUBLIC_PROVIDERS")

    provider_timeout: float = Field(
        default=10.0,
        alias="PROVIDER_TIMEOUT",
        description="Default per-provider timeout in seconds"
    )
    allowed_origins: List[str] = Field(
        default_factory=lambda: [],
        alias="ALLOWED_ORIGINS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,  # Treat empty strings as not set
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse ALLOWED_ORIGINS from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v or []

    def configured_providers(self) -> Dict[str, bool]:
        """Map every provider id to whether its credentials are present."""
        google = bool(self.google_maps_api_key)
        public = self.enable_public_providers
        return {
            "google_places": google,
            "google_routes": google,
            "google_elevation": google,
            "google_airquality": google,
            "google_pollen": google,
            "google_solar": google,
            "simplyrets": bool(self.simplyrets_api_key and self.simplyrets_api_secret),
            "estated": bool(self.estated_api_token),
            "rentcast": bool(self.rentcast_api_key),
            "mashvisor": bool(self.mashvisor_api_key),
            "regrid": bool(self.regrid_api_token),
            "neighborhoodscout": bool(self.neighborhoodscout_api_key),
            "greatschools": bool(self.greatschools_api_key),
            "census": bool(self.census_api_key),
            "spotcrime": bool(self.spotcrime_api_key),
            "fema": public,
            "usgs": public,
            "wildfire": public,
            "howloud": bool(self.howloud_api_key),
            "fred": bool(self.fred_api_key),
            "broadband": bool(self.broadband_api_key),
            "perplexity": bool(self.perplexity_api_key),
            "gemini_vision": bool(self.gemini_api_key),
        }


@dataclass(frozen=True)
class ProviderAvailability:
    """Which providers may be called live for the lifetime of a router.

    Providers absent from the mapping are treated as mock-only.
    """

    live: Mapping[str, bool] = field(default_factory=dict)

    def is_live(self, provider_id: str) -> bool:
        return bool(self.live.get(provider_id, False))

    def live_providers(self) -> List[str]:
        return sorted(pid for pid, enabled in self.live.items() if enabled)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ProviderAvailability":
        settings = settings or get_settings()
        if settings.mock_mode:
            return cls.all_mock()
        return cls(live=dict(settings.configured_providers()))

    @classmethod
    def all_mock(cls) -> "ProviderAvailability":
        return cls(live={})


@lru_cache
def get_settings() -> Settings:
    return Settings()
