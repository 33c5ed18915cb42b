from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./data/flight_tracker.db"
    state_key: str = "FlightTrackerData"

    recent_search_limit: int = 10
    default_currency: str = "USD"

    flight_source: str = "sample"  # sample or duffel
    duffel_api_key: str = ""
    duffel_base_url: str = "https://api.duffel.com"
    duffel_version: str = "v2"

    notifications_enabled: bool = True
    ntfy_url: str = "http://localhost:8080"
    ntfy_topic: str = "flight-tracker-alerts"

    def model_post_init(self, __context):
        if self.flight_source not in ("sample", "duffel"):
            raise ValueError(
                f"Unknown FLIGHT_SOURCE '{self.flight_source}' (expected sample or duffel)"
            )
        if self.flight_source == "duffel" and not self.duffel_api_key.strip():
            raise ValueError("FLIGHT_SOURCE=duffel requires DUFFEL_API_KEY")
        if self.recent_search_limit < 1:
            raise ValueError("RECENT_SEARCH_LIMIT must be at least 1")

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
