from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Why:
    - Keeps the geocoder key out of source code
    - Keeps upstream timeouts and cache TTLs tunable per deployment
    - Reviewers only need to set env vars

    Loaded from:
    - environment variables
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required key (the app should fail fast if missing)
    geoapify_api_key: str

    app_name: str = "Scuba Suit Recommender"

    # Upstream endpoints
    marine_api_base: str = "https://marine-api.open-meteo.com/v1/marine"
    geoapify_base: str = "https://api.geoapify.com/v1/geocode/search"
    user_agent: str = "ScubaSuitRecommender/1.0"

    # Every upstream call is aborted past this
    upstream_timeout_s: float = 8.0

    # Fan-out bound for one aggregation request
    max_concurrency: int = 8
    nudge_attempts: int = 3

    # Server-side TTLs, mirrored in Cache-Control max-age
    point_ttl_s: int = 1800
    grid_ttl_s: int = 900
    geocode_ttl_s: int = 86400

    log_level: str = "INFO"


settings = Settings()
