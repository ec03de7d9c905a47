from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "duckdb://./meal_schedule/data/meal_schedule.duckdb"

    # API
    api_title: str = "Meal Schedule API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # Pre-save audit gate: refuse to save while error-severity alerts exist
    block_save_on_errors: bool = True

    # Idle draft sessions are evicted after this many minutes
    session_ttl_minutes: int = 120

    # Development mode
    debug: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "MEAL_SCHEDULE_"
        case_sensitive = False

# Global settings instance
settings = Settings()
