from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Bookings Dashboard"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    BOOKINGS_TABLE: str = "bookings"
    BOOKINGS_SCHEMA: str = "public"
    REALTIME_CHANNEL: str = "bookings-changes"

    # Dashboard ("full" = GBP/en-GB with billing breakdown, "compact" = USD/en-US)
    DASHBOARD_VARIANT: str = "full"
    DASHBOARD_API_URL: str = "http://localhost:8000"

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_PATH: str = "logs/errors.log"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
