from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:8080"
    TIMEZONE: str = "Europe/London"

    # Database – SQLite für lokale Entwicklung
    DATABASE_URL: str = "sqlite+aiosqlite:///./drivetime.db"

    # Redis – Broker für Celery (wöchentliche Ruhezeit-Erfassung)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Security – Tokens werden vom Identity-Provider ausgestellt,
    # das Backend prüft nur Signatur und Claims.
    SECRET_KEY: str = "dev_secret_key_change_in_production_min_32_chars!!"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Working Time Directive (Road Transport)
    WTD_MAX_DAILY_WORKING_MINUTES: int = 13 * 60
    WTD_MAX_WEEKLY_WORKING_MINUTES: int = 60 * 60
    WTD_MAX_DAILY_DRIVING_MINUTES: int = 9 * 60
    WTD_MAX_WEEKLY_DRIVING_MINUTES: int = 56 * 60
    WTD_MIN_DAILY_REST_HOURS: float = 11
    WTD_REDUCED_DAILY_REST_HOURS: float = 9
    WTD_MAX_REDUCED_DAILY_RESTS_PER_WEEK: int = 3
    WTD_MIN_WEEKLY_REST_HOURS: float = 45
    WTD_REDUCED_WEEKLY_REST_HOURS: float = 24
    WTD_MAX_CONSECUTIVE_WORKING_DAYS: int = 6
    WTD_WEEK_START: int = 0  # 0 = Montag

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
