from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./progress.db"
    REDIS_URL: str = "redis://localhost:6379/2"
    SECRET_KEY: str = "dev-secret-progress"
    JWT_ALGORITHM: str = "HS256"
    LOG_LEVEL: str = "INFO"
    CACHE_TTL: int = 60  # leaderboard pages
    LEADERBOARD_MAX_LIMIT: int = 200
    ACTIVITY_DATE_SKEW_DAYS: int = 1  # допустимое расхождение клиентской даты
    FOCUS_FLUSH_EVERY_TICKS: int = 10
    FOCUS_TICK_SECONDS: float = 1.0
    REPAIR_CAPABILITY: str = "progress:repair"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
