from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROPERTY_API_URL: str = "http://localhost:5000"
    AUTH_API_URL: str = "http://localhost:5000"
    API_TOKEN: str | None = None
    REQUEST_TIMEOUT: float = 15.0
    FEATURED_LIMIT: int = 6
    SESSION_TTL: float = 3600.0
    ALLOWED_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"

settings = Settings()
