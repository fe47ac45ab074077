import os
from pydantic_settings import BaseSettings


def get_default_database_url() -> str:
    """Get default database URL based on environment."""
    if os.environ.get("DATABASE_URL"):
        return os.environ.get("DATABASE_URL")
    # Serverless runtimes only allow writes under /tmp
    if os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
        return "sqlite:////tmp/feed_planner.db"
    return "sqlite:///./feed_planner.db"


class Settings(BaseSettings):
    APP_NAME: str = "Livestock Feed Planner API"
    DATABASE_URL: str = get_default_database_url()
    LOG_LEVEL: str = "INFO"

    # Bearer token verification for account-owned formulations
    AUTH_JWT_SECRET: str = ""
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # Raise instead of falling back to cattle/maintenance for unknown pairs
    REQUIREMENTS_STRICT: bool = False

    CURRENCY: str = "NGN"

    class Config:
        env_file = ".env"


settings = Settings()
