from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings

load_dotenv()


class CookieSettings(BaseModel):
    """Attributes applied to every auth cookie"""
    httponly: bool = True
    secure: bool = False
    samesite: str = "lax"


class Settings(BaseSettings):
    environment: str = "development"
    debug: bool = False
    api_host: str = "0.0.0.0"
    port: int = 5000

    database_url: str = "sqlite:///./storefront.db"
    redis_url: Optional[str] = None

    access_token_secret: str = "change-me-access-secret"
    refresh_token_secret: str = "change-me-refresh-secret"

    # comma separated allow-list
    cors_origins: str = "http://localhost:5173"
    cors_allow_all: bool = False

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    frontend_dist_dir: Optional[str] = None
    log_level: str = "INFO"

    db_retry_base_delay: float = 2.0
    db_retry_max_delay: float = 30.0

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def allowed_origins(self) -> List[str]:
        if self.cors_allow_all:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def cookie_settings(self) -> CookieSettings:
        # the frontend is deployed on another site in production
        if self.is_production:
            return CookieSettings(secure=True, samesite="none")
        return CookieSettings(secure=False, samesite="lax")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
