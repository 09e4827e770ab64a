from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Gallery API"
    GALLERY_MODE: Literal["database", "storage"] = "database"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ALLOW_ORIGINS: str = "*"
    STATIC_DIR: str = str(Path(__file__).parent / "static")
    LOG_LEVEL: str = "INFO"

    AWS_REGION: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None  # MinIO / localstack

    DB_SECRET_ARN: Optional[str] = None
    DB_HOST: Optional[str] = None
    DB_PORT: int = 5432
    DB_SSL_CA_PATH: str = "eu-west-1-bundle.pem"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    @property
    def uses_database(self) -> bool:
        return self.GALLERY_MODE == "database"

    @property
    def static_credentials(self) -> bool:
        """Both halves of the key pair are set; otherwise boto3 resolves ambient credentials."""
        return bool(self.AWS_ACCESS_KEY_ID and self.AWS_SECRET_ACCESS_KEY)

    @property
    def cors_origins(self) -> List[str]:
        if not self.CORS_ALLOW_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]

    def missing_required(self) -> List[str]:
        required = ["AWS_REGION", "S3_BUCKET"]
        if self.uses_database:
            required += ["DB_SECRET_ARN", "DB_HOST"]
        return [name for name in required if not getattr(self, name)]


@lru_cache
def get_settings() -> Settings:
    return Settings()
