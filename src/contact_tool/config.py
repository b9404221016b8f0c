"""Application settings using Pydantic Settings"""
from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings

DEDUP_KEY_FIELDS = ("record_id", "email")


class Settings(BaseSettings):
    DATABASE_URL: str

    APP_ENV: str = "dev"

    SESSION_SECRET_KEY: str = ""

    IMPORT_BATCH_SIZE: int = 500
    IMPORT_PREVIEW_ROWS: int = 5
    CSV_MAX_UPLOAD_MB: int = 10
    DEDUP_KEY_PRECEDENCE: str = "record_id,email"
    IMPORT_ALLOWED_ROLES: str = "admin,cs"
    IMPORT_CLEAR_EMPTY_FIELDS: bool = False

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        allowed = ["dev", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of: {allowed}")
        return v

    @field_validator("IMPORT_BATCH_SIZE")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("IMPORT_BATCH_SIZE must be at least 1")
        return v

    @field_validator("DEDUP_KEY_PRECEDENCE")
    @classmethod
    def validate_dedup_precedence(cls, v: str) -> str:
        keys = [k.strip() for k in v.split(",") if k.strip()]
        if not keys:
            raise ValueError("DEDUP_KEY_PRECEDENCE must name at least one key")
        unknown = [k for k in keys if k not in DEDUP_KEY_FIELDS]
        if unknown:
            raise ValueError(f"DEDUP_KEY_PRECEDENCE contains unknown keys: {unknown}")
        if len(set(keys)) != len(keys):
            raise ValueError("DEDUP_KEY_PRECEDENCE must not repeat keys")
        return ",".join(keys)

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "prod"

    @property
    def dedup_key_order(self) -> List[str]:
        return [k for k in self.DEDUP_KEY_PRECEDENCE.split(",") if k]

    @property
    def import_role_list(self) -> List[str]:
        return [r.strip().lower() for r in self.IMPORT_ALLOWED_ROLES.split(",") if r.strip()]

    def validate_secrets_for_production(self) -> None:
        if self.is_production and not self.SESSION_SECRET_KEY:
            raise ValueError("SESSION_SECRET_KEY must be set in production")

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()


def get_settings() -> Settings:
    return settings
