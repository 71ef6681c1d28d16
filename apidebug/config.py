from pathlib import Path
from typing import Any, List, Optional

from pydantic import Field, ValidationError as SchemaError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.errors import ValidationError

DEFAULT_LOGIN_BODY = '{"username":"","password":""}'
DEFAULT_LOGIN_DESCRIPTION = (
    "Save returned token to common headers in debug tool, "
    "field name Authorization, field value Bearer token"
)
CATALOG_FILENAME = "api.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Catalog location ---
    config_dir: Optional[str] = Field(default=None, validation_alias="CONFIG_DIR")
    tool_prefix: str = Field(default="", validation_alias="TOOL_PREFIX")

    # --- Execution policy ---
    allowed_methods_raw: str = Field(default="GET", validation_alias="API_DEBUG_ALLOWED_METHODS")
    verify_tls: bool = Field(default=False, validation_alias="API_DEBUG_VERIFY_TLS")
    request_timeout: Optional[float] = Field(default=None, validation_alias="API_DEBUG_REQUEST_TIMEOUT")

    # --- Login ---
    login_url: str = Field(default="/api/login", validation_alias="API_DEBUG_LOGIN_URL")
    login_method_raw: str = Field(default="POST", validation_alias="API_DEBUG_LOGIN_METHOD")
    login_body_raw: str = Field(default=DEFAULT_LOGIN_BODY, validation_alias="API_DEBUG_LOGIN_BODY")
    login_description: str = Field(default=DEFAULT_LOGIN_DESCRIPTION, validation_alias="API_DEBUG_LOGIN_DESCRIPTION")

    # --- Logging ---
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")

    @field_validator("request_timeout", mode="before")
    @classmethod
    def _blank_timeout(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def allowed_methods(self) -> List[str]:
        methods = [m.strip().upper() for m in self.allowed_methods_raw.split(",")]
        # An empty list means the variable was blank, same as unset
        return [m for m in methods if m] or ["GET"]

    @property
    def login_method(self) -> str:
        return (self.login_method_raw or "POST").strip().upper()

    @property
    def catalog_dir(self) -> Path:
        if self.config_dir:
            return Path(self.config_dir)
        if self.tool_prefix:
            return Path(f"./.setting.{self.tool_prefix}")
        return Path("./.setting")

    @property
    def catalog_path(self) -> Path:
        return self.catalog_dir / CATALOG_FILENAME


# Environment is read on every call so a changed variable takes effect
# without restarting the server.
def get_settings() -> Settings:
    try:
        return Settings()
    except SchemaError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValidationError(f"Invalid environment configuration: {problems}", code="invalid_settings") from exc
