from __future__ import annotations

import os
from dataclasses import dataclass


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) not in ("0", "false", "False", "")


@dataclass(frozen=True)
class Settings:
    # AWS
    aws_region: str = os.environ.get("AWS_REGION", "us-east-1")

    # Cognito (identity gateway)
    cognito_user_pool_id: str = os.environ.get("COGNITO_USER_POOL_ID", "")
    cognito_region: str = os.environ.get("COGNITO_REGION", "")
    cognito_app_client_id: str = os.environ.get("COGNITO_APP_CLIENT_ID", "")
    cognito_expected_token_use: str = os.environ.get("COGNITO_EXPECTED_TOKEN_USE", "id")
    identity_timeout_seconds: float = float(os.environ.get("IDENTITY_TIMEOUT_SECONDS", "5"))

    # Store
    store_backend: str = os.environ.get("STORE_BACKEND", "dynamodb").lower()
    store_table: str = os.environ.get("STORE_TABLE", "photogram")
    ddb_endpoint_url: str = os.environ.get("DDB_ENDPOINT_URL", "")
    store_timeout_seconds: float = float(os.environ.get("STORE_TIMEOUT_SECONDS", "10"))

    # HTTP
    api_prefix: str = os.environ.get("API_PREFIX", "/api").rstrip("/")
    allowed_origins: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # Pagination
    default_page_size: int = int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
    max_page_size: int = int(os.environ.get("MAX_PAGE_SIZE", "100"))

    # Diagnostics
    dev_mode: bool = _flag("DEV_MODE", "0")
    metrics_enabled: bool = _flag("METRICS_ENABLED", "1")
    log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def cognito_enabled(self) -> bool:
        return bool(self.cognito_user_pool_id and self.cognito_app_client_id)

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()] or ["*"]


S = Settings()
