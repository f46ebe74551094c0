from typing import Annotated, Any, List, Optional

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_LOCAL_ORIGINS = ["http://localhost:3000"]


def _split_csv(v: Any) -> Any:
    """Accept ``a,b,c`` as well as a JSON-style list for list settings."""
    if isinstance(v, str):
        raw = v.strip()
        if raw.startswith("[") and raw.endswith("]"):
            raw = raw[1:-1].replace('"', "").replace("'", "")
        return [item.strip() for item in raw.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    PROJECT_NAME: str = "Erinnerungslicht Contact API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    MAX_BODY_BYTES: int = 10 * 1024 * 1024

    # --- CORS ---
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        validate_default=True,
        description="Comma-separated list of allowed CORS origins.",
    )
    ALLOWED_METHODS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"],
    )
    ALLOWED_HEADERS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "Content-Type", "X-Request-ID", "Accept", "Accept-Language",
        ],
    )
    EXPOSE_HEADERS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["X-Request-ID", "Retry-After"],
    )

    # --- Proxy ---
    TRUSTED_PROXIES: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )

    # --- Mail provider: custom SMTP ---
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[SecretStr] = None

    # --- Mail provider: Gmail with app password ---
    GMAIL_USER: Optional[str] = None
    GMAIL_APP_PASSWORD: Optional[SecretStr] = None

    # --- Mail provider: SendGrid ---
    SENDGRID_API_KEY: Optional[SecretStr] = None

    # --- Addresses & options ---
    FROM_EMAIL: str = "noreply@erinnerungslicht.de"
    TO_EMAIL: str = "info@erinnerungslicht.de"
    SEND_CONFIRMATION: bool = False
    MAIL_SEND_TIMEOUT_SECONDS: float = 15.0

    # --- Site ---
    SITE_NAME: str = "Erinnerungslicht"
    SITE_URL: str = "https://erinnerungslicht.de"
    CONTACT_ADDRESS: str = "info@erinnerungslicht.de"

    # --- Contact admission & spam heuristics ---
    CONTACT_RATE_LIMIT: int = 5
    CONTACT_RATE_WINDOW_SECONDS: int = 15 * 60
    SPAM_KEYWORDS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["viagra", "casino", "lottery", "winner", "congratulations"],
    )
    SPAM_MIN_FILL_MILLISECONDS: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator(
        "ALLOWED_METHODS",
        "ALLOWED_HEADERS",
        "EXPOSE_HEADERS",
        "TRUSTED_PROXIES",
        mode="before",
    )
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        return _split_csv(v)

    @field_validator("SPAM_KEYWORDS", mode="before")
    @classmethod
    def normalize_keywords(cls, v: Any) -> Any:
        v = _split_csv(v)
        if isinstance(v, list):
            return [str(k).lower() for k in v]
        return v

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def default_allowed_origins(cls, v: Any, info: ValidationInfo) -> Any:
        v = _split_csv(v)
        env = info.data.get("ENVIRONMENT") or "local"
        if env != "production" and not v:
            return list(_LOCAL_ORIGINS)
        return v

    @field_validator("DEBUG", mode="after")
    @classmethod
    def forbid_debug_in_production(cls, v: bool, info: ValidationInfo) -> bool:
        env = info.data.get("ENVIRONMENT") or "local"
        if env == "production" and v:
            raise ValueError("DEBUG must be disabled in production")
        return v


settings = Settings()
