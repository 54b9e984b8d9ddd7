from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin auth calls and storage uploads

    # Autodesk Platform Services (2-legged app used for OSS buckets and viewer tokens)
    aps_client_id: Optional[str] = None
    aps_client_secret: Optional[str] = None
    # Autodesk web app (3-legged, used for ACC Docs access)
    aps_web_app_client_id: Optional[str] = None
    aps_web_app_client_secret: Optional[str] = None
    aps_base_url: str = "https://developer.api.autodesk.com"
    aps_region: str = "EMEA"
    acc_account_id: Optional[str] = None
    acc_redirect_uri: Optional[str] = None  # Derived from request origin when unset

    # AI providers
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    perplexity_api_key: Optional[str] = None
    perplexity_model: str = "sonar-pro"
    perplexity_base_url: str = "https://api.perplexity.ai"

    # Nextcloud
    nextcloud_url: Optional[str] = None
    nextcloud_username: Optional[str] = None
    nextcloud_password: Optional[str] = None

    # Allowlist fallback when no auth_allowlist row matches
    allowlist_emails: str = ""
    allowlist_domains: str = ""

    # F16 project portal
    f16_project_id: str = "F16"
    f16_storage_bucket: str = "f16-files"
    f16_model_path: Optional[str] = None  # "<project_id>/items/<item_id>"

    # App
    app_name: str = "brain-db"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    http_timeout_seconds: float = 30.0
    token_expiry_buffer_seconds: int = 300

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def aps_configured(self) -> bool:
        return bool(self.aps_client_id and self.aps_client_secret)

    @property
    def acc_configured(self) -> bool:
        return bool(self.aps_web_app_client_id and self.aps_web_app_client_secret)

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def perplexity_configured(self) -> bool:
        return bool(self.perplexity_api_key)

    @property
    def nextcloud_configured(self) -> bool:
        return bool(self.nextcloud_url and self.nextcloud_username and self.nextcloud_password)

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
