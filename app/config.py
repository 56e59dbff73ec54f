from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

DEFAULT_AFFILIATE_TAG = "antigravity-20"


class ConfigurationError(Exception):
    """Raised when a required setting is missing."""


class Settings(BaseSettings):
    app_title: str = "AI Auto Repair Guide"
    site_url: str = "https://aiautorepair.app"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    guide_model: str = "google/gemini-2.5-flash"
    fast_model: str = "google/gemini-2.5-flash-lite"
    chat_model: str = "google/gemini-2.5-flash"
    provider_timeout: float = 30.0
    guide_web_search: bool = False

    amazon_affiliate_tag: Optional[str] = None

    nhtsa_base_url: str = "https://vpic.nhtsa.dot.gov/api"
    nhtsa_recalls_url: str = "https://api.nhtsa.gov/recalls/recallsByVehicle"

    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    @property
    def affiliate_tag(self) -> str:
        return self.amazon_affiliate_tag or DEFAULT_AFFILIATE_TAG

    def missing_settings(self) -> list[str]:
        """Names of required settings that are unset"""
        missing = []
        if not self.openrouter_api_key.strip():
            missing.append("OPENROUTER_API_KEY")
        return missing

    def require_provider(self) -> None:
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(
                f"Server configuration error: {', '.join(missing)} is not set"
            )


settings = Settings()
