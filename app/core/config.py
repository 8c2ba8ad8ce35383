from functools import lru_cache
from typing import Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]
ProviderName = Literal["openai", "ndjson"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "TokoRotiAlia"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"
    LOG_LEVEL: Optional[str] = None            # overrides DEBUG when set, e.g. "WARNING"

    # LLM provider
    LLM_PROVIDER: ProviderName = "openai"      # "openai" -> SSE, "ndjson" -> JSON lines
    LLM_API_KEY: Optional[str] = None
    LLM_BASE_URL: str = "https://ai.gateway.lovable.dev/v1"
    LLM_CHAT_MODEL: str = "google/gemini-3-flash-preview"
    LLM_NDJSON_URL: str = "http://localhost:11434/api/chat"
    LLM_NDJSON_CONTENT_PATH: str = "message.content"
    LLM_TIMEOUT_S: Optional[float] = None      # None = no client-side timeout on the stream

    # Supabase (product store)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    store_timeout_s: float = 10.0

    # Product matching
    match_function: str = "match_products"     # similarity-search RPC name
    match_count: int = 3
    match_threshold: float = 0.2

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    def missing_llm_settings(self) -> list[str]:
        missing = []
        # Local ndjson providers (Ollama) run without a key
        if self.LLM_PROVIDER == "openai" and not self.LLM_API_KEY:
            missing.append("LLM_API_KEY")
        return missing

    def missing_chat_settings(self) -> list[str]:
        """Names of the settings the chat endpoint cannot run without (provider and store)."""
        return self.missing_llm_settings() + self.missing_store_settings()

    def missing_store_settings(self) -> list[str]:
        missing = []
        if not self.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not self.SUPABASE_SERVICE_ROLE_KEY:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
