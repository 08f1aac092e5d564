"""
SupportIQ Deflection - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # LLM
    openai_api_key: str = ""
    google_api_key: str = ""
    llm_provider: str = "openai"  # openai | gemini
    generation_model: str = "gpt-4o-mini"
    gemini_model: str = "models/gemini-2.5-flash"
    generation_timeout_seconds: float = 30.0

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""

    # Intercom (delivery channel)
    intercom_access_token: str = ""
    intercom_base_url: str = "https://api.intercom.io"
    intercom_admin_id: str = ""

    # Embeddings
    embedding_model: str = "BAAI/bge-m3"
    embedding_dim: int = 1024

    # Token pricing (USD per token)
    input_token_rate: float = 0.15 / 1_000_000
    output_token_rate: float = 0.60 / 1_000_000
    input_token_share: float = 0.7

    # Routing
    delivery_confidence_floor: float = 0.7

    # Pattern analysis
    similarity_threshold: float = 0.85
    default_agent_hourly_cost: float = 30.0
    default_handle_time_minutes: float = 15.0

    # Usage metering
    usage_meter_name: str = "ai_responses"
    default_usage_limit: int = 1000

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
