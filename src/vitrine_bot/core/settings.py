
"""Configurações Pydantic Settings para a aplicação."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """Configurações da aplicação. Carrega de env e .env.

    Todas as credenciais devem vir via env. Nunca hardcode.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="VB_", case_sensitive=False)

    # Flask
    flask_debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # DB
    database_url: str = Field(..., description="URL do Postgres, ex: postgresql+psycopg://user:pass@db:5432/app")

    # LLM / LiteLLM
    litellm_base_url: str = Field(..., description="URL do gateway LiteLLM")
    litellm_api_key: str | None = Field(default=None)
    litellm_model_primary: str = Field(default="gpt-4o-mini")
    litellm_model_fallback: str = Field(default="gpt-4o-mini")
    litellm_model_transcription: str = Field(default="whisper-1")
    litellm_timeout_s: int = Field(default=30)
    litellm_max_tokens: int = Field(default=500)
    litellm_temperature: float = Field(default=0.8)

    # Consulta de CEP (ViaCEP)
    cep_base_url: str = Field(default="https://viacep.com.br")
    cep_timeout_s: float = Field(default=5.0)

    # Pipeline
    max_tool_rounds: int = Field(default=3, ge=1)
    history_window: int = Field(default=10)
    analysis_window: int = Field(default=6)
    catalog_prompt_limit: int = Field(default=20)

    # Mídia (resolução de caminhos relativos de imagens)
    public_base_url: str = Field(default="http://localhost:8000")
