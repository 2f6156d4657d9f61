import os
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    llm_provider: str = "groq"
    groq_api_key: Optional[str] = None
    groq_model: str = "llama-3.3-70b-versatile"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"

    # DSL header
    schema_generator: str = "prisma-client-js"
    schema_datasource: str = "mongodb"
    schema_url_env: str = "DATABASE_URL"

    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"


DEFAULT_SETTINGS = Settings()


def _split(value: Optional[str]) -> Optional[list[str]]:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def load_settings() -> Settings:
    """Read settings from the environment (and .env if present)"""
    load_dotenv()

    values = {
        "llm_provider": os.getenv("LLM_PROVIDER"),
        "groq_api_key": os.getenv("GROQ_API_KEY"),
        "groq_model": os.getenv("GROQ_MODEL"),
        "gemini_api_key": os.getenv("GEMINI_API_KEY"),
        "gemini_model": os.getenv("GEMINI_MODEL"),
        "schema_generator": os.getenv("SCHEMA_GENERATOR"),
        "schema_datasource": os.getenv("SCHEMA_DATASOURCE"),
        "schema_url_env": os.getenv("SCHEMA_URL_ENV"),
        "cors_origins": _split(os.getenv("CORS_ORIGINS")),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    # unset variables fall back to the model defaults
    return Settings(**{k: v for k, v in values.items() if v is not None})
