# backend/app/config.py

from pydantic import BaseModel, Field
import logging
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    # App
    APP_ENV: str = Field(default=os.getenv("APP_ENV", "development"))
    APP_URL: str = Field(default=os.getenv("APP_URL", "http://localhost:8000"))
    LOG_LEVEL: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))
    BACKEND_CORS_ORIGINS: str = Field(default=os.getenv("BACKEND_CORS_ORIGINS", "*"))

    # LLM config
    LLM_PROVIDER: str = Field(default=os.getenv("LLM_PROVIDER", "openai"))
    LLM_API_KEY: str = Field(default=os.getenv("LLM_API_KEY", ""))
    LLM_BASE_URL: str | None = Field(default=os.getenv("LLM_BASE_URL") or None)
    LLM_MODEL_NAME: str = Field(default=os.getenv("LLM_MODEL_NAME", "gpt-4o-mini"))
    # Summaries of retrieved rubric chunks can run on a different model
    LLM_SUMMARY_MODEL_NAME: str = Field(default=os.getenv("LLM_SUMMARY_MODEL_NAME", "gpt-4o-mini"))
    LLM_TEMPERATURE: float = Field(default=float(os.getenv("LLM_TEMPERATURE", "0.0")))
    # Request timeout in seconds for LiteLLM
    LLM_REQUEST_TIMEOUT: int = Field(default=int(os.getenv("LLM_REQUEST_TIMEOUT", "300")))
    EMBEDDING_MODEL_NAME: str = Field(default=os.getenv("EMBEDDING_MODEL_NAME", "text-embedding-3-small"))
    EMBEDDING_DIMENSIONS: int = Field(default=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")))

    # Warmup
    WARMUP_ENABLED: bool = Field(default=os.getenv("WARMUP_ENABLED", "true").lower() == "true")
    WARMUP_PROMPT: str = Field(default=os.getenv("WARMUP_PROMPT", "Warm up. Reply with OK."))

    # Qdrant
    QDRANT_URL: str = Field(default=os.getenv("QDRANT_URL", "http://localhost:6333"))
    QDRANT_API_KEY: str | None = Field(default=os.getenv("QDRANT_API_KEY") or None)
    QDRANT_COLLECTION: str = Field(default=os.getenv("QDRANT_COLLECTION", "internal-documents"))

    # Blob storage (S3 or any S3-compatible endpoint such as MinIO)
    STORAGE_BUCKET: str = Field(default=os.getenv("STORAGE_BUCKET", "evaluation-documents"))
    STORAGE_ENDPOINT_URL: str | None = Field(default=os.getenv("STORAGE_ENDPOINT_URL") or None)
    AWS_REGION: str = Field(default=os.getenv("AWS_REGION", "us-east-1"))

    # Database
    DATABASE_URL: str = Field(default=os.getenv("DATABASE_URL", "sqlite:///./evaluations.db"))

    # Celery/Redis
    REDIS_URL: str = Field(default=os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    CELERY_SOFT_TIME_LIMIT: int = Field(default=int(os.getenv("CELERY_SOFT_TIME_LIMIT", "900")))  # 15 min
    CELERY_HARD_TIME_LIMIT: int = Field(default=int(os.getenv("CELERY_HARD_TIME_LIMIT", "960")))  # soft + buffer

    # Upper bound for any single storage / index / LLM call
    EXTERNAL_CALL_TIMEOUT: float = Field(default=float(os.getenv("EXTERNAL_CALL_TIMEOUT", "240")))


    def full_model_id(self, model_name: str | None = None) -> str:
        """
        Return provider-prefixed model id for LiteLLM, e.g.:
        - 'openai/gpt-4o-mini'
        - 'ollama/llama3.2'
        - 'groq/llama3-8b-8192'
        """
        name = model_name or self.LLM_MODEL_NAME
        provider = self.LLM_PROVIDER.strip().lower()
        # If already prefixed, keep as is
        if "/" in name:
            return name
        return f"{provider}/{name}"

    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() == "production"

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
