# medassist/core/config.py

from pathlib import Path
from typing import List, Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # MongoDB settings
    MONGODB_URI: str = Field(default="mongodb://localhost:27017")
    MONGODB_DB: str = Field(default="medassist")

    # Auth/JWT settings
    SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24)

    # Runtime
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # Assistant data files
    KNOWLEDGE_BASE_PATH: str = Field(default=str(DATA_DIR / "medical_knowledge_base.md"))
    VOCABULARY_PATH: str = Field(default=str(DATA_DIR / "assistant_vocabulary.yaml"))

    # Assistant tuning
    SIMILARITY_THRESHOLD: float = Field(default=0.70, ge=0.0, le=1.0)
    QUESTION_CACHE_SIZE: int = Field(default=20, gt=0)
    REUSE_SIMILAR_ANSWERS: bool = Field(default=False)
    HISTORY_LIMIT: int = Field(default=50, gt=0)
    USER_HISTORY_LIMIT: int = Field(default=100, gt=0)
    MAX_RECOMMENDED_SPECIALIZATIONS: int = Field(default=3, ge=1, le=3)
    SPECIALIZATION_TIE_BREAK: Literal["declaration", "alphabetical"] = Field(default="declaration")


settings = Settings()
