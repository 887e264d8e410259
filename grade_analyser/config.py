# grade_analyser/config.py

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Gemini credentials; the narrative report is disabled without a key
    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GRADE_ANALYSER_GEMINI_API_KEY", "GEMINI_API_KEY"),
    )
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Where the working class snapshot is kept between sessions
    STORAGE_PATH: str = ".grade_analyser/snapshot.json"

    # Setup screen defaults
    DEFAULT_MAX_MARKS: int = 100
    DEFAULT_CLASS_SIZE: int = 5
    DEFAULT_SUBJECTS: List[str] = ["Mathematics", "Science"]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="GRADE_ANALYSER_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
