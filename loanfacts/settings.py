from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    evidence_weights_path: Optional[str] = Field(default=None)
    default_evidence_weight: float = Field(default=0.5, ge=0.0)

    model_config = SettingsConfigDict(env_prefix="LOANFACTS_", case_sensitive=False)


settings = Settings()
