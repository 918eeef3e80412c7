from enum import Enum

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdStrategy(Enum):
    UUID = "uuid"
    SEQUENTIAL = "sequential"


class LLMConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "OPENAI_API_KEY",
            "OPENROUTER_API_KEY",
        ),
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias=AliasChoices(
            "OPENAI_BASE_URL",
            "OPENROUTER_BASE_URL",
        ),
    )
    model: str = Field(
        default="gpt-4o",
        validation_alias=AliasChoices(
            "OPENAI_MODEL",
            "OPENROUTER_MODEL",
        ),
    )
    timeout_seconds: float = 30.0


class WebhookConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ECURA_WEBHOOK_", env_file=".env", extra="ignore")

    url: str = ""
    source: str = "Ecura Connect CMS"
    timeout_seconds: float = 10.0


class SchedulingConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ECURA_SCHEDULING_", env_file=".env", extra="ignore"
    )

    scan_horizon_days: int = Field(default=30, ge=1)
    enforce_external_availability: bool = True
    default_reason: str = "General Checkup"
    id_strategy: IdStrategy = IdStrategy.UUID


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ECURA_", env_file=".env", extra="ignore")

    log_level: str = "INFO"
    llm: LLMConfig = Field(default_factory=lambda: LLMConfig())
    webhook: WebhookConfig = Field(default_factory=lambda: WebhookConfig())
    scheduling: SchedulingConfig = Field(default_factory=lambda: SchedulingConfig())
