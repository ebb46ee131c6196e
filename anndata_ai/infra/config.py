from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.enums import LLMBackend
from ..domain.normalizers import EnumNormalizer


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    llm_backend: str = Field(default="watsonx", validation_alias="LLM_BACKEND")
    llm_timeout_seconds: float = Field(
        default=30.0, gt=0, validation_alias="LLM_TIMEOUT_SECONDS"
    )

    watsonx_api_key: Optional[str] = Field(
        default=None, validation_alias="WATSONX_API_KEY"
    )
    watsonx_project_id: Optional[str] = Field(
        default=None, validation_alias="WATSONX_PROJECT_ID"
    )
    watsonx_url: str = Field(
        default="https://us-south.ml.cloud.ibm.com", validation_alias="WATSONX_URL"
    )
    watsonx_iam_url: str = Field(
        default="https://iam.cloud.ibm.com/identity/token",
        validation_alias="WATSONX_IAM_URL",
    )
    watsonx_api_version: str = Field(
        default="2024-05-31", validation_alias="WATSONX_API_VERSION"
    )
    watsonx_model: str = Field(
        default="ibm/granite-3-8b-instruct", validation_alias="WATSONX_MODEL"
    )

    huggingface_api_key: Optional[str] = Field(
        default=None, validation_alias="HUGGINGFACE_API_KEY"
    )
    huggingface_base_url: str = Field(
        default="https://api-inference.huggingface.co/models",
        validation_alias="HUGGINGFACE_BASE_URL",
    )
    huggingface_model: str = Field(
        default="ibm-granite/granite-3.3-8b-instruct",
        validation_alias="HUGGINGFACE_MODEL",
    )

    api_prefix: str = Field(default="/api/ai", validation_alias="API_PREFIX")
    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
    log_path: Optional[str] = Field(default=None, validation_alias="LOG_PATH")
    fastapi_port: int = Field(default=8000, validation_alias="FASTAPI_PORT")

    @field_validator("llm_backend", mode="before")
    @classmethod
    def normalize_llm_backend(cls, value):
        if value is None or value == "":
            return LLMBackend.WATSONX.value
        return str(EnumNormalizer.normalize(LLMBackend, value)).lower()

    @field_validator("watsonx_url", "huggingface_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/") if value else value

    @field_validator("api_prefix", mode="after")
    @classmethod
    def normalize_api_prefix(cls, value: str) -> str:
        value = (value or "").strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        origins = [item.strip() for item in self.cors_origins.split(",")]
        return [item for item in origins if item] or ["*"]

    @property
    def default_model(self) -> str:
        if self.llm_backend == LLMBackend.HUGGINGFACE.value:
            return self.huggingface_model
        return self.watsonx_model


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig()
