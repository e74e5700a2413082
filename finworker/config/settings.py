import base64
import binascii

import httpx
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Provider credentials and the PII pepper have no defaults: a missing value
    fails at startup with a ValidationError instead of degrading at runtime.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    database_url: str = ""
    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "finworker"
    db_username: str = "finworker"
    db_password: str = "secret"

    provider_api_key: str
    provider_base_url: str
    provider_workflow_id: str
    provider_poll_interval_ms: int = 5000
    provider_poll_timeout_ms: int = 600000
    provider_http_timeout_seconds: int = 30

    pii_hash_pepper: str

    job_max_attempts: int = 5
    job_base_backoff_ms: int = 1000
    job_max_backoff_ms: int = 30000
    job_poll_interval_seconds: int = 2
    worker_concurrency: int = 2

    schema_version: str = "v1"
    parser_version: str = "provider-v1"
    prompt_version: str = "categorize-v1"
    model_name: str = "provider"

    files_root: str = "/app/files"

    pdf_engine: str = "pdfplumber"
    pdf_ocr_fallback: bool = True

    categorization_provider: str = "none"
    categorization_openai_api_key: str = ""
    categorization_openai_model_name: str = "gpt-4o-mini"
    categorization_openai_timeout_seconds: int = 30
    categorization_openai_temperature: float = 0.0
    categorization_openai_compatible_base_url: str = ""
    categorization_openai_compatible_api_key: str = ""
    categorization_openai_compatible_model_name: str = ""
    categorization_openai_compatible_timeout_seconds: int = 30
    categorization_openrouter_api_key: str = ""
    categorization_openrouter_model_name: str = ""
    categorization_groq_api_key: str = ""
    categorization_groq_model_name: str = ""
    categorization_ollama_api_key: str = "ollama"
    categorization_ollama_model_name: str = ""

    health_enabled: bool = True
    health_host: str = "0.0.0.0"
    health_port: int = 8081

    @field_validator("pii_hash_pepper")
    @classmethod
    def _pepper_is_32_byte_key(cls, value: str) -> str:
        value = value.strip()
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("pii_hash_pepper must be base64 encoded") from exc
        if len(decoded) != 32:
            raise ValueError("pii_hash_pepper must decode to exactly 32 bytes")
        return value

    @field_validator("provider_api_key", "provider_base_url", "provider_workflow_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value must not be blank")
        return value.strip()

    @field_validator("provider_base_url")
    @classmethod
    def _absolute_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"provider_base_url is not a valid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("provider_base_url must be an absolute http(s) URL")
        return value.rstrip("/")

    @property
    def version_pin(self) -> dict[str, str]:
        return {
            "schema_version": self.schema_version,
            "parser_version": self.parser_version,
            "prompt_version": self.prompt_version,
            "model": self.model_name,
        }
