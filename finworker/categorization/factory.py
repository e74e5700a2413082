import json
from typing import ClassVar

from finworker.categorization.categorizer import TransactionCategorizer
from finworker.categorization.example_client_adapter import ExampleClientAdapter
from finworker.categorization.openai_client_adapter import OpenAIClientAdapter
from finworker.categorization.prompt_loader import load_json_schema
from finworker.config.settings import Settings

MAX_TEMPERATURE = 0.2


class CategorizerFactory:
    """Creates the transaction categorizer with the configured AI provider."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> TransactionCategorizer:
        """Create a categorizer; provider ``none`` means rules only."""
        provider = settings.categorization_provider.lower()
        if provider == "none":
            return TransactionCategorizer()
        if provider == "example":
            return TransactionCategorizer(client=ExampleClientAdapter())
        client = OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=cls._resolve_timeout_seconds(provider, settings),
            base_url=cls._resolve_base_url(provider, settings),
            model=cls._resolve_model_name(provider, settings),
            temperature=cls._resolve_temperature(provider, settings),
            json_schema=json.loads(load_json_schema()),
        )
        return TransactionCategorizer(client=client)

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (settings.categorization_openai_compatible_base_url or "").strip()
            if not url:
                raise ValueError(
                    "categorization_openai_compatible_base_url is required for "
                    "categorization_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "none",
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown categorization provider '{provider}'. Choose from: {supported}"
        )

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.categorization_openai_api_key,
            "openai_compatible": settings.categorization_openai_compatible_api_key,
            "openrouter": settings.categorization_openrouter_api_key,
            "groq": settings.categorization_groq_api_key,
            "ollama": settings.categorization_ollama_api_key,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_model_name(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.categorization_openai_model_name,
            "openai_compatible": settings.categorization_openai_compatible_model_name,
            "openrouter": settings.categorization_openrouter_model_name,
            "groq": settings.categorization_groq_model_name,
            "ollama": settings.categorization_ollama_model_name,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_timeout_seconds(cls, provider: str, settings: Settings) -> int:
        if provider == "openai_compatible":
            return settings.categorization_openai_compatible_timeout_seconds
        return settings.categorization_openai_timeout_seconds

    @classmethod
    def _resolve_temperature(cls, provider: str, settings: Settings) -> float:
        """Only the openai provider honours the setting, clamped to 0..0.2."""
        if provider != "openai":
            return 0.0
        return max(0.0, min(MAX_TEMPERATURE, settings.categorization_openai_temperature))
