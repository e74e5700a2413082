import json
from typing import Any

import httpx
import openai

from finworker.categorization.client_base import BaseCategorizationClient
from finworker.categorization.exceptions import CategorizationError, CategorizationNetworkError

SYSTEM_PROMPT = "You are a precise financial transaction classifier."


def parse_labels(content: str) -> dict[int, str]:
    """Read ``{"categories": [{"index", "category"}, ...]}`` into an index map.

    Entries without an integer index are dropped.
    """
    try:
        parsed: Any = json.loads(content)
    except json.JSONDecodeError as exc:
        raise CategorizationError(f"AI returned invalid JSON: {exc}") from exc
    entries = parsed.get("categories") if isinstance(parsed, dict) else None
    if not isinstance(entries, list):
        raise CategorizationError("AI response is missing 'categories'")
    return {
        entry["index"]: str(entry.get("category", ""))
        for entry in entries
        if isinstance(entry, dict)
        and isinstance(entry.get("index"), int)
        and not isinstance(entry.get("index"), bool)
    }


class OpenAIClientAdapter(BaseCategorizationClient):
    """Labels transactions through an OpenAI-compatible chat API with a strict JSON schema."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        model: str,
        json_schema: dict[str, object],
        temperature: float = 0.0,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(api_key=api_key, timeout=timeout_seconds, base_url=base_url)
        self._model = model
        self._temperature = temperature
        self._response_format = {
            "type": "json_schema",
            "json_schema": {"name": "transaction_categories", "strict": True, "schema": json_schema},
        }

    def label_transactions(self, prompt: str) -> dict[int, str]:
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                temperature=self._temperature,
                response_format=self._response_format,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.TransportError) as exc:
            raise CategorizationNetworkError(f"AI provider unreachable: {exc}") from exc
        except openai.APIError as exc:
            raise CategorizationNetworkError(f"AI provider error: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CategorizationError("AI returned no content")
        return parse_labels(content)
