import logging
from typing import Any, Optional

import httpx

from ..settings import settings

logger = logging.getLogger("recipebox.ai.openrouter")


class OpenRouterError(Exception):
    pass


class OpenRouterClient:
    """Thin REST client for the OpenRouter model list and chat completions."""

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openrouter_api_key
        self.base_url = (base_url or settings.openrouter_base_url).rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=settings.suggestions_timeout_sec)

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "OpenRouterClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def is_available(self) -> bool:
        return bool(self.api_key)

    def list_models(self) -> list[dict[str, Any]]:
        response = self.http_client.get(f"{self.base_url}/models")
        if response.status_code >= 400:
            raise OpenRouterError(f"Failed to fetch models: {response.status_code}")
        return response.json().get("data") or []

    def chat(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """POST /chat/completions. httpx.TimeoutException propagates to the caller."""
        response = self.http_client.post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": settings.site_url,
                "X-Title": "RecipeBox",
            },
            json={
                "model": model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            timeout=timeout or settings.suggestions_timeout_sec,
        )
        if response.status_code >= 400:
            raise OpenRouterError(f"OpenRouter API error: {response.status_code} {response.text}")
        logger.info(f"Chat completion model={model} status={response.status_code}")
        return response.json()
