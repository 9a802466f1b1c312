"""Внешний генератор текста (OpenAI-совместимый API)"""
import logging
from typing import Protocol

import httpx

from services.errors import InsightGenerationFailure, InsightGenerationTimeout

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a workplace culture analyst providing insights based on preference survey data."
RECOMMENDATIONS_SYSTEM_PROMPT = "You are a workplace transformation consultant providing practical recommendations."


class TextGenerator(Protocol):
    async def generate(self, prompt: str, timeout: float) -> str:
        ...


class OpenAIChatGenerator:
    """Генерация текста через /chat/completions"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 500,
        system_prompt: str = SYSTEM_PROMPT,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.transport = transport

    async def generate(self, prompt: str, timeout: float) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=self.transport
        ) as client:
            try:
                response = await client.post("/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error(f"Text generation API returned {exc.response.status_code}: {exc.response.text}")
                raise InsightGenerationFailure(f"Text generation API error: {exc.response.status_code}") from exc
            except httpx.TimeoutException as exc:
                raise InsightGenerationTimeout(f"Text generation API timed out after {timeout}s") from exc
            except httpx.RequestError as exc:
                logger.error(f"Could not reach text generation API: {exc}")
                raise InsightGenerationFailure(f"Could not reach text generation API: {exc}") from exc

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise InsightGenerationFailure("Unexpected response from text generation API") from exc

        if not content or not content.strip():
            raise InsightGenerationFailure("Text generation API returned empty content")
        return content
