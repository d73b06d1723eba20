"""
Famops - LLM Client.

External content generation through OpenAI chat completions in JSON mode.
The client only returns raw text; parsing and validation belong to the
orchestrator so that an invalid reply falls back instead of retrying.
"""

import logging
from typing import Any, Protocol

from openai import AsyncOpenAI

from famops.config import settings
from famops.dates import week_dates
from famops.generation.fallback import trip_duration
from famops.generation.params import TripDetails
from famops.generation.schemas import GenerationKind
from famops.llm.prompt_logger import enable_prompt_logging, log_prompt
from famops.llm.prompts import MEAL_PLAN_SYSTEM, PACKING_SYSTEM, meal_plan_prompt, packing_prompt

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    """Anything that turns a generation request payload into raw model output."""

    async def generate(self, kind: GenerationKind, payload: dict[str, Any]) -> str | dict[str, Any]:
        ...


# Singleton client instance
_client: AsyncOpenAI | None = None


def get_client() -> AsyncOpenAI:
    """
    Get the async OpenAI client.

    Uses singleton pattern to reuse connection. SDK-level retries are off;
    retry policy lives in famops.generation.retry.
    """
    global _client

    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)

    return _client


class OpenAIContentGenerator:
    """ContentGenerator backed by the OpenAI chat completions API."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        *,
        model: str = "gpt-4.1-mini",
        temperature: float = 0.5,
        max_tokens: int = 4000,
    ):
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_client()
        return self._client

    def build_prompts(self, kind: GenerationKind, payload: dict[str, Any]) -> tuple[str, str]:
        if kind == "meal_plan":
            dates = week_dates(payload["weekStart"])
            return MEAL_PLAN_SYSTEM, meal_plan_prompt(payload, dates)
        duration = trip_duration(TripDetails.coerce(payload))
        return PACKING_SYSTEM, packing_prompt(payload, duration)

    async def generate(self, kind: GenerationKind, payload: dict[str, Any]) -> str:
        system_prompt, user_prompt = self.build_prompts(kind, payload)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            log_prompt(
                kind=kind,
                model=self.model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                error=str(e),
            )
            raise

        content = response.choices[0].message.content or ""
        log_prompt(
            kind=kind,
            model=self.model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            response=content,
        )
        return content


def build_generator() -> ContentGenerator | None:
    """Generator for the configured environment, or None when no API key is set."""
    if settings.famops_log_prompts:
        enable_prompt_logging(True)
    if not settings.openai_api_key:
        logger.info("OPENAI_API_KEY not set - generation will use the fallback templates")
        return None
    return OpenAIContentGenerator(model=settings.openai_model)
