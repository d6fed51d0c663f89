"""
AI invocation primitive.

Actions only depend on `process_prompt_to_text(prompt, tag)`. The default
implementation calls the OpenAI chat completions API and prices each call
from its token usage.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Optional, Protocol

from openai import AsyncOpenAI

from .config import Config
from .models import Cost, PromptResponse

logger = logging.getLogger(__name__)


class PromptProcessor(Protocol):
    model_id: str

    async def process_prompt_to_text(self, prompt: str, tag: str) -> PromptResponse:
        ...


class OpenAIPromptProcessor:
    """Prompt processor backed by OpenAI chat completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        input_price_per_1m: Optional[float] = None,
        output_price_per_1m: Optional[float] = None,
    ):
        """
        Initialize the processor.
        If api_key is not provided, OPENAI_API_KEY from the environment is used.

        Args:
            api_key: OpenAI API key (optional)
            model: Chat model id (defaults to Config.MODEL)
            input_price_per_1m: USD per million prompt tokens
            output_price_per_1m: USD per million completion tokens
        """
        api_key = api_key or Config.OPENAI_API_KEY
        if not api_key:
            raise ValueError(
                "OpenAI API key required. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.client = AsyncOpenAI(api_key=api_key)
        self.model_id = model or Config.MODEL
        self.input_price_per_1m = (
            Config.INPUT_PRICE_PER_1M if input_price_per_1m is None else input_price_per_1m
        )
        self.output_price_per_1m = (
            Config.OUTPUT_PRICE_PER_1M if output_price_per_1m is None else output_price_per_1m
        )

        # Token usage per tag, for the caller's bookkeeping
        self.usage_by_tag: Dict[str, Cost] = defaultdict(Cost)

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> Cost:
        input_cost = (input_tokens / 1_000_000) * self.input_price_per_1m
        output_cost = (output_tokens / 1_000_000) * self.output_price_per_1m
        return Cost(
            total_cost=input_cost + output_cost,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def process_prompt_to_text(self, prompt: str, tag: str) -> PromptResponse:
        """
        Send one prompt and return the text plus its cost.

        Errors from the API propagate unchanged; retries and timeouts are the
        client library's business.
        """
        response = await self.client.chat.completions.create(
            model=self.model_id,
            messages=[{"role": "user", "content": prompt}],
        )

        input_tokens = output_tokens = 0
        if getattr(response, "usage", None):
            input_tokens = getattr(response.usage, "prompt_tokens", 0) or 0
            output_tokens = getattr(response.usage, "completion_tokens", 0) or 0

        cost = self.calculate_cost(input_tokens, output_tokens)
        self.usage_by_tag[tag] = self.usage_by_tag[tag] + cost
        logger.debug(
            "%s: %s input, %s output tokens ($%.6f)",
            tag, f"{input_tokens:,}", f"{output_tokens:,}", cost.total_cost,
        )

        content = response.choices[0].message.content or ""
        return PromptResponse(result=content.strip(), cost=cost)
