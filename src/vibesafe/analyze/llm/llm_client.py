from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

# USD per 1K tokens (input, output)
_PRICING_PER_1K = {
    "gpt-4.1": (0.002, 0.008),
    "gpt-4.1-mini": (0.0004, 0.0016),
    "gpt-4.1-nano": (0.0001, 0.0004),
    "gpt-4o": (0.005, 0.015),
    "gpt-4o-mini": (0.00015, 0.0006),
}
_DEFAULT_PRICING = (0.002, 0.008)


@dataclass
class LLMUsage:
    model: str
    tokens_in: int = 0
    tokens_out: int = 0
    cost_usd: float = 0.0
    latency_ms: int = 0


@dataclass
class LLMResponse:
    content: str
    usage: LLMUsage
    success: bool
    error: Optional[str] = None

    @classmethod
    def failed(cls, model: str, error: Optional[str]) -> "LLMResponse":
        return cls(content="", usage=LLMUsage(model), success=False, error=error)


def _usage_from_response(model: str, response: Any, latency_ms: int) -> LLMUsage:
    usage = getattr(response, "usage", None)
    tokens_in = int(getattr(usage, "input_tokens", 0) or 0)
    tokens_out = int(getattr(usage, "output_tokens", 0) or 0)
    return LLMUsage(
        model=model,
        tokens_in=tokens_in,
        tokens_out=tokens_out,
        cost_usd=LLMClient.estimate_cost(model, tokens_in, tokens_out),
        latency_ms=latency_ms,
    )


class LLMClient:
    """Thin wrapper over the OpenAI Responses API used for fix suggestions.

    Each model gets ``max_retries`` attempts with exponential backoff; when the
    primary model is exhausted the fallback model (if distinct) is tried. The
    client never raises for API or transport failures: they come back as an
    unsuccessful ``LLMResponse``.
    """

    def __init__(
        self,
        api_key: str,
        primary_model: str = "gpt-4o-mini",
        fallback_model: str = "gpt-4.1-mini",
        timeout_seconds: int = 60,
        max_retries: int = 2,
        temperature: float = 0.3,
        client: Any = None,
    ) -> None:
        self.api_key = api_key
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.timeout = timeout_seconds
        self.max_retries = max(int(max_retries), 1)
        self.temperature = temperature
        self._client = client

    @property
    def client(self):
        """Lazy initialize OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def models(self) -> List[Tuple[str, str]]:
        """(label, model) pairs in the order they are tried."""
        chain = [("Primary", self.primary_model)]
        if self.fallback_model and self.fallback_model != self.primary_model:
            chain.append(("Fallback", self.fallback_model))
        return chain

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int = 350,
    ) -> LLMResponse:
        failures: List[Tuple[str, LLMResponse]] = []
        for label, model in self.models():
            response = await self._call_with_retry(model, system_prompt, user_content, max_tokens)
            if response.success:
                return response
            failures.append((label, response))

        if len(failures) == 1:
            return failures[0][1]
        last = failures[-1][1]
        last.error = "; ".join(f"{label} failed: {resp.error or 'unknown error'}" for label, resp in failures)
        return last

    async def _request(self, model: str, system: str, user: str, max_tokens: int) -> Any:
        return await asyncio.wait_for(
            self.client.responses.create(
                model=model,
                instructions=system,
                input=user,
                max_output_tokens=max_tokens,
                temperature=self.temperature,
            ),
            timeout=self.timeout,
        )

    async def _call_with_retry(
        self,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
    ) -> LLMResponse:
        error: Optional[str] = None
        for attempt in range(self.max_retries):
            if attempt:
                await asyncio.sleep(2 ** (attempt - 1))
            started = time.monotonic()
            try:
                response = await self._request(model, system, user, max_tokens)
            except asyncio.TimeoutError:
                error = f"Timeout after {self.timeout}s"
                continue
            except Exception as exc:
                error = f"{type(exc).__name__}: {exc}"
                continue
            latency_ms = int((time.monotonic() - started) * 1000)
            return LLMResponse(
                content=getattr(response, "output_text", "") or "",
                usage=_usage_from_response(model, response, latency_ms),
                success=True,
            )
        return LLMResponse.failed(model, error)

    @staticmethod
    def estimate_cost(model: str, tokens_in: int, tokens_out: int) -> float:
        """Estimate cost in USD based on model pricing."""
        rate_in, rate_out = _PRICING_PER_1K.get(model, _DEFAULT_PRICING)
        return tokens_in / 1000 * rate_in + tokens_out / 1000 * rate_out
