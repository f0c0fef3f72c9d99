from __future__ import annotations

import time
from typing import Any, Dict, List

from openai import OpenAI
from openai import APIConnectionError, APITimeoutError, RateLimitError, InternalServerError

from paynews.settings import Settings

from .llm_base import LLMAdapter, LLMResponse, completion_payload


class PerplexityAdapter(LLMAdapter):
    def __init__(self, settings: Settings, client: Any = None) -> None:
        self.api_key = settings.perplexity_api_key
        if not self.api_key:
            raise RuntimeError("Perplexity API key is not configured")
        self.model = settings.perplexity_model
        self.max_attempts = max(1, settings.perplexity_max_attempts)
        self.base_delay = 1.0
        self.client = client or OpenAI(api_key=self.api_key, base_url=settings.perplexity_base_url)

    def complete(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        attempt = 0
        backoff = self.base_delay
        while True:
            attempt += 1
            try:
                print(f"[perplexity] model={self.model} attempt={attempt}/{self.max_attempts}")
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                )
                content = response.choices[0].message.content
                if not content:
                    raise RuntimeError("Perplexity returned empty content.")
                usage = getattr(response, "usage", None)
                if usage:
                    usage_payload = {
                        "prompt_tokens": getattr(usage, "prompt_tokens", None),
                        "completion_tokens": getattr(usage, "completion_tokens", None),
                        "total_tokens": getattr(usage, "total_tokens", None),
                    }
                    print(
                        f"[perplexity] model={self.model} "
                        f"prompt_tokens={usage_payload['prompt_tokens']} "
                        f"completion_tokens={usage_payload['completion_tokens']} "
                        f"total_tokens={usage_payload['total_tokens']}"
                    )
                else:
                    usage_payload = None
                citations = getattr(response, "citations", None)
                raw = completion_payload(
                    content,
                    getattr(response, "model", None) or self.model,
                    usage=usage_payload,
                    citations=list(citations) if citations else None,
                )
                return LLMResponse(raw_text=content, raw=raw, usage=usage_payload)
            except RateLimitError as exc:
                error = getattr(exc, "error", None)
                code = getattr(error, "code", None)
                if code == "insufficient_quota":
                    raise RuntimeError(
                        "Perplexity API quota exceeded. Check the billing settings of the account."
                    ) from exc
                if attempt >= self.max_attempts:
                    raise
                print(f"[perplexity] rate limited -> sleeping {backoff:.2f}s")
            except (APITimeoutError, APIConnectionError, InternalServerError) as exc:
                if attempt >= self.max_attempts:
                    raise
                print(f"[perplexity] transient error: {exc} -> sleeping {backoff:.2f}s")
            time.sleep(backoff)
            backoff *= 2
