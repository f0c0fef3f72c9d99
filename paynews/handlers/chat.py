from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from openai import OpenAIError

from paynews.adapters.llm_base import LLMAdapter
from paynews.gates.parsers import extract_articles
from paynews.settings import CONFIG_DIR
from paynews.utils.io import read_text

PROMPTS_DIR = CONFIG_DIR / "prompts"
PROVIDER_ERROR = "Failed to get response from Perplexity API"


@dataclass
class HandlerResult:
    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _system_prompt(name: str, prompts_dir: Path = PROMPTS_DIR) -> str:
    return read_text(prompts_dir / f"{name}.md").strip()


def _user_message(body: Mapping[str, Any] | None, *keys: str) -> str | None:
    if not isinstance(body, Mapping):
        return None
    for key in keys:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _method_not_allowed() -> HandlerResult:
    return HandlerResult(405, {"error": "Method not allowed"})


def _provider_failure(exc: Exception) -> HandlerResult:
    print(f"[chat] API error: {type(exc).__name__}: {exc}")
    return HandlerResult(500, {"error": PROVIDER_ERROR, "details": str(exc)})


def handle_chat(method: str, body: Mapping[str, Any] | None, adapter: LLMAdapter | None) -> HandlerResult:
    """Forward a free-form prompt and return the raw completion payload."""
    if method.upper() != "POST":
        return _method_not_allowed()
    prompt = _user_message(body, "prompt", "message")
    if prompt is None:
        return HandlerResult(400, {"error": "Prompt is required and must be a non-empty string"})
    try:
        if adapter is None:
            raise RuntimeError("Perplexity API key is not configured")
        response = adapter.complete(prompt, system_prompt=_system_prompt("chat_system"))
    except (RuntimeError, ValueError, OpenAIError) as exc:
        return _provider_failure(exc)
    return HandlerResult(200, response.raw)


def handle_news(method: str, body: Mapping[str, Any] | None, adapter: LLMAdapter | None) -> HandlerResult:
    """Ask for articles as JSON and return the ones that survive extraction."""
    if method.upper() != "POST":
        return _method_not_allowed()
    message = _user_message(body, "message", "prompt")
    if message is None:
        return HandlerResult(400, {"error": "Message is required and must be a non-empty string"})
    try:
        if adapter is None:
            raise RuntimeError("Perplexity API key is not configured")
        response = adapter.complete(message, system_prompt=_system_prompt("news_system"))
        articles = extract_articles(response.raw_text, require_score=True)
    except (RuntimeError, ValueError, OpenAIError) as exc:
        return _provider_failure(exc)
    print(f"[chat] extracted {len(articles)} articles")
    return HandlerResult(200, {"articles": articles})


def handle_ping(method: str, adapter_configured: bool) -> HandlerResult:
    if method.upper() != "GET":
        return _method_not_allowed()
    return HandlerResult(200, {"status": "ok", "perplexity_configured": adapter_configured})
