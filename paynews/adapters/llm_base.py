from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


@dataclass
class LLMResponse:
    raw_text: str
    raw: Dict[str, Any] = field(default_factory=dict)
    usage: Optional[Dict[str, Any]] = None


def completion_payload(
    content: str,
    model: str,
    usage: Optional[Dict[str, Any]] = None,
    citations: Optional[list] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "model": model,
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }
    if usage is not None:
        payload["usage"] = usage
    if citations:
        payload["citations"] = citations
    return payload


class LLMAdapter(Protocol):
    def complete(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        raise NotImplementedError

    def generate(self, prompt: str) -> str:
        return self.complete(prompt).raw_text
