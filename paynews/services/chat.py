from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from paynews.adapters.llm_base import LLMAdapter
from paynews.handlers.chat import handle_chat
from paynews.services.news import content_from_completion

ROLE_LABELS = {"user": "You", "assistant": "AI", "error": "Error"}


@dataclass
class ChatMessage:
    role: str
    content: str

    @property
    def label(self) -> str:
        return ROLE_LABELS.get(self.role, self.role)


@dataclass
class ChatSession:
    adapter: Optional[LLMAdapter]
    messages: List[ChatMessage] = field(default_factory=list)
    error: Optional[str] = None

    def send(self, text: str) -> ChatMessage | None:
        user_message = text.strip()
        if not user_message:
            return None
        self.error = None
        self.messages.append(ChatMessage("user", user_message))
        try:
            result = handle_chat("POST", {"prompt": user_message}, self.adapter)
            if not result.ok:
                reason = result.body.get("details") or result.body.get("error")
                raise RuntimeError(f"Chat API error: {result.status} {reason}")
            reply = ChatMessage("assistant", content_from_completion(result.body))
        except (RuntimeError, ValueError) as exc:
            self.error = str(exc) or "An unexpected error occurred"
            reply = ChatMessage("error", f"Error: {self.error}")
        self.messages.append(reply)
        return reply
