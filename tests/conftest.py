from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pytest

from paynews.adapters.llm_base import LLMAdapter, LLMResponse, completion_payload
from paynews.settings import load_news_config
from paynews.store.articles import ArticleStore
from paynews.store.cache import ArticleCache
from paynews.store.records import MemoryRecordStore

ENV_KEYS = [
    "PERPLEXITY_API_KEY",
    "VITE_PERPLEXITY_API_KEY",
    "PERPLEXITY_MODEL",
    "PERPLEXITY_BASE_URL",
    "PERPLEXITY_MAX_ATTEMPTS",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "VITE_SUPABASE_URL",
    "VITE_SUPABASE_ANON_KEY",
    "PAYNEWS_TABLE",
    "PAYNEWS_CACHE_PATH",
    "PAYNEWS_DEBUG_EXTRACT",
]


@dataclass
class ScriptedAdapter(LLMAdapter):
    """Replies with fixed text and remembers what it was asked."""

    content: str = ""
    prompts: List[str] = field(default_factory=list)
    system_prompts: List[str] = field(default_factory=list)

    def complete(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt or "")
        return LLMResponse(raw_text=self.content, raw=completion_payload(self.content, "scripted"))


class BrokenRecordStore:
    def select_all(self):
        raise RuntimeError("supabase unreachable")

    def insert(self, record):
        raise RuntimeError("insert rejected")

    def delete(self, record_id):
        raise RuntimeError("delete rejected")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def news_config():
    return load_news_config()


@pytest.fixture
def cache(tmp_path):
    return ArticleCache(tmp_path / "articles.json")


@pytest.fixture
def store(cache):
    return ArticleStore(MemoryRecordStore(), cache)
