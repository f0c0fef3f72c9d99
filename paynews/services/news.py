from __future__ import annotations

from typing import Any, Dict, List

from paynews.adapters.llm_base import LLMAdapter
from paynews.gates.parsers import extract_articles
from paynews.handlers.chat import HandlerResult, handle_chat, handle_news
from paynews.services.filters import FilterOptions
from paynews.settings import NewsConfig
from paynews.store.articles import ArticleStore
from paynews.utils.io import read_text
from paynews.utils.time import utc_now_iso

INSERT_FIELDS = ("title", "url", "summary", "relevance_score")
DATE_WINDOW_TEXT = {
    "all": "published recently",
    "today": "published in the last 24 hours",
    "week": "published in the last week",
    "month": "published in the last month",
}


def _bullets(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else "- Any"


def _render_prompt(template: str, values: Dict[str, str]) -> str:
    for key, value in values.items():
        template = template.replace(f"{{{{{key}}}}}", value)
    return template.strip()


def build_news_prompt(config: NewsConfig) -> str:
    template = read_text(config.prompts_dir / "news_fetch.md")
    return _render_prompt(
        template,
        {
            "ARTICLE_COUNT": str(config.article_count),
            "COMPANIES": _bullets(config.companies),
        },
    )


def build_search_prompt(filters: FilterOptions, config: NewsConfig) -> str:
    template = read_text(config.prompts_dir / "news_search.md")
    return _render_prompt(
        template,
        {
            "ARTICLE_COUNT": str(config.article_count),
            "DATE_WINDOW": DATE_WINDOW_TEXT[filters.date_range],
            "COMPANIES": _bullets(filters.companies),
            "TOPICS": _bullets(filters.topics),
            "MIN_SCORE": f"{filters.min_relevance_score:g}",
        },
    )


def content_from_completion(data: Any) -> str:
    choices = data.get("choices") if isinstance(data, dict) else None
    message = choices[0].get("message") if choices and isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        print(f"[news] invalid API response structure: {data!r}")
        raise ValueError("Invalid response format from Chat API")
    return content.strip()


def _raise_for_status(result: HandlerResult) -> None:
    if result.ok:
        return
    reason = result.body.get("details") or result.body.get("error") or "Unknown error"
    raise RuntimeError(f"Chat API error: {result.status} {reason}")


def _stamp(articles: List[Dict]) -> List[Dict]:
    fetched_at = utc_now_iso()
    return [{**article, "fetched_at": fetched_at} for article in articles]


def fetch_news(adapter: LLMAdapter | None, config: NewsConfig) -> List[Dict]:
    print("[news] requesting latest fintech articles")
    result = handle_chat("POST", {"prompt": build_news_prompt(config)}, adapter)
    _raise_for_status(result)
    content = content_from_completion(result.body)
    try:
        articles = extract_articles(content)
    except ValueError as exc:
        raise ValueError(f"Failed to parse JSON response: {exc}") from exc
    print(f"[news] parsed {len(articles)} articles")
    return _stamp(articles)


def fetch_and_store_news(adapter: LLMAdapter | None, store: ArticleStore, config: NewsConfig) -> List[Dict]:
    articles = fetch_news(adapter, config)
    added = store.add_articles(articles)
    print(f"[news] stored {len(added)} new articles")
    return articles


def search_articles(filters: FilterOptions, adapter: LLMAdapter | None, config: NewsConfig) -> List[Dict]:
    if filters.is_empty:
        raise ValueError("Select at least one company or topic to search.")
    print(f"[news] searching with filters: {filters}")
    result = handle_news("POST", {"message": build_search_prompt(filters, config)}, adapter)
    _raise_for_status(result)
    articles = result.body.get("articles")
    if not isinstance(articles, list):
        raise ValueError("Invalid response format from server")
    records = [
        {key: article[key] for key in INSERT_FIELDS if key in article}
        for article in articles
    ]
    return _stamp(records)


def search_and_store(
    filters: FilterOptions, adapter: LLMAdapter | None, store: ArticleStore, config: NewsConfig
) -> List[Dict]:
    articles = search_articles(filters, adapter, config)
    added = store.add_articles(articles)
    print(f"[news] stored {len(added)} new articles")
    return articles
