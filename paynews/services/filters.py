from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List

from paynews.utils.time import parse_iso

DATE_WINDOWS = {
    "all": None,
    "today": timedelta(hours=24),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


@dataclass
class FilterOptions:
    companies: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    date_range: str = "all"
    min_relevance_score: float = 7.0

    def __post_init__(self) -> None:
        if self.date_range not in DATE_WINDOWS:
            raise ValueError(
                f"Unsupported date range: {self.date_range}. "
                f"Expected one of: {', '.join(DATE_WINDOWS)}"
            )

    @property
    def is_empty(self) -> bool:
        return not self.companies and not self.topics


def toggle(values: List[str], value: str) -> List[str]:
    if value in values:
        return [item for item in values if item != value]
    return [*values, value]


def dedupe_key(article: Dict) -> str:
    return " ".join(str(article.get("title") or "").split()).casefold()


def _name_variants(name: str) -> List[str]:
    return [part.strip().casefold() for part in name.split("/") if part.strip()]


def _mentions_any(article: Dict, names: Iterable[str]) -> bool:
    text = f"{article.get('title') or ''} {article.get('summary') or ''}".casefold()
    return any(
        re.search(rf"\b{re.escape(variant)}\b", text)
        for name in names
        for variant in _name_variants(name)
    )


def _article_time(article: Dict) -> datetime | None:
    return parse_iso(article.get("fetched_at")) or parse_iso(article.get("created_at"))


def _passes_score(article: Dict, minimum: float) -> bool:
    score = article.get("relevance_score")
    if score is None:
        return True
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return False
    return score >= minimum


def apply_filters(articles: Iterable[Dict], filters: FilterOptions, now: datetime | None = None) -> List[Dict]:
    now = now or datetime.now(timezone.utc)
    window = DATE_WINDOWS[filters.date_range]
    kept: List[Dict] = []
    for article in articles:
        if not _passes_score(article, filters.min_relevance_score):
            continue
        if filters.companies and not _mentions_any(article, filters.companies):
            continue
        if filters.topics and not _mentions_any(article, filters.topics):
            continue
        if window is not None:
            stamp = _article_time(article)
            if stamp is None or now - stamp > window:
                continue
        kept.append(article)
    return kept


def is_duplicate(article: Dict, existing: Iterable[Dict]) -> bool:
    key = dedupe_key(article)
    url = article.get("url")
    return any(
        (key and dedupe_key(other) == key) or (url and other.get("url") == url)
        for other in existing
    )


def merge_articles(existing: Iterable[Dict], incoming: Iterable[Dict]) -> List[Dict]:
    """Prepend unseen incoming articles; titles and URLs identify duplicates."""
    current = list(existing)
    seen_titles = {dedupe_key(article) for article in current} - {""}
    seen_urls = {article.get("url") for article in current if article.get("url")}
    added: List[Dict] = []
    for article in incoming:
        key = dedupe_key(article)
        url = article.get("url")
        if (key and key in seen_titles) or (url and url in seen_urls):
            continue
        if key:
            seen_titles.add(key)
        if url:
            seen_urls.add(url)
        added.append(article)
    return [*reversed(added), *current]
