from __future__ import annotations

import uuid
from typing import Dict, Iterable, List, Optional

from paynews.services.filters import is_duplicate, merge_articles
from paynews.store.cache import ArticleCache
from paynews.store.records import RecordStore
from paynews.utils.time import utc_now_iso


class ArticleStore:
    """Current article list, kept in sync with the remote table and the local cache.

    The remote table is the source of truth when it answers. Whenever it does
    not, the store keeps working from the cache and records the failure in
    ``error`` so the caller can show it.
    """

    def __init__(self, remote: RecordStore, cache: ArticleCache) -> None:
        self.remote = remote
        self.cache = cache
        self.articles: List[Dict] = cache.load()
        self.error: Optional[str] = None
        print(f"[store] loaded {len(self.articles)} cached articles")

    def _set(self, articles: List[Dict]) -> None:
        self.articles = articles
        self.cache.save(articles)

    def fetch_articles(self) -> List[Dict]:
        try:
            rows = self.remote.select_all()
        except Exception as exc:
            self.error = str(exc) or "Failed to fetch articles"
            print(f"[store] fetch failed, falling back to cache: {self.error}")
            self.articles = self.cache.load()
            return self.articles
        print(f"[store] loaded {len(rows)} articles from remote")
        self.error = None
        self._set(rows)
        return self.articles

    def add_article(self, article: Dict) -> Dict | None:
        if is_duplicate(article, self.articles):
            print(f"[store] article already exists: {article.get('title')}")
            return None
        try:
            row = self.remote.insert(article)
        except Exception as exc:
            self.error = str(exc) or "Failed to add article"
            print(f"[store] insert failed, keeping article locally: {self.error}")
            row = {**article, "id": str(uuid.uuid4()), "created_at": utc_now_iso()}
        self._set(merge_articles(self.articles, [row]))
        return row

    def add_articles(self, articles: Iterable[Dict]) -> List[Dict]:
        added: List[Dict] = []
        for article in articles:
            row = self.add_article(article)
            if row is not None:
                added.append(row)
        return added

    def delete_article(self, article_id: str) -> bool:
        if not any(article.get("id") == article_id for article in self.articles):
            return False
        try:
            self.remote.delete(article_id)
        except Exception as exc:
            self.error = str(exc) or "An error occurred while deleting the article"
            print(f"[store] remote delete failed: {self.error}")
        self._set([article for article in self.articles if article.get("id") != article_id])
        return True
