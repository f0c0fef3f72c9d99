from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List
from urllib.parse import urlparse

from jsonschema import ValidationError, validate

from paynews.settings import PACKAGE_DIR
from paynews.utils.io import read_text

SCHEMA_PATH = PACKAGE_DIR / "schemas" / "article.schema.json"
ARTICLE_FIELDS = ("title", "url", "summary", "relevance_score", "fetched_at")
FIELD_ALIASES = {
    "headline": "title",
    "link": "url",
    "source_url": "url",
    "description": "summary",
    "score": "relevance_score",
    "relevance": "relevance_score",
    "relevancescore": "relevance_score",
}
_SCORE_TEXT = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(?:/\s*10)?\s*$")


def load_article_schema(require_score: bool = False, path: Path = SCHEMA_PATH) -> Dict:
    schema = json.loads(read_text(path))
    if require_score and "relevance_score" not in schema["required"]:
        schema["required"] = [*schema["required"], "relevance_score"]
    return schema


def is_absolute_url(value: object) -> bool:
    if not isinstance(value, str) or not value or any(ch.isspace() for ch in value):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def coerce_score(value: Any) -> Any:
    if isinstance(value, str):
        match = _SCORE_TEXT.match(value)
        if match:
            number = float(match.group(1))
            return int(number) if number.is_integer() else number
    return value


def _score_in_range(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 10


def _normalize_keys(record: Dict) -> Dict:
    normalized: Dict[str, Any] = {}
    for raw_key, value in record.items():
        key = str(raw_key).strip().lower().replace(" ", "_").replace("-", "_")
        key = FIELD_ALIASES.get(key, key)
        if key in ARTICLE_FIELDS and key not in normalized:
            normalized[key] = value
    return normalized


def clean_article(record: object, require_score: bool = False, schema: Dict | None = None) -> Dict | None:
    """Trim and coerce one parsed record, or return ``None`` when it is unusable.

    A usable record has a non-empty title and summary and an absolute http(s)
    URL. When ``require_score`` is set it also needs a numeric relevance score
    between 0 and 10; otherwise an unusable score is dropped and the record kept.
    """
    if not isinstance(record, dict):
        print(f"[validate] dropping non-object record: {record!r}")
        return None
    article = _normalize_keys(record)
    for key in ("title", "url", "summary"):
        value = article.get(key)
        if isinstance(value, str):
            article[key] = " ".join(value.split()) if key != "url" else value.strip().strip("<>")
    if article.get("relevance_score") is None:
        article.pop("relevance_score", None)
    else:
        article["relevance_score"] = coerce_score(article["relevance_score"])
        if not require_score and not _score_in_range(article["relevance_score"]):
            print(f"[validate] ignoring relevance score {article['relevance_score']!r} for {article.get('title')!r}")
            article.pop("relevance_score")

    schema = schema or load_article_schema(require_score)
    try:
        validate(instance=article, schema=schema)
    except ValidationError as exc:
        print(f"[validate] dropping article {article.get('title')!r}: {exc.message}")
        return None
    if not is_absolute_url(article["url"]):
        print(f"[validate] dropping article {article['title']!r}: invalid url {article['url']!r}")
        return None
    return article


def validate_articles(records: Iterable[object], require_score: bool = False) -> List[Dict]:
    schema = load_article_schema(require_score)
    cleaned: List[Dict] = []
    for record in records:
        article = clean_article(record, require_score=require_score, schema=schema)
        if article is not None:
            cleaned.append(article)
    return cleaned
