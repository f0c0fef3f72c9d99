from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, List

from paynews.utils.io import write_text

EMPTY_MESSAGE = 'No articles yet. Run "fetch" to get started.'
CSV_FIELDS = ["id", "title", "url", "summary", "relevance_score", "fetched_at", "created_at"]


def _score(article: Dict) -> str:
    score = article.get("relevance_score")
    return "n/a" if score is None else f"{score:g}" if isinstance(score, float) else str(score)


def render_articles(articles: List[Dict]) -> str:
    if not articles:
        return EMPTY_MESSAGE
    lines: List[str] = []
    for index, article in enumerate(articles, start=1):
        lines.extend(
            [
                f"{index}. {article.get('title', '')}",
                f"   {article.get('url', '')}",
                f"   {article.get('summary', '')}",
                f"   relevance: {_score(article)}  id: {article.get('id', '-')}",
                "",
            ]
        )
    return "\n".join(lines).rstrip() + "\n"


def write_articles_markdown(path: Path, articles: List[Dict]) -> None:
    lines: List[str] = ["# Fintech News", ""]
    if not articles:
        lines.append(EMPTY_MESSAGE)
    for article in articles:
        lines.extend(
            [
                f"## [{article.get('title', '')}]({article.get('url', '')})",
                "",
                article.get("summary", ""),
                "",
                f"Relevance score: {_score(article)}",
                "",
            ]
        )
    write_text(path, "\n".join(lines).strip() + "\n")


def write_articles_csv(path: Path, articles: List[Dict]) -> None:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for article in articles:
        writer.writerow({key: article.get(key, "") for key in CSV_FIELDS})
    write_text(path, buffer.getvalue())
