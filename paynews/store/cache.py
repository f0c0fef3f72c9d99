from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from paynews.utils.io import read_text, write_json


class ArticleCache:
    """JSON file holding the last known article list."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Dict]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(read_text(self.path))
        except json.JSONDecodeError as exc:
            print(f"[store] ignoring unreadable cache {self.path}: {exc}")
            return []
        if not isinstance(payload, list):
            print(f"[store] ignoring cache {self.path}: expected a list")
            return []
        return [item for item in payload if isinstance(item, dict)]

    def save(self, articles: List[Dict]) -> None:
        write_json(self.path, articles)
