from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import yaml
from dotenv import load_dotenv

from paynews.utils.io import read_text

PACKAGE_DIR = Path(__file__).resolve().parent
CONFIG_DIR = PACKAGE_DIR / "configs"
DEFAULT_CACHE_PATH = Path.home() / ".cache" / "paynews" / "paynews_articles.json"

DEFAULT_COMPANIES = ["Stripe", "PayOS", "Sardine", "Plaid", "Visa/Mastercard"]
DEFAULT_TOPICS = ["AI", "Payments", "Fraud", "Banking", "Crypto", "Regulation"]


@dataclass
class Settings:
    perplexity_api_key: str | None = None
    perplexity_model: str = "sonar"
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_max_attempts: int = 4
    supabase_url: str | None = None
    supabase_key: str | None = None
    table: str = "payarticles"
    cache_path: Path = DEFAULT_CACHE_PATH


@dataclass
class NewsConfig:
    companies: List[str] = field(default_factory=lambda: list(DEFAULT_COMPANIES))
    topics: List[str] = field(default_factory=lambda: list(DEFAULT_TOPICS))
    article_count: int = 5
    min_relevance_score: float = 7.0
    prompts_dir: Path = CONFIG_DIR / "prompts"


def _env(*keys: str, default: str | None = None) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return default


def load_settings(base_dir: Path | None = None) -> Settings:
    load_dotenv((base_dir or Path.cwd()) / ".env")
    cache_path = _env("PAYNEWS_CACHE_PATH")
    return Settings(
        perplexity_api_key=_env("PERPLEXITY_API_KEY", "VITE_PERPLEXITY_API_KEY"),
        perplexity_model=_env("PERPLEXITY_MODEL", default="sonar"),
        perplexity_base_url=_env("PERPLEXITY_BASE_URL", default="https://api.perplexity.ai"),
        perplexity_max_attempts=int(_env("PERPLEXITY_MAX_ATTEMPTS", default="4")),
        supabase_url=_env("SUPABASE_URL", "VITE_SUPABASE_URL"),
        supabase_key=_env("SUPABASE_KEY", "VITE_SUPABASE_ANON_KEY"),
        table=_env("PAYNEWS_TABLE", default="payarticles"),
        cache_path=Path(cache_path) if cache_path else Settings.cache_path,
    )


def ensure_live_env(settings: Settings) -> None:
    missing = [
        name
        for name, value in (
            ("PERPLEXITY_API_KEY", settings.perplexity_api_key),
            ("SUPABASE_URL", settings.supabase_url),
            ("SUPABASE_KEY", settings.supabase_key),
        )
        if not value
    ]
    if missing:
        missing_keys = ", ".join(missing)
        raise RuntimeError(
            "Missing required settings: "
            f"{missing_keys}. Create a .env file from .env.example and set the keys."
        )


def describe_settings(settings: Settings) -> Dict[str, object]:
    key = settings.perplexity_api_key or ""
    return {
        "perplexity_key_exists": bool(key),
        "perplexity_key_length": len(key),
        "supabase_url": "exists" if settings.supabase_url else "missing",
        "supabase_key": "exists" if settings.supabase_key else "missing",
        "table": settings.table,
    }


def load_news_config(path: Path | None = None) -> NewsConfig:
    path = path or CONFIG_DIR / "news.yaml"
    config = NewsConfig()
    if not path.exists():
        return config
    try:
        raw = yaml.safe_load(read_text(path)) or {}
    except yaml.YAMLError:
        raw = {}
    if not isinstance(raw, dict):
        return config

    companies = raw.get("companies")
    if isinstance(companies, list) and companies:
        config.companies = [str(item) for item in companies]
    topics = raw.get("topics")
    if isinstance(topics, list) and topics:
        config.topics = [str(item) for item in topics]
    count = raw.get("article_count")
    if isinstance(count, int) and count > 0:
        config.article_count = count
    score = raw.get("min_relevance_score")
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        config.min_relevance_score = float(score)
    prompts_dir = raw.get("prompts_dir")
    if isinstance(prompts_dir, str) and prompts_dir:
        config.prompts_dir = (path.parent / prompts_dir).resolve()
    return config
