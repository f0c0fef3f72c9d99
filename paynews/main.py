from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from paynews.adapters.llm_base import LLMAdapter
from paynews.adapters.mock_adapter import MockAdapter
from paynews.adapters.perplexity_adapter import PerplexityAdapter
from paynews.artifacts.writers import render_articles, write_articles_csv, write_articles_markdown
from paynews.handlers.chat import handle_ping
from paynews.services.chat import ChatSession
from paynews.services.filters import DATE_WINDOWS, FilterOptions, apply_filters
from paynews.services.news import fetch_and_store_news, search_and_store
from paynews.settings import (
    Settings,
    describe_settings,
    ensure_live_env,
    load_news_config,
    load_settings,
)
from paynews.store.articles import ArticleStore
from paynews.store.cache import ArticleCache
from paynews.store.records import MemoryRecordStore, RecordStore, SupabaseRecordStore
from paynews.utils.time import utc_timestamp


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PayNews fintech news aggregator")
    parser.add_argument("--mode", choices=["mock", "live"], default="mock")
    parser.add_argument("--scenario", default="default", help="Mock adapter scenario")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("fetch", help="Fetch the latest fintech news and store it")

    def add_filter_args(sub: argparse.ArgumentParser, min_score: float | None) -> None:
        sub.add_argument("--company", action="append", default=[])
        sub.add_argument("--topic", action="append", default=[])
        sub.add_argument("--date-range", choices=list(DATE_WINDOWS), default="all")
        sub.add_argument("--min-score", type=float, default=min_score)

    search = commands.add_parser("search", help="Search for articles matching filters")
    add_filter_args(search, None)
    listing = commands.add_parser("list", help="Show stored articles")
    add_filter_args(listing, 0.0)

    delete = commands.add_parser("delete", help="Delete a stored article")
    delete.add_argument("article_id")

    chat = commands.add_parser("chat", help="Chat with the news assistant")
    chat.add_argument("--message", help="Send one message instead of starting a session")

    commands.add_parser("export", help="Write stored articles to a run directory")
    commands.add_parser("ping", help="Check that the chat endpoint is configured")
    return parser


def _adapter(mode: str, settings: Settings, scenario: str) -> LLMAdapter | None:
    if mode == "mock":
        return MockAdapter(scenario=scenario)
    if not settings.perplexity_api_key:
        return None
    return PerplexityAdapter(settings)


def _cache(mode: str, settings: Settings) -> ArticleCache:
    if mode == "mock":
        return ArticleCache(settings.cache_path.with_name("paynews_articles.mock.json"))
    return ArticleCache(settings.cache_path)


def _remote(mode: str, settings: Settings, cache: ArticleCache) -> RecordStore:
    if mode == "mock":
        return MemoryRecordStore(cache.load())
    return SupabaseRecordStore(settings)


def _filters(args: argparse.Namespace, default_score: float) -> FilterOptions:
    score = args.min_score if args.min_score is not None else default_score
    return FilterOptions(
        companies=args.company,
        topics=args.topic,
        date_range=args.date_range,
        min_relevance_score=score,
    )


def _run_chat(session: ChatSession, message: str | None) -> int:
    if message is not None:
        reply = session.send(message)
        if reply is not None:
            print(f"{reply.label}: {reply.content}")
        return 1 if session.error else 0
    print("Ask something (empty line to quit).")
    for line in sys.stdin:
        if not line.strip():
            break
        reply = session.send(line)
        if reply is not None:
            print(f"{reply.label}: {reply.content}")
    return 0


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    config = load_news_config()
    print(f"[paynews] mode={args.mode} settings={describe_settings(settings)}")
    if args.mode == "live":
        ensure_live_env(settings)

    adapter = _adapter(args.mode, settings, args.scenario)
    if args.command == "ping":
        body = dict(handle_ping("GET", adapter is not None).body)
        if args.mode == "live":
            body["supabase_connected"] = SupabaseRecordStore(settings).check_connection()
        print(body)
        return 0
    if args.command == "chat":
        return _run_chat(ChatSession(adapter), args.message)

    cache = _cache(args.mode, settings)
    store = ArticleStore(_remote(args.mode, settings, cache), cache)
    store.fetch_articles()

    if args.command in ("fetch", "search"):
        try:
            if args.command == "fetch":
                fetch_and_store_news(adapter, store, config)
            else:
                search_and_store(_filters(args, config.min_relevance_score), adapter, store, config)
        except (RuntimeError, ValueError) as exc:
            print(f"Failed to fetch news: {exc}")
            return 1
        print(render_articles(store.articles))
    elif args.command == "list":
        print(render_articles(apply_filters(store.articles, _filters(args, 0.0))))
    elif args.command == "delete":
        if not store.delete_article(args.article_id):
            print(f"No article with id {args.article_id}")
            return 1
        print(f"Deleted article {args.article_id}")
    elif args.command == "export":
        run_dir = Path.cwd() / "runs" / utc_timestamp()
        write_articles_markdown(run_dir / "articles.md", store.articles)
        write_articles_csv(run_dir / "articles.csv", store.articles)
        print(f"Exported {len(store.articles)} articles to {run_dir}")

    if store.error:
        print(f"[store] warning: {store.error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
