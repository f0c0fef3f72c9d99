import json

import pytest

from paynews.adapters.mock_adapter import MockAdapter
from paynews.services.filters import FilterOptions
from paynews.services.news import (
    build_news_prompt,
    build_search_prompt,
    content_from_completion,
    fetch_and_store_news,
    fetch_news,
    search_and_store,
    search_articles,
)

from conftest import ScriptedAdapter


def test_news_prompt_lists_companies_and_count(news_config):
    prompt = build_news_prompt(news_config)
    assert "Find 5 recent news articles" in prompt
    assert "- Stripe" in prompt and "- Visa/Mastercard" in prompt
    assert "{{" not in prompt


def test_search_prompt_reflects_filters(news_config):
    filters = FilterOptions(companies=["Plaid"], topics=["Fraud"], date_range="week", min_relevance_score=7.5)
    prompt = build_search_prompt(filters, news_config)
    assert "- Plaid" in prompt and "- Fraud" in prompt
    assert "published in the last week" in prompt
    assert "at least 7.5" in prompt
    assert "{{" not in prompt


def test_content_from_completion():
    assert content_from_completion({"choices": [{"message": {"content": " hi "}}]}) == "hi"
    for bad in [{}, {"choices": []}, {"choices": [{"message": {}}]}, None]:
        with pytest.raises(ValueError, match="Invalid response format from Chat API"):
            content_from_completion(bad)


def test_fetch_news_stamps_articles(news_config):
    articles = fetch_news(MockAdapter(), news_config)
    assert len(articles) == 5
    assert all(article["fetched_at"] for article in articles)
    assert all("relevance_score" not in article for article in articles)


def test_fetch_news_without_adapter(news_config):
    with pytest.raises(RuntimeError, match="Chat API error: 500 Perplexity API key is not configured"):
        fetch_news(None, news_config)


def test_fetch_news_unparsable_reply(news_config):
    adapter = ScriptedAdapter(content="I am unable to browse right now.")
    with pytest.raises(ValueError, match="Failed to parse JSON response"):
        fetch_news(adapter, news_config)


def test_fetch_news_sends_news_prompt(news_config):
    article = {"title": "T", "url": "https://example.com/t", "summary": "S"}
    adapter = ScriptedAdapter(content=json.dumps([article]))
    fetch_news(adapter, news_config)
    assert adapter.prompts == [build_news_prompt(news_config)]
    assert "finance and technology news" in adapter.system_prompts[0]


def test_fetch_and_store_skips_known_titles(store, news_config):
    fetch_and_store_news(MockAdapter(), store, news_config)
    assert len(store.articles) == 5
    fetch_and_store_news(MockAdapter(), store, news_config)
    assert len(store.articles) == 5


def test_search_requires_a_company_or_topic(news_config):
    with pytest.raises(ValueError, match="at least one company or topic"):
        search_articles(FilterOptions(), MockAdapter(), news_config)


def test_search_articles_returns_insert_shape(news_config):
    filters = FilterOptions(companies=["Stripe"])
    articles = search_articles(filters, MockAdapter(), news_config)
    assert len(articles) == 5
    for article in articles:
        assert set(article) == {"title", "url", "summary", "relevance_score", "fetched_at"}


def test_search_tolerates_malformed_reply(store, news_config):
    filters = FilterOptions(topics=["Payments"])
    articles = search_and_store(filters, MockAdapter(scenario="malformed"), store, news_config)
    assert len(articles) == 2
    assert len(store.articles) == 2


def test_search_without_scores_fails(news_config):
    article = {"title": "T", "url": "https://example.com/t", "summary": "S"}
    adapter = ScriptedAdapter(content=json.dumps([article]))
    with pytest.raises(RuntimeError, match="No valid articles found in response"):
        search_articles(FilterOptions(topics=["AI"]), adapter, news_config)
