from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List

from .llm_base import LLMAdapter, LLMResponse, completion_payload

MOCK_ARTICLES: List[Dict] = [
    {
        "title": "Stripe expands stablecoin payouts to more markets",
        "url": "https://www.example-fintech.com/stripe-stablecoin-payouts",
        "summary": "Stripe is widening access to stablecoin-based payouts for platforms in new regions.",
        "relevance_score": 9,
    },
    {
        "title": "Plaid launches new fraud signals for account linking",
        "url": "https://www.example-fintech.com/plaid-fraud-signals",
        "summary": "Plaid added risk scores to its account-linking flow to help lenders flag synthetic identities.",
        "relevance_score": 8.5,
    },
    {
        "title": "Sardine raises funding to scale real-time risk platform",
        "url": "https://www.example-fintech.com/sardine-funding",
        "summary": "Sardine closed a new round to grow its behavioural fraud and compliance tooling.",
        "relevance_score": 8,
    },
    {
        "title": "Visa and Mastercard settle interchange dispute with merchants",
        "url": "https://www.example-fintech.com/visa-mastercard-settlement",
        "summary": "The card networks agreed to lower swipe fees and relax rules on surcharging.",
        "relevance_score": 7.5,
    },
    {
        "title": "PayOS opens developer preview of agentic payments API",
        "url": "https://www.example-fintech.com/payos-agentic-payments",
        "summary": "PayOS released an API that lets AI agents initiate payments within user-set limits.",
        "relevance_score": 7,
    },
]


@dataclass
class MockAdapter(LLMAdapter):
    scenario: str = "default"
    model: str = "mock-sonar"

    def complete(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        content = self._build_content(prompt, system_prompt or "")
        return LLMResponse(raw_text=content, raw=completion_payload(content, self.model))

    def _build_content(self, prompt: str, system_prompt: str) -> str:
        if self.scenario == "malformed":
            return self._malformed_articles()
        if "relevance_score" in prompt or "JSON array of articles" in system_prompt:
            body = json.dumps(MOCK_ARTICLES, indent=2)
            return f"Here are the latest articles:\n\n```json\n{body}\n```"
        if "news articles" in prompt:
            articles = [
                {key: value for key, value in item.items() if key != "relevance_score"}
                for item in MOCK_ARTICLES
            ]
            return json.dumps(articles, indent=2)
        return (
            "Mock mode is active, so no live search was run. "
            f"You asked: {prompt.strip()}"
        )

    def _malformed_articles(self) -> str:
        # Bare keys, an unquoted url, a missing comma between objects and a trailing comma.
        blocks = []
        for item in MOCK_ARTICLES[:2]:
            blocks.append(
                "{\n"
                f'  title: "{item["title"]}",\n'
                f'  url: {item["url"]},\n'
                f'  summary: "{item["summary"]}",\n'
                f'  relevance_score: {item["relevance_score"]},\n'
                "}"
            )
        return "Sure! Here is what I found:\n[\n" + "\n".join(blocks) + ",\n]\nLet me know if you need more."
