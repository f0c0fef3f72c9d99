from __future__ import annotations

import json
import os
import re
from typing import Any, Dict, Iterator, List, Tuple

from paynews.gates.validation import validate_articles

STRING_FIELDS = ("title", "url", "summary")
TITLE_KEYS = ("title", "headline")

_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})
_BARE_KEY = re.compile(r"(?P<prefix>[{,]\s*)(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*:")
_BARE_URL_VALUE = re.compile(r'(?P<prefix>"url"\s*:\s*)(?P<value>[^\s"\[{,}\]][^\s,}\]]*)', re.IGNORECASE)
_BARE_TEXT_VALUE = re.compile(
    r'(?P<prefix>"(?:title|summary)"\s*:\s*)(?P<value>[^\s"\[{][^\n]*?)(?P<comma>\s*,?)(?=\s*"[A-Za-z_][A-Za-z0-9_]*"\s*:|\s*\}|[ \t]*$)',
    re.IGNORECASE | re.MULTILINE,
)
_MISSING_OBJECT_COMMA = re.compile(r"\}\s*\{")
_MISSING_PROPERTY_COMMA = re.compile(r'(?P<end>"|\d|true|false|null)(?P<gap>[ \t]*\n\s*)(?P<next>")')
_TRAILING_COMMA = re.compile(r",\s*(?P<close>[}\]])")
_LITERAL = re.compile(r"^(?:-?\d+(?:\.\d+)?|true|false|null)$")

_LINE_FIELD = re.compile(
    r"""^\s*(?:[-*•]\s*|\d+[.)]\s*)?(?:\*\*)?["']?
    (?P<key>title|headline|url|link|summary|description|relevance[ _]?score|score)
    ["']?\s*(?:\*\*)?\s*[:=]\s*(?:\*\*)?\s*(?P<value>.+?)\s*$""",
    re.IGNORECASE | re.VERBOSE,
)
_MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\((?P<url>[^)\s]+)\)")
_LINE_KEYS = {
    "headline": "title",
    "link": "url",
    "description": "summary",
    "score": "relevance_score",
}


def _trace(note: str) -> None:
    if os.getenv("PAYNEWS_DEBUG_EXTRACT", "") == "1":
        print(f"[extract] {note}")


def _strip_code_fences(text: str) -> List[str]:
    return [
        block.strip()
        for block in re.findall(r"```(?:json)?\s*(.*?)```", text, flags=re.DOTALL | re.IGNORECASE)
        if block.strip()
    ]


def _try_parse(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _slice_array(text: str) -> str | None:
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _slice_object_array(text: str) -> str | None:
    match = re.search(r"\[\s*\{", text)
    end = text.rfind("]")
    if not match or end <= match.start():
        return _slice_array(text)
    return text[match.start():end + 1]


def _scan_arrays(text: str) -> Iterator[Any]:
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\[", text):
        try:
            parsed, _ = decoder.raw_decode(text[match.start():])
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, list) and any(isinstance(item, dict) for item in parsed):
            yield parsed


def _as_article_list(parsed: Any) -> List[Dict] | None:
    if isinstance(parsed, list):
        records = [item for item in parsed if isinstance(item, dict)]
        if records or not parsed:
            return records
        return None
    if isinstance(parsed, dict):
        articles = parsed.get("articles")
        if isinstance(articles, list):
            return _as_article_list(articles)
        if "title" in parsed and ("url" in parsed or "link" in parsed):
            return [parsed]
    return None


def unwrap_completion(text: str) -> str:
    """Return the assistant content when ``text`` is a whole completion payload."""
    parsed = _try_parse(text)
    if isinstance(parsed, dict):
        choices = parsed.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            content = (choices[0].get("message") or {}).get("content")
            if isinstance(content, str):
                _trace("unwrapped completion payload")
                return content.strip()
    return text


def _quote_text_value(match: re.Match) -> str:
    value = match.group("value").strip()
    if _LITERAL.match(value) or value.endswith('"'):
        return match.group(0)
    return f'{match.group("prefix")}{json.dumps(value)}{match.group("comma")}'


def repair_json_text(text: str) -> str:
    """Apply the usual fixes for almost-JSON written by a language model."""
    repaired = text.translate(_SMART_QUOTES)
    repaired = _BARE_KEY.sub(lambda m: f'{m.group("prefix")}"{m.group("key")}":', repaired)
    repaired = _BARE_URL_VALUE.sub(
        lambda m: f'{m.group("prefix")}{json.dumps(m.group("value"))}', repaired
    )
    repaired = _BARE_TEXT_VALUE.sub(_quote_text_value, repaired)
    repaired = _MISSING_OBJECT_COMMA.sub("},{", repaired)
    repaired = _MISSING_PROPERTY_COMMA.sub(
        lambda m: f'{m.group("end")},{m.group("gap")}{m.group("next")}', repaired
    )
    repaired = _TRAILING_COMMA.sub(lambda m: m.group("close"), repaired)
    return repaired


def _clean_line_value(key: str, value: str) -> str:
    value = value.strip().rstrip(",").strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1].strip()
    value = value.strip("*").strip()
    if key == "url":
        link = _MARKDOWN_LINK.search(value)
        if link:
            value = link.group("url")
        value = value.strip("<>")
    return value


def scan_key_values(text: str) -> List[Dict]:
    """Collect ``key: value`` lines into records; a repeated title starts a new one."""
    records: List[Dict] = []
    current: Dict[str, str] = {}
    for line in text.splitlines():
        match = _LINE_FIELD.match(line)
        if not match:
            continue
        key = match.group("key").lower().replace(" ", "_")
        if key.startswith("relevance"):
            key = "relevance_score"
        key = _LINE_KEYS.get(key, key)
        if key in current:
            records.append(current)
            current = {}
        current[key] = _clean_line_value(key, match.group("value"))
    if current:
        records.append(current)
    return [record for record in records if record.get("title")]


def _candidates(text: str) -> Iterator[Tuple[str, str]]:
    yield "strict", text
    fenced = _strip_code_fences(text)
    for block in fenced:
        yield "fence", block
    for source in [*fenced, text]:
        sliced = _slice_array(source)
        if sliced:
            yield "slice", sliced


def _repair_candidates(text: str) -> Iterator[Tuple[str, str]]:
    for source in [*_strip_code_fences(text), text]:
        sliced = _slice_object_array(source)
        if sliced:
            yield "repair", repair_json_text(sliced)
    yield "repair", repair_json_text(text)


def _has_titles(records: List[Dict]) -> bool:
    return any(
        str(key).strip().lower() in TITLE_KEYS for record in records for key in record
    )


def _parsed_candidates(text: str) -> Iterator[Tuple[str, List[Dict]]]:
    for stage, candidate in _candidates(text):
        records = _as_article_list(_try_parse(candidate))
        if records is not None:
            yield stage, records
    for records in _scan_arrays(text):
        yield "scan", [item for item in records if isinstance(item, dict)]
    for stage, candidate in _repair_candidates(text):
        records = _as_article_list(_try_parse(candidate))
        if records is not None:
            yield stage, records


def extract_article_array(raw_text: str) -> List[Dict]:
    """Find the article records in ``raw_text``.

    Arrays whose objects carry no title (source lists, citations) are passed
    over in favour of a later one that does. If no titled array turns up, the
    key/value line scan runs, and only then is the first untitled array used.
    """
    text = unwrap_completion(raw_text.strip())
    if not text:
        raise ValueError("Empty response content from Perplexity")

    untitled: List[Dict] | None = None
    for stage, records in _parsed_candidates(text):
        if _has_titles(records):
            _trace(f"articles:{stage}")
            return records
        _trace(f"skipping untitled array from {stage}")
        if untitled is None:
            untitled = records

    records = scan_key_values(text)
    if records:
        _trace("articles:line-scan")
        return records
    if untitled is not None:
        return untitled

    snippet = text.replace("\n", " ")
    snippet = (snippet[:200] + "...") if len(snippet) > 200 else snippet
    raise ValueError(f"No JSON array found in response. Snippet: {snippet}")


def extract_articles(raw_text: str, require_score: bool = False) -> List[Dict]:
    records = extract_article_array(raw_text)
    articles = validate_articles(records, require_score=require_score)
    if not articles:
        raise ValueError("No valid articles found in response")
    return articles
