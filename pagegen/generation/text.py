from __future__ import annotations

"""Text helpers for cleaning and parsing model output."""

import hashlib
import html
import json
import re
from typing import Any

_SCRIPT_RE = re.compile(r"<(script|style)[^>]*>.*?</\1>", flags=re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def strip_markup(text: object) -> str:
    """Remove markup tags and surrounding whitespace."""
    if text is None:
        return ""
    value = str(text)
    value = _SCRIPT_RE.sub("", value)
    value = _TAG_RE.sub("", value)
    return html.unescape(value).strip()


def truncate_text(text: object, max_chars: int) -> str:
    """Strip markup and cut to `max_chars`, ending in an ellipsis when cut."""
    cleaned = strip_markup(text)
    if len(cleaned) <= max_chars:
        return cleaned
    return cleaned[: max_chars - 3] + "..."


def clean_string_list(value: object, limit: int) -> list[str]:
    """Keep non-empty strings from a list, stripped, up to `limit` items."""
    if not isinstance(value, (list, tuple)):
        return []
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        cleaned = strip_markup(item)
        if cleaned:
            items.append(cleaned)
    return items[:limit]


def unique(items: list[str]) -> list[str]:
    """Return items with duplicates removed, keeping first occurrence."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def extract_json_object(content: str) -> dict[str, Any] | None:
    """Parse a JSON object from model output, or return None."""
    text = (content or "").strip()
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass
    match = re.search(r"\{.*\}", text, flags=re.DOTALL)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def flatten_text(content: object, lowercase: bool = True) -> str:
    """Join every string value of a nested structure into one text."""
    parts: list[str] = []

    def _walk(value: object) -> None:
        if isinstance(value, str):
            parts.append(value)
        elif isinstance(value, dict):
            for item in value.values():
                _walk(item)
        elif isinstance(value, (list, tuple)):
            for item in value:
                _walk(item)

    _walk(content)
    text = strip_markup(" ".join(parts))
    return text.lower() if lowercase else text


def query_words(query: str, min_length: int = 3) -> list[str]:
    """Lowercased query words of at least `min_length` characters."""
    return [word for word in query.lower().split() if len(word) >= min_length]


def split_sentences(text: str) -> list[str]:
    return [part.strip() for part in _SENTENCE_RE.split(text) if part.strip()]


def title_case(text: str) -> str:
    """Uppercase the first letter of each word, leaving the rest untouched."""
    return " ".join(word[:1].upper() + word[1:] for word in text.split())


def stable_hash(value: object) -> str:
    """Hash a JSON-serializable value independent of key order."""
    payload = json.dumps(value, sort_keys=True, ensure_ascii=True, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def stable_index(text: str, size: int) -> int:
    """Deterministically pick an index in range(size) for a piece of text."""
    if size <= 0:
        return 0
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % size


def merge_capped(required: list[str], extra: list[str], limit: int) -> list[str]:
    """Unique merge that keeps `required` items first, capped at `limit`."""
    return unique([item for item in required + extra if item])[:limit]
