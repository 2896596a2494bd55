import re
import json
from typing import Any

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?")


def clean_md(text: str) -> str:
    """
    Sanitize markdown artifacts from text.
    Removes:
    - Leading headers (#, ##)
    - Bold markers (**, __)
    - Leading bullets (-, *)
    """
    if not text:
        return ""

    # Remove bolding (**text** -> text)
    text = re.sub(r"(\*\*|__)(.*?)\1", r"\2", text)

    # Remove leading headers (# Title -> Title)
    text = re.sub(r"^\s*#+\s+", "", text)

    # Remove leading bullets (- Item -> Item)
    text = re.sub(r"^\s*[-*]\s+", "", text)

    return text.strip()


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").replace("```", "").strip()


def _outermost(text: str, open_ch: str, close_ch: str) -> str | None:
    start = text.find(open_ch)
    end = text.rfind(close_ch)
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def extract_json(text: str, expect: type = dict) -> Any:
    """
    Parse JSON out of a model reply that may carry code fences or prose
    around it. `expect` is dict or list.

    Raises ValueError when no JSON of the expected shape can be parsed.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ValueError("Empty text")

    candidates = [cleaned]
    span = _outermost(cleaned, "{", "}") if expect is dict else _outermost(cleaned, "[", "]")
    if span and span != cleaned:
        candidates.append(span)

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e
            continue
        if isinstance(parsed, expect):
            return parsed
        last_error = ValueError(f"Expected {expect.__name__}, got {type(parsed).__name__}")

    raise ValueError(f"No parsable JSON {expect.__name__} in reply: {last_error}")


def clamp(text: str | None, length: int) -> str:
    text = (text or "").strip()
    if len(text) <= length:
        return text
    return text[:length - 1].rstrip() + "…"
