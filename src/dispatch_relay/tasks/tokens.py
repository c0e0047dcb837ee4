# src/dispatch_relay/tasks/tokens.py

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

Token = dict[str, Any]

# Keys under which a token nests child tokens (inline tokens, list items).
_CHILD_KEYS = ("tokens", "items")


def find_tokens_of_type(tokens: Iterable[Any], token_type: str) -> list[Token]:
    """Depth-first, document-order search of a markdown token tree."""
    found: list[Token] = []
    _collect(tokens, token_type, found)
    return found


def _collect(tokens: Iterable[Any], token_type: str, found: list[Token]) -> None:
    for token in tokens:
        if not isinstance(token, dict):
            continue
        if token.get("type") == token_type:
            found.append(token)
        for key in _CHILD_KEYS:
            children = token.get(key)
            if isinstance(children, list):
                _collect(children, token_type, found)


def extract_title(tokens: Iterable[Any], *, token_type: str = "strong", max_length: int = 100) -> str:
    """
    Pick the longest emphasized span shorter than max_length.

    Spans containing a comma are skipped (those are sentences, not titles).
    Returns "" when nothing qualifies; callers decide whether that is fatal.
    """
    best = ""
    for token in find_tokens_of_type(tokens, token_type):
        text = str(token.get("text") or "").strip()
        if not text or "," in text or len(text) >= max_length:
            continue
        if len(text) > len(best):
            best = text
    return best
