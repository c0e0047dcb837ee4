# tests/test_tokens.py

from __future__ import annotations

from dispatch_relay.tasks.tokens import extract_title, find_tokens_of_type

TREE = [
    {"type": "heading", "text": "Intro", "tokens": [{"type": "strong", "text": "Short"}]},
    {
        "type": "list",
        "items": [
            {
                "type": "list_item",
                "tokens": [
                    {"type": "text", "tokens": [{"type": "strong", "text": "The longest bold title"}]},
                ],
            }
        ],
    },
    {"type": "paragraph", "tokens": [{"type": "strong", "text": "Bold, but a sentence with a comma"}]},
    {"type": "paragraph", "tokens": [{"type": "em", "text": "An emphasized span that is the longest"}]},
]


def test_find_tokens_walks_children_and_list_items_in_order() -> None:
    found = find_tokens_of_type(TREE, "strong")
    assert [t["text"] for t in found] == [
        "Short",
        "The longest bold title",
        "Bold, but a sentence with a comma",
    ]


def test_extract_title_skips_commas_and_respects_token_type() -> None:
    assert extract_title(TREE) == "The longest bold title"
    assert extract_title(TREE, token_type="em") == "An emphasized span that is the longest"


def test_extract_title_max_length_is_exclusive() -> None:
    title = "The longest bold title"
    assert extract_title(TREE, max_length=len(title)) == "Short"
    assert extract_title(TREE, max_length=len(title) + 1) == title


def test_extract_title_empty_when_nothing_qualifies() -> None:
    assert extract_title([]) == ""
    assert extract_title([{"type": "strong", "text": "  "}, "not-a-token"]) == ""
