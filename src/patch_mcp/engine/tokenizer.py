"""Tokenizer shared by pattern synthesis, similarity scoring and merging.

A token is a maximal run of whitespace, word characters, or symbol characters.
Word characters are ASCII only (``[A-Za-z0-9_]``); whitespace is Unicode-aware,
so accented letters form symbol runs between ASCII word runs.
Tokens cover the input completely: ``"".join(tokenize(s)) == s``.
"""

import re

TOKEN_PATTERN = re.compile(r"\s+|[A-Za-z0-9_]+|[^\sA-Za-z0-9_]+")


def tokenize(text: str) -> list[str]:
    """Split ``text`` into whitespace, word and symbol runs, left to right."""
    return TOKEN_PATTERN.findall(text)


def is_whitespace_token(token: str) -> bool:
    return bool(token) and token.isspace()
