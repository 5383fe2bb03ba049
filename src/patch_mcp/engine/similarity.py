"""Token-level similarity scoring.

Similarity is ``1 - levenshtein(a, b) / max(len(a), len(b))`` over token
sequences, with unit cost for insertion, deletion and substitution. Two empty
sequences are identical (1.0).
"""

from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

from .tokenizer import tokenize


def token_distance(tokens1: Sequence[str], tokens2: Sequence[str]) -> int:
    return Levenshtein.distance(tokens1, tokens2)


def calculate_similarity(tokens1: Sequence[str], tokens2: Sequence[str]) -> float:
    """Normalized edit-distance similarity of two token sequences, in [0, 1]."""
    max_length = max(len(tokens1), len(tokens2))
    if max_length == 0:
        return 1.0
    return 1.0 - token_distance(tokens1, tokens2) / max_length


def text_similarity(text1: str, text2: str) -> float:
    """Tokenize both texts and score them with ``calculate_similarity``."""
    return calculate_similarity(tokenize(text1), tokenize(text2))
