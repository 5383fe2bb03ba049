"""Search pattern synthesis from literal search text.

The search text is tokenized and each token becomes a regex piece:

- word and symbol tokens are escaped exactly
- whitespace tokens become ``\\s*`` when indentation is not preserved,
  ``\\s+`` when whitespace is normalized and the token is internal,
  and are matched literally otherwise
- block patterns additionally accept any line ending where the search has one,
  unless line endings are preserved

Tokens alternate between whitespace and non-whitespace runs, so quantified
pieces are always separated by literals and never nest. The number of tokens
is capped to bound matching cost on untrusted input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .exceptions import PatchInputError
from .models import WhitespaceConfig
from .similarity import calculate_similarity
from .tokenizer import is_whitespace_token, tokenize

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_MAX_PATTERN_TOKENS = 2000

ANY_LINE_ENDING = r"(?:\r\n|\r|\n)"
_LINE_ENDING_SPLIT = re.compile(r"(\r\n|\r|\n)")
_LITERAL_WHITESPACE = {" ": " ", "\t": r"\t", "\n": r"\n", "\r": r"\r", "\f": r"\f", "\v": r"\v"}


@dataclass
class SearchPattern:
    """Compiled matcher plus the literal tokens it was synthesized from.

    Attributes:
        regex: Compiled regular expression
        tokens: Tokens of the literal search text (empty for caller-supplied regexes)
        threshold: Minimum token similarity for a fuzzy match
        synthesized: False when the caller supplied the regex directly
    """

    regex: re.Pattern[str]
    tokens: list[str] = field(default_factory=list)
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    synthesized: bool = True

    def matches(self, text: str) -> bool:
        """Check whether ``text`` matches this pattern.

        A caller-supplied regex matches wherever it finds a hit. A synthesized
        pattern matches when the regex covers the whole stripped text, or when
        the token similarity to the literal search reaches the threshold.
        """
        if not self.synthesized:
            return self.regex.search(text) is not None
        if self.regex.fullmatch(text.strip()) is not None:
            return True
        return self.similarity(text) >= self.threshold

    def occurs_in(self, text: str) -> bool:
        """Check whether the pattern occurs anywhere in ``text``, or ``text`` is similar enough."""
        if self.regex.search(text) is not None:
            return True
        return self.synthesized and self.similarity(text) >= self.threshold

    def similarity(self, text: str) -> float:
        return calculate_similarity(tokenize(text), self.tokens)


def _literal_whitespace(token: str) -> str:
    return "".join(_LITERAL_WHITESPACE.get(ch, re.escape(ch)) for ch in token)


def _whitespace_piece(token: str, internal: bool, config: WhitespaceConfig) -> str:
    if not config.preserve_indentation:
        return r"\s*"
    if config.normalize_whitespace and internal:
        return r"\s+"
    return _literal_whitespace(token)


def _block_whitespace_piece(token: str, internal: bool, config: WhitespaceConfig) -> str:
    if config.preserve_line_endings or not _LINE_ENDING_SPLIT.search(token):
        return _whitespace_piece(token, internal, config)

    pieces = []
    for part in _LINE_ENDING_SPLIT.split(token):
        if not part:
            continue
        if part in ("\r\n", "\r", "\n"):
            pieces.append(ANY_LINE_ENDING)
        elif not config.preserve_indentation:
            pieces.append(r"[ \t]*")
        else:
            pieces.append(_literal_whitespace(part))
    return "".join(pieces)


def _synthesize(
    search: str,
    config: WhitespaceConfig,
    block: bool,
    max_tokens: int,
) -> tuple[str, list[str]]:
    tokens = tokenize(search)
    if not tokens:
        raise PatchInputError("Search text must not be empty")
    if len(tokens) > max_tokens:
        raise PatchInputError(
            f"Search text too complex: {len(tokens)} tokens exceeds limit of {max_tokens}"
        )

    last = len(tokens) - 1
    pieces = []
    for index, token in enumerate(tokens):
        if is_whitespace_token(token):
            internal = 0 < index < last
            if block:
                pieces.append(_block_whitespace_piece(token, internal, config))
            else:
                pieces.append(_whitespace_piece(token, internal, config))
        else:
            pieces.append(re.escape(token))
    return "".join(pieces), tokens


def create_token_pattern(
    search: str,
    config: WhitespaceConfig,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    max_tokens: int = DEFAULT_MAX_PATTERN_TOKENS,
) -> SearchPattern:
    """Build a single-line search pattern from literal text.

    Raises:
        PatchInputError: Empty search text or too many tokens
    """
    source, tokens = _synthesize(search, config, block=False, max_tokens=max_tokens)
    logger.debug(f"Line pattern from {len(tokens)} tokens: {source!r}")
    return SearchPattern(regex=re.compile(source), tokens=tokens, threshold=threshold)


def create_block_token_pattern(
    search: str,
    config: WhitespaceConfig,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    max_tokens: int = DEFAULT_MAX_PATTERN_TOKENS,
) -> SearchPattern:
    """Build a multi-line block pattern from literal text (MULTILINE mode).

    Raises:
        PatchInputError: Empty search text or too many tokens
    """
    source, tokens = _synthesize(search, config, block=True, max_tokens=max_tokens)
    logger.debug(f"Block pattern from {len(tokens)} tokens: {source!r}")
    return SearchPattern(
        regex=re.compile(source, re.MULTILINE), tokens=tokens, threshold=threshold
    )


def from_compiled(pattern: re.Pattern[str], threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> SearchPattern:
    """Wrap a caller-supplied regex; no synthesis takes place."""
    return SearchPattern(regex=pattern, tokens=[], threshold=threshold, synthesized=False)
