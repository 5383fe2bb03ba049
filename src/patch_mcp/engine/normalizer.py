"""Content normalization: line endings, indentation, trailing whitespace.

Normalization is pure and total: any string (including the empty string)
produces a ``NormalizedContent``. Running it again on its own output with the
same config returns identical text and hash.
"""

import hashlib
import re

from .models import NormalizedContent, WhitespaceConfig, WhitespaceStats

LINE_SPLIT = re.compile(r"\r\n|\r|\n")
LEADING_INDENT = re.compile(r"^[ \t]+")
TRAILING_WHITESPACE = re.compile(r"[ \t]+$")
FIRST_INDENT = re.compile(r"^[ \t]+", re.MULTILINE)

DEFAULT_WHITESPACE_CONFIG = WhitespaceConfig()


def detect_line_ending(content: str) -> str:
    """Return ``\\r\\n`` if present, else ``\\r`` if present, else ``\\n``."""
    if "\r\n" in content:
        return "\r\n"
    if "\r" in content:
        return "\r"
    return "\n"


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()


def normalize_content(
    content: str, config: WhitespaceConfig | None = None
) -> NormalizedContent:
    """Normalize ``content`` according to ``config``.

    Args:
        content: Raw text
        config: Whitespace configuration (defaults apply when omitted)

    Returns:
        NormalizedContent with normalized text, detected line ending and
        indentation, SHA-256 hash and whitespace statistics
    """
    config = config or DEFAULT_WHITESPACE_CONFIG
    line_ending = detect_line_ending(content)

    indent_match = FIRST_INDENT.search(content)
    indentation = (indent_match.group(0) if indent_match else config.default_indentation) or "    "

    stats = WhitespaceStats()
    processed: list[str] = []

    for line in LINE_SPLIT.split(content):
        stats.max_line_length = max(stats.max_line_length, len(line))
        if not line.strip():
            stats.empty_lines += 1
        if TRAILING_WHITESPACE.search(line):
            stats.trailing_whitespace_lines += 1

        indent = LEADING_INDENT.match(line)
        if indent:
            stats.indentation_spaces += indent.group(0).count(" ")
            stats.indentation_tabs += indent.group(0).count("\t")

        if config.trim_trailing_whitespace:
            line = TRAILING_WHITESPACE.sub("", line)
        if not config.preserve_indentation:
            replacement = config.default_indentation or "    "
            line = LEADING_INDENT.sub(lambda _m: replacement, line, count=1)
        processed.append(line)

    newline = line_ending if config.preserve_line_endings else (config.default_line_ending or "\n")
    normalized = newline.join(processed)

    return NormalizedContent(
        normalized=normalized,
        line_endings=line_ending,
        newline=newline,
        indentation=indentation,
        hash=content_hash(normalized),
        stats=stats,
    )
