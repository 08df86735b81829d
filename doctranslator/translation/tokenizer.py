"""
Placeholder Tokenizer

Replaces protected constructs with ordinal tokens before text is sent to a
translation provider, and restores them afterwards:
- Double-brace placeholders: {{name}}, {{ user.name }}
- Single-brace placeholders: {name}, {count, number}
- Percent placeholders: %d, %s, %location, %var%
- HTML-like tags: <b>, </a>, <br/>, <a href="...">

Tokenizing works in passes. Each pass finds every match, keeps the innermost
ones (a match containing another match waits for a later pass), and replaces
them left to right with TOKEN_n. A construct wrapping a placeholder is
therefore stored with the inner token already substituted, and detokenizing
in descending token order restores both levels.

A construct preceded by a backslash is never tokenized.
"""

import re
from typing import Dict, List, Tuple

from doctranslator.logger import get_logger

logger = get_logger(__name__)

TOKEN_PREFIX = "TOKEN_"
TOKEN_PATTERN = re.compile(r'TOKEN_(\d+)')

# Order matters only for ties at the same start position
PLACEHOLDER_PATTERNS = [
    ("double_brace", re.compile(r'(?<!\\)\{\{[^{}]*\}\}')),
    ("single_brace", re.compile(r'(?<![\\{])\{[^{}]+\}(?!\})')),
    ("percent", re.compile(r'(?<![\\%])%[A-Za-z_][\w.-]*%?')),
    ("html_tag", re.compile(
        r'(?<!\\)</?[A-Za-z][\w-]*'
        r'(?:\s+[\w:.-]+(?:\s*=\s*(?:"[^"]*"|\'[^\']*\'|[^\s"\'>/]+))?)*'
        r'\s*/?>'
    )),
]


def _find_matches(text: str) -> List[Tuple[int, int, str]]:
    matches = []
    for kind, pattern in PLACEHOLDER_PATTERNS:
        for match in pattern.finditer(text):
            if match.end() > match.start():
                matches.append((match.start(), match.end(), kind))
    return matches


def _innermost(matches: List[Tuple[int, int, str]]) -> List[Tuple[int, int, str]]:
    """Drop matches that contain another match, then overlapping leftovers."""
    candidates = []
    for start, end, kind in matches:
        contains_other = any(
            (s, e) != (start, end) and start <= s and e <= end
            for s, e, _ in matches
        )
        if not contains_other:
            candidates.append((start, end, kind))

    candidates.sort(key=lambda m: (m[0], m[1]))
    selected = []
    last_end = -1
    for start, end, kind in candidates:
        if start >= last_end:
            selected.append((start, end, kind))
            last_end = end
    return selected


def _tokenize_passes(text: str) -> Tuple[str, Dict[str, str]]:
    token_map: Dict[str, str] = {}
    by_original: Dict[str, str] = {}
    current = text

    while True:
        selected = _innermost(_find_matches(current))
        if not selected:
            break

        # Assign tokens left to right so numbering follows reading order
        replacements = []
        for start, end, _ in selected:
            original = current[start:end]
            token = by_original.get(original)
            if token is None:
                token = f"{TOKEN_PREFIX}{len(token_map)}"
                token_map[token] = original
                by_original[original] = token
            replacements.append((start, end, token))

        pieces = []
        cursor = 0
        for start, end, token in replacements:
            pieces.append(current[cursor:start])
            pieces.append(token)
            cursor = end
        pieces.append(current[cursor:])
        current = "".join(pieces)

    return current, token_map


def _token_order(token: str) -> int:
    return int(token[len(TOKEN_PREFIX):])


def detokenize(tokenized_string: str, token_map: Dict[str, str]) -> str:
    """
    Replace every occurrence of every token with its original text.

    Tokens are restored from the highest index down, so outer constructs are
    expanded before the inner tokens they contain, and TOKEN_1 never matches
    the front of TOKEN_12.
    """
    if not token_map:
        return tokenized_string
    result = tokenized_string
    for token in sorted(token_map, key=_token_order, reverse=True):
        result = result.replace(token, token_map[token])
    return result


def tokenize(text: str) -> Tuple[str, Dict[str, str]]:
    """
    Tokenize protected constructs in text.

    Args:
        text: Text to tokenize

    Returns:
        Tuple of (tokenized_string, token_map). token_map is empty when text
        has no protected constructs, or when the text itself contains token
        look-alikes that would make restoring ambiguous.

    Examples:
        >>> tokenize("Hello {{name}}, you have %d messages.")
        ('Hello TOKEN_0, you have TOKEN_1 messages.', {'TOKEN_0': '{{name}}', 'TOKEN_1': '%d'})
    """
    if not text:
        return text, {}

    tokenized, token_map = _tokenize_passes(text)
    if not token_map:
        return text, {}

    if detokenize(tokenized, token_map) != text:
        logger.warning("Tokenization is not reversible for this text, sending it untokenized")
        return text, {}

    return tokenized, token_map


def has_protected_constructs(text: str) -> bool:
    """Check whether text contains anything the tokenizer would protect."""
    if not isinstance(text, str) or not text:
        return False
    return any(pattern.search(text) for _, pattern in PLACEHOLDER_PATTERNS)


def top_level_tokens(tokenized_string: str, token_map: Dict[str, str]) -> List[str]:
    """Tokens that appear directly in the tokenized string (nested ones live inside other originals)."""
    return [
        token for token in sorted(token_map, key=_token_order)
        if token in tokenized_string
    ]
