"""
URL slug generation for translated entities.

An object with no nested children and at least one moderately long string
field is a leaf entity and gets a url derived from its name, title,
description or overview. A previous url is kept in old_urls.
"""

import re
import unicodedata
from typing import Any, Dict, Optional

SLUG_SOURCE_KEYS = ('name', 'title', 'description', 'overview')
URL_KEYS = ('url', 'old_urls')
MIN_SOURCE_LENGTH = 5
MAX_SOURCE_LENGTH = 100

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def make_slug(text: str) -> str:
    """
    Derive a URL slug from text.

    Text with no Latin letters or digits left after normalisation gets a
    content-<n> fallback, n being the sum of its code points.

    Examples:
        >>> make_slug('Fushimi Inari Shrine')
        'fushimi-inari-shrine'
        >>> make_slug('  Café & Crème!  ')
        'cafe-creme'
        >>> make_slug('寺')
        'content-23546'
    """
    if not text:
        return ''
    normalized = unicodedata.normalize('NFKD', text)
    stripped = ''.join(ch for ch in normalized if not unicodedata.combining(ch))
    slug = _NON_ALNUM.sub('-', stripped.lower()).strip('-')
    if slug:
        return slug
    return f"content-{sum(ord(ch) for ch in text)}"


def _qualifies(value: Any) -> bool:
    return isinstance(value, str) and MIN_SOURCE_LENGTH < len(value.strip()) < MAX_SOURCE_LENGTH


def needs_url(obj: Dict[str, Any]) -> bool:
    """An object without nested containers that has at least one qualifying string field."""
    if not isinstance(obj, dict) or not obj:
        return False
    fields = {k: v for k, v in obj.items() if k not in URL_KEYS and not str(k).startswith('_')}
    if any(isinstance(v, (dict, list)) for v in fields.values()):
        return False
    return any(_qualifies(v) for v in fields.values())


def slug_source(obj: Dict[str, Any]) -> Optional[str]:
    """First of name/title/description/overview, else the first qualifying string field."""
    for key in SLUG_SOURCE_KEYS:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            return value
    for key, value in obj.items():
        if key in URL_KEYS or str(key).startswith('_'):
            continue
        if _qualifies(value):
            return value
    return None


def assign_url(obj: Dict[str, Any], slug: str) -> Dict[str, Any]:
    """
    Set obj['url'] to slug, moving a different previous url into old_urls.

    The history never holds the same url twice.
    """
    old_urls = obj.get('old_urls')
    old_urls = list(old_urls) if isinstance(old_urls, list) else []
    previous = obj.get('url')
    if isinstance(previous, str) and previous and previous != slug and previous not in old_urls:
        old_urls.append(previous)
    obj['url'] = slug
    obj['old_urls'] = old_urls
    return obj


def apply_url(obj: Dict[str, Any]) -> bool:
    """Give a leaf entity its url. Returns True when a url was assigned."""
    if not needs_url(obj):
        return False
    source = slug_source(obj)
    if not source:
        return False
    slug = make_slug(source)
    if not slug:
        return False
    assign_url(obj, slug)
    return True
