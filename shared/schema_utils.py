"""
Structured data utilities for the oEmbed resolver.

Handles targets that answer with JSON instead of HTML. A single JSON object
is taken as the page's schema.org description; a JSON array is scanned for
the node describing the page itself.
"""

import json
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Union

# Page-like schema.org types. WebSite, Person, Organization etc. are left out
# so identity nodes are never picked over the content node.
PAGE_TYPES = (
    'Article',
    'BlogPosting',
    'ImageGallery',
    'Recipe',
    'TechArticle',
    'WebPage',
)

JSON_MEDIA_TYPES = ('application/json', 'application/ld+json')

UPSTREAM_JSON_ERROR = ('Upstream JSON could not be parsed', 500)


def is_json_content_type(content_type: Optional[str]) -> bool:
    """Check if a Content-Type header declares a JSON body."""
    if not content_type:
        return False
    media_type = content_type.split(';', 1)[0].strip().lower()
    return media_type in JSON_MEDIA_TYPES


def is_page_type(node: Any) -> bool:
    """
    Check if a JSON-LD node is one of the allow-listed page types.

    `@type` may be a single string or a list of strings; a list matches
    when any member is allow-listed.
    """
    if not isinstance(node, dict):
        return False

    node_type = node.get('@type')
    if isinstance(node_type, str):
        return node_type in PAGE_TYPES
    if isinstance(node_type, list):
        return any(isinstance(t, str) and t in PAGE_TYPES for t in node_type)
    return False


def select_last_match(items: Iterable[Any], predicate: Callable[[Any], bool]) -> Optional[Any]:
    """Return the last item in document order that satisfies predicate."""
    selected = None
    for item in items:
        if predicate(item):
            selected = item
    return selected


def select_structured_data(value: Any) -> Dict[str, Any]:
    """
    Pick the structured data object out of a parsed JSON document.

    Args:
        value: The parsed upstream JSON

    Returns:
        The object itself, the last page-typed node of an array, or an
        empty dict when nothing qualifies.
    """
    if isinstance(value, dict):
        return value

    if isinstance(value, list):
        match = select_last_match(value, is_page_type)
        if match is not None:
            return match

    return {}


def parse_structured_data(body: Union[str, bytes]) -> Tuple[Dict[str, Any], Optional[Tuple[str, int]]]:
    """Parse an upstream JSON body. Returns (schema, error)."""
    try:
        value = json.loads(body)
    except ValueError:
        return {}, UPSTREAM_JSON_ERROR

    return select_structured_data(value), None
