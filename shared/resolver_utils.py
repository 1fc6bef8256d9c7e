"""
Field resolution for oEmbed link descriptors.

Each optional descriptor field has an ordered list of candidate providers.
The first provider returning something other than None wins; an empty
string is a real value and stops the chain.
"""

from collections import namedtuple
from typing import Any, Callable, Dict, List, Optional, Tuple

from .html_signals import MetaSignals

OEMBED_TYPE = 'link'
OEMBED_VERSION = '1.0'

Sources = namedtuple('Sources', ['schema', 'signals'])

Provider = Callable[[Sources], Optional[Any]]


def schema_field(key: str) -> Provider:
    """Candidate read from the structured data object."""
    def provide(sources):
        schema = sources.schema
        if isinstance(schema, dict):
            return schema.get(key)
        return None
    return provide


def meta_name(key: str) -> Provider:
    """Candidate read from <meta name=...>."""
    return lambda sources: sources.signals.by_name.get(key)


def meta_property(key: str) -> Provider:
    """Candidate read from <meta property=...>."""
    return lambda sources: sources.signals.by_property.get(key)


def meta_itemprop(key: str) -> Provider:
    """Candidate read from <meta itemprop=...>."""
    return lambda sources: sources.signals.by_itemprop.get(key)


def document_title(sources: Sources) -> Optional[str]:
    return sources.signals.title


FIELD_CANDIDATES: List[Tuple[str, List[Provider]]] = [
    ('title', [
        schema_field('headline'),
        schema_field('name'),
        meta_property('og:title'),
        meta_name('twitter:title'),
        meta_itemprop('name'),
        document_title,
    ]),
    ('provider_name', [
        meta_name('application-name'),
    ]),
    ('author_name', [
        meta_name('publisher'),
    ]),
]


def first_defined(providers: List[Provider], sources: Sources) -> Optional[Any]:
    """Return the first candidate that is not None."""
    for provider in providers:
        value = provider(sources)
        if value is not None:
            return value
    return None


def resolve_fields(schema: Any = None, signals: Optional[MetaSignals] = None,
                   candidates: List[Tuple[str, List[Provider]]] = FIELD_CANDIDATES) -> Dict[str, Any]:
    """
    Build the oEmbed descriptor from whatever signals were collected.

    Args:
        schema: Structured data object (or raw JSON-LD value), may be empty
        signals: Meta signals from the HTML path; None on the JSON path
        candidates: Ordered (field, providers) pairs

    Returns:
        Dict with type and version, plus every optional field that resolved
    """
    sources = Sources(schema if schema is not None else {}, signals or MetaSignals())

    descriptor = {
        'type': OEMBED_TYPE,
        'version': OEMBED_VERSION,
    }

    for field_name, providers in candidates:
        if field_name in descriptor:
            continue
        value = first_defined(providers, sources)
        if value is not None:
            descriptor[field_name] = value

    return descriptor
