"""Shared utilities for the oEmbed resolver."""

from .schema_utils import (
    PAGE_TYPES,
    is_json_content_type,
    is_page_type,
    select_last_match,
    select_structured_data,
    parse_structured_data,
)

from .html_signals import (
    MetaSignals,
    SignalCollector,
    decode_chunks,
    extract_html_signals,
    parse_json_ld,
)

from .resolver_utils import (
    FIELD_CANDIDATES,
    OEMBED_TYPE,
    OEMBED_VERSION,
    first_defined,
    resolve_fields,
)

__all__ = [
    # Structured data
    'PAGE_TYPES',
    'is_json_content_type',
    'is_page_type',
    'select_last_match',
    'select_structured_data',
    'parse_structured_data',
    # HTML signals
    'MetaSignals',
    'SignalCollector',
    'decode_chunks',
    'extract_html_signals',
    'parse_json_ld',
    # Field resolution
    'FIELD_CANDIDATES',
    'OEMBED_TYPE',
    'OEMBED_VERSION',
    'first_defined',
    'resolve_fields',
]
