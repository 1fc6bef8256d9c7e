"""
HTML signal extraction for the oEmbed resolver.

Streams an HTML document through an incremental parser exactly once and
collects, from inside <head>:
- the <title> text
- <meta> content keyed by name, by property and by itemprop
- the raw text of every application/ld+json script block

The document is never held in memory as a whole; chunks are fed to the
parser as they arrive from the upstream response.
"""

import codecs
import json
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

JSON_LD_TYPE = 'application/ld+json'

JSON_LD_ERROR = ('JSON-LD Schema could not be parsed', 500)


@dataclass(frozen=True)
class MetaSignals:
    """Signals collected from one HTML document."""
    title: Optional[str] = None
    by_name: Dict[str, Optional[str]] = field(default_factory=dict)
    by_property: Dict[str, Optional[str]] = field(default_factory=dict)
    by_itemprop: Dict[str, Optional[str]] = field(default_factory=dict)
    json_ld: str = ''


class SignalCollector(HTMLParser):
    """
    Incremental parser that accumulates head signals while being fed.

    One collector serves a single document; create a new one per request.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.title: Optional[str] = None
        self.by_name: Dict[str, Optional[str]] = {}
        self.by_property: Dict[str, Optional[str]] = {}
        self.by_itemprop: Dict[str, Optional[str]] = {}
        self._json_ld_parts: List[str] = []
        self._in_head = False
        self._in_title = False
        self._in_json_ld = False

    def handle_starttag(self, tag, attrs):
        if tag == 'head':
            self._in_head = True
            return

        if not self._in_head:
            return

        # First occurrence of a duplicated attribute wins, like browsers do
        attributes = {}
        for name, value in attrs:
            attributes.setdefault(name, value if value is not None else '')

        if tag == 'title':
            # Each title element restarts the text
            self.title = ''
            self._in_title = True
        elif tag == 'meta':
            self._record_meta(attributes)
        elif tag == 'script' and attributes.get('type') == JSON_LD_TYPE:
            self._in_json_ld = True

    def handle_endtag(self, tag):
        if tag == 'head':
            self._in_head = False
            self._in_title = False
            self._in_json_ld = False
        elif tag == 'title':
            self._in_title = False
        elif tag == 'script':
            self._in_json_ld = False

    def handle_data(self, data):
        if self._in_title:
            self.title += data
        elif self._in_json_ld:
            self._json_ld_parts.append(data)

    def _record_meta(self, attributes: Dict[str, str]):
        content = attributes.get('content')
        if 'name' in attributes:
            self.by_name[attributes['name']] = content
        if 'property' in attributes:
            self.by_property[attributes['property']] = content
        if 'itemprop' in attributes:
            self.by_itemprop[attributes['itemprop']] = content

    def signals(self) -> MetaSignals:
        """Snapshot the collected fields."""
        return MetaSignals(
            title=self.title,
            by_name=dict(self.by_name),
            by_property=dict(self.by_property),
            by_itemprop=dict(self.by_itemprop),
            json_ld=''.join(self._json_ld_parts),
        )


def decode_chunks(chunks: Iterable[bytes], encoding: Optional[str] = None) -> Iterator[str]:
    """
    Incrementally decode byte chunks into text.

    Multi-byte sequences split across chunk boundaries are reassembled.
    Falls back to UTF-8 when no encoding is given or it is unknown.
    """
    try:
        decoder = codecs.getincrementaldecoder(encoding or 'utf-8')(errors='replace')
    except LookupError:
        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')

    for chunk in chunks:
        text = decoder.decode(chunk)
        if text:
            yield text

    tail = decoder.decode(b'', final=True)
    if tail:
        yield tail


def extract_html_signals(chunks: Iterable[str]) -> MetaSignals:
    """
    Run one streaming pass over an HTML document.

    Args:
        chunks: Decoded text chunks in document order

    Returns:
        The collected MetaSignals
    """
    collector = SignalCollector()
    for chunk in chunks:
        collector.feed(chunk)
    collector.close()
    return collector.signals()


def parse_json_ld(raw: str) -> Tuple[Any, Optional[Tuple[str, int]]]:
    """
    Parse concatenated JSON-LD text. Returns (schema, error).

    The parsed value is returned as-is; arrays are not narrowed to a page
    node here.
    """
    if not raw:
        return {}, None

    try:
        return json.loads(raw), None
    except ValueError:
        return {}, JSON_LD_ERROR
