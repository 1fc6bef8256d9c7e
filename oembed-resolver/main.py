"""
oEmbed Resolver Cloud Function

Answers oEmbed "link" requests for pages on the same host.

Responsibilities:
- Validate the request and the target url
- Fetch the target page once
- Extract title/provider/author from JSON structured data or HTML head signals
- Return a JSON oEmbed link descriptor

Does NOT:
- Cache upstream pages or results
- Retry failed fetches
- Emit XML oEmbed
"""

import functions_framework
import requests
from urllib.parse import urlparse, parse_qsl
import json
import os
import sys
import traceback

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from shared.schema_utils import is_json_content_type, parse_structured_data
from shared.html_signals import decode_chunks, extract_html_signals, parse_json_ld
from shared.resolver_utils import resolve_fields

# Configuration
FETCH_TIMEOUT = float(os.environ.get('FETCH_TIMEOUT', '30'))
STREAM_CHUNK_SIZE = int(os.environ.get('STREAM_CHUNK_SIZE', '8192'))
USER_AGENT = os.environ.get(
    'USER_AGENT',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

CORS_HEADERS = {'Access-Control-Allow-Origin': '*'}

# requests has already decoded the body, so these no longer describe it
DROPPED_UPSTREAM_HEADERS = {'connection', 'content-encoding', 'content-length', 'keep-alive', 'transfer-encoding'}

# Error responses (message, status)
METHOD_NOT_ALLOWED = ('Only GET supported; read-only', 400)
URL_REQUIRED = ('url parameter required', 400)
INVALID_URL = ('Invalid url', 400)
HOST_MISMATCH = ('Request and url hostnames must match', 400)
FORMAT_NOT_IMPLEMENTED = ('Only JSON oEmbed implemented', 501)
FETCH_FAILED = ('Upstream could not be fetched', 502)
INTERNAL_ERROR = ('Internal error', 500)


def text_response(message: str, status: int) -> tuple:
    """Plain text response for terminal errors."""
    headers = {'Content-Type': 'text/plain', **CORS_HEADERS}
    return (message, status, headers)


def validate_request(request) -> tuple:
    """
    Check method, url presence, url shape and same-host policy.

    Returns (parsed_target_url, error). Hostnames are compared via
    urlparse().hostname, i.e. lower-cased and without port.
    """
    if request.method != 'GET':
        return None, METHOD_NOT_ALLOWED

    if 'url' not in request.args:
        return None, URL_REQUIRED

    try:
        target = urlparse(request.args.get('url'))
        # Raises for out-of-range or non-numeric ports
        target.port
    except ValueError:
        return None, INVALID_URL

    if not target.scheme or not target.netloc:
        return None, INVALID_URL

    if urlparse(request.url).hostname != target.hostname:
        return None, HOST_MISMATCH

    return target, None


def check_format(target) -> tuple:
    """Reject targets asking for anything but JSON. Returns error or None."""
    for key, value in parse_qsl(target.query, keep_blank_values=True):
        if key == 'format':
            return None if value == 'json' else FORMAT_NOT_IMPLEMENTED
    return None


def fetch_target(url: str) -> tuple:
    """Open a streamed GET to the target. Returns (response, error)."""
    try:
        headers = {
            'User-Agent': USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8',
        }
        response = requests.get(url, headers=headers, timeout=FETCH_TIMEOUT,
                                allow_redirects=True, stream=True)
        return response, None

    except requests.exceptions.RequestException as e:
        print(f"Upstream fetch error: {e}")
        return None, FETCH_FAILED


def forward_response(response) -> tuple:
    """Pass an upstream failure through unchanged."""
    headers = [
        (name, value) for name, value in response.headers.items()
        if name.lower() not in DROPPED_UPSTREAM_HEADERS
    ]
    return (response.content, response.status_code, headers)


def declared_charset(content_type: str):
    """Get the charset parameter of a Content-Type header, if any."""
    for param in content_type.split(';')[1:]:
        key, _, value = param.partition('=')
        if key.strip().lower() == 'charset':
            return value.strip().strip('"\'') or None
    return None


def extract_descriptor(response) -> tuple:
    """
    Consume the upstream body and resolve the descriptor fields.

    JSON bodies go through the structured data path; everything else is
    streamed through the HTML signal collector. Returns (descriptor, error).
    """
    content_type = response.headers.get('Content-Type', '')

    if is_json_content_type(content_type):
        schema, error = parse_structured_data(response.content)
        if error:
            return None, error
        return resolve_fields(schema), None

    chunks = decode_chunks(
        response.iter_content(chunk_size=STREAM_CHUNK_SIZE),
        declared_charset(content_type)
    )
    signals = extract_html_signals(chunks)

    schema, error = parse_json_ld(signals.json_ld)
    if error:
        return None, error

    return resolve_fields(schema, signals), None


def build_response(descriptor: dict) -> tuple:
    """Serialize the descriptor as the final JSON response."""
    headers = {'Content-Type': 'application/json', **CORS_HEADERS}
    return (json.dumps(descriptor), 200, headers)


@functions_framework.http
def resolve_oembed(request):
    """
    Main Cloud Function entry point.

    Expected query string:
        GET /?url=https://same-host.example/page[&format=json]
    """
    try:
        target, error = validate_request(request)
        if error:
            return text_response(*error)

        error = check_format(target)
        if error:
            return text_response(*error)

        response, error = fetch_target(request.args.get('url'))
        if error:
            return text_response(*error)

        with response:
            if not 200 <= response.status_code < 300:
                print(f"-> {response.status_code} {response.reason}")
                return forward_response(response)

            descriptor, error = extract_descriptor(response)

        if error:
            return text_response(*error)

        return build_response(descriptor)

    except Exception as e:
        print(f"resolve_oembed error: {e}")
        traceback.print_exc()
        return text_response(*INTERNAL_ERROR)
