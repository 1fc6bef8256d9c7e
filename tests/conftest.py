"""
Shared pytest fixtures for oEmbed resolver tests.
"""

import pytest
import sys
import importlib.util
from pathlib import Path
from urllib.parse import urlencode, urlparse, parse_qsl

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load Cloud Function module with a unique name at module load time
_oembed_resolver_module = _load_module_from_path(
    'oembed_resolver_main',
    PROJECT_ROOT / 'oembed-resolver' / 'main.py'
)


# ============================================================================
# oEmbed Resolver Function Fixtures
# ============================================================================

@pytest.fixture
def validate_request():
    """Returns validate_request function from oembed-resolver."""
    return _oembed_resolver_module.validate_request


@pytest.fixture
def check_format():
    """Returns check_format function from oembed-resolver."""
    return _oembed_resolver_module.check_format


@pytest.fixture
def fetch_target():
    """Returns fetch_target function from oembed-resolver."""
    return _oembed_resolver_module.fetch_target


@pytest.fixture
def declared_charset():
    """Returns declared_charset function from oembed-resolver."""
    return _oembed_resolver_module.declared_charset


@pytest.fixture
def build_response():
    """Returns build_response function from oembed-resolver."""
    return _oembed_resolver_module.build_response


@pytest.fixture
def resolve_oembed():
    """Returns main entry point from oembed-resolver."""
    return _oembed_resolver_module.resolve_oembed


# ============================================================================
# Request Fixtures
# ============================================================================

@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, url='https://example.com/oembed', method='GET'):
            self.url = url
            self.method = method
            self.data = b''
            # First value wins, like werkzeug's MultiDict.get
            self.args = {}
            for key, value in parse_qsl(urlparse(url).query, keep_blank_values=True):
                self.args.setdefault(key, value)

    return MockRequest


@pytest.fixture
def oembed_request(mock_flask_request):
    """Factory for an oEmbed request asking about target on host."""
    def make(target=None, method='GET', host='example.com'):
        url = f'https://{host}/oembed'
        if target is not None:
            url += '?' + urlencode({'url': target})
        return mock_flask_request(url=url, method=method)

    return make


# ============================================================================
# Sample Documents
# ============================================================================

@pytest.fixture
def sample_article_html():
    """Returns a sample article page with every kind of head signal."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>10 Python Tips | Example Blog</title>
        <meta name="application-name" content="Example Blog">
        <meta name="publisher" content="Jane Developer">
        <meta name="twitter:title" content="Python Tips (Twitter)">
        <meta property="og:title" content="10 Python Tips You Should Know">
        <meta itemprop="name" content="Python Tips (Microdata)">
        <script type="application/ld+json">
        {"@context": "https://schema.org", "@type": "BlogPosting", "headline": "10 Python Tips"}
        </script>
    </head>
    <body>
        <article>
            <h1>10 Python Tips You Should Know</h1>
            <p>Here are some tips for Python development.</p>
        </article>
    </body>
    </html>
    """


@pytest.fixture
def sample_meta_only_html():
    """Returns a page with meta tags but no JSON-LD."""
    return """
    <html>
    <head>
        <title>Doc Title</title>
        <meta property="og:title" content="OG">
        <meta name="application-name" content="Example Site">
    </head>
    <body><p>Body text</p></body>
    </html>
    """


@pytest.fixture
def sample_json_ld_list():
    """Returns a JSON-LD array mixing identity and page nodes."""
    return [
        {"@type": "WebSite", "name": "Example Site"},
        {"@type": "Person", "name": "Bob"},
        {"@type": "WebPage", "name": "Page"},
    ]
