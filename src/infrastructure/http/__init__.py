"""HTTP client infrastructure."""
from infrastructure.http.client import default_headers, make_http_session, make_timeout
from infrastructure.http.proxy import ProxySettings, parse_proxy

__all__ = [
    'ProxySettings',
    'default_headers',
    'make_http_session',
    'make_timeout',
    'parse_proxy',
]
