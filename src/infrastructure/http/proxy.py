"""Parsing of "host:port" proxy strings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shared.constants import MAX_PORT, PROXY_SCHEME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxySettings:
    host: str
    port: int

    @property
    def url(self) -> str:
        return f'{PROXY_SCHEME}://{self.host}:{self.port}'


def parse_proxy(value: str | None) -> ProxySettings | None:
    """
    Parse a "host:port" proxy string.

    Anything that is not exactly two colon-separated fields with a non-empty
    host and an unsigned integer port disables the proxy (returns None), in
    which case the system proxy configuration applies.
    """
    if not value:
        return None
    fields = value.strip().split(':')
    if len(fields) != 2:
        logger.warning('Proxy %r is not in host:port form; proxy disabled', value)
        return None
    host, port_text = fields[0].strip(), fields[1].strip()
    if not host or not port_text.isdigit() or int(port_text) > MAX_PORT:
        logger.warning('Proxy %r has an invalid host or port; proxy disabled', value)
        return None
    proxy = ProxySettings(host=host, port=int(port_text))
    logger.debug('Proxy initialized to %s:%d', proxy.host, proxy.port)
    return proxy
