from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from infrastructure.http.proxy import ProxySettings
from shared.constants import USER_AGENT

logger = logging.getLogger(__name__)


def default_headers() -> dict[str, str]:
    return {'User-Agent': USER_AGENT}


def make_timeout(total_s: float | None) -> aiohttp.ClientTimeout:
    """Таймаут запросов; None отключает его (запрос может ждать бесконечно)."""
    return aiohttp.ClientTimeout(total=total_s)


def make_http_session(
    proxy: ProxySettings | None = None,
    *,
    timeout_s: float | None = None,
) -> aiohttp.ClientSession:
    """Создаёт сессию для запросов тайлов.

    Без явного прокси учитываются системные настройки (переменные окружения
    HTTP(S)_PROXY); с прокси окружение игнорируется, а прокси передаётся
    вызывающим кодом в каждый запрос.
    """
    # Создать SSL-контекст с сертификатами из certifi
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)
    if proxy is not None:
        logger.debug('Proxy updated to %s:%d', proxy.host, proxy.port)
    return aiohttp.ClientSession(
        connector=connector,
        headers=default_headers(),
        timeout=make_timeout(timeout_s),
        trust_env=proxy is None,
    )
