"""
HttpClient - запросы метаданных (oEmbed, aggregation API, страницы платформ)
Каждый вызов открывает свою сессию aiohttp с конечным таймаутом
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import aiohttp

from reelgrab.config import Settings
from reelgrab.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


@dataclass
class PageResponse:
    """
    Загруженная страница

    Attributes:
        text: HTML страницы
        url: Итоговый URL после редиректов (vm.tiktok.com -> www.tiktok.com/...)
        status: HTTP статус
        cookies: Cookies, выставленные по пути (нужны CDN TikTok)
    """
    text: str
    url: str
    status: int = 200
    cookies: Dict[str, str] = field(default_factory=dict)


class HttpClient:
    """
    Тонкая обертка над aiohttp для запросов метаданных

    Ответственность:
    - Таймауты на каждый запрос
    - Перевод ошибок сети и статусов в UpstreamUnavailable

    НЕ делает:
    - Не ретранслирует медиафайлы (это делает StreamRelay)
    - Не повторяет запросы
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.settings.http_timeout)

    def _headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = {'User-Agent': self.settings.user_agent}
        if headers:
            merged.update(headers)
        return merged

    async def get_text(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None
    ) -> PageResponse:
        """
        Загрузить страницу

        Raises:
            UpstreamUnavailable: статус >= 400, таймаут, ошибка соединения
                или неизвестная кодировка ответа
        """
        logger.debug(f"[HTTP] GET {url}")
        try:
            async with aiohttp.ClientSession(timeout=self._timeout(), headers=self._headers(headers)) as session:
                async with session.get(url, params=params, allow_redirects=True) as response:
                    if response.status >= 400:
                        logger.warning(f"[HTTP] {url} ответил {response.status}")
                        raise UpstreamUnavailable(f"Upstream returned HTTP {response.status}", status=response.status)
                    try:
                        text = await response.text(errors='replace')
                    except LookupError:
                        logger.warning(f"[HTTP] {url} объявил неизвестную кодировку: {response.headers.get('Content-Type')}")
                        raise UpstreamUnavailable('Upstream returned an unreadable response')
                    cookies = {cookie.key: cookie.value for cookie in session.cookie_jar}
                    return PageResponse(text=text, url=str(response.url), status=response.status, cookies=cookies)
        except asyncio.TimeoutError:
            logger.warning(f"[HTTP] Таймаут запроса {url}")
            raise UpstreamUnavailable('Upstream request timed out')
        except aiohttp.ClientError as e:
            logger.warning(f"[HTTP] Ошибка соединения с {url}: {type(e).__name__}: {e}")
            raise UpstreamUnavailable('Could not reach upstream service')

    async def get_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Загрузить и разобрать JSON

        Raises:
            UpstreamUnavailable: ошибка запроса или ответ - не JSON
        """
        page = await self.get_text(url, headers=headers, params=params)
        try:
            return json.loads(page.text)
        except ValueError:
            logger.warning(f"[HTTP] {url} вернул не JSON: {page.text[:200]!r}")
            raise UpstreamUnavailable('Upstream returned an invalid response')
