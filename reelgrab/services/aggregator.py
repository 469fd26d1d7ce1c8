"""
AggregatorClient - стороннее API, которое по ссылке на пост
возвращает ссылки на скачивание (RapidAPI social-media-video-downloader)
"""
import re
import logging
from typing import Optional, Dict, Any, List, Tuple

from reelgrab.config import Settings
from reelgrab.errors import NoLinkFound, UpstreamUnavailable
from reelgrab.models import PlatformTag, VideoMetadata, MediaLocator
from reelgrab.services.http_client import HttpClient
from reelgrab.services.scraping import dedupe, parse_duration

logger = logging.getLogger(__name__)

DEFAULT_QUALITIES = ['HD', 'SD']


def quality_label(quality: Optional[str]) -> Optional[str]:
    """
    Привести метку качества API к виду, который видит пользователь
    'hd' -> 'HD', 'video_sd_0' -> 'SD', '720p' -> '720p', 'audio_0' -> None (не видео)
    """
    if not quality:
        return None
    tokens = [t for t in re.split(r'[^a-z0-9]+', str(quality).lower()) if t]
    if 'audio' in tokens:
        return None
    if 'hd' in tokens:
        return 'HD'
    if 'sd' in tokens:
        return 'SD'
    return str(quality).strip()


class AggregatorClient:
    """
    Клиент aggregation API

    Ответ: {"title": "...", "picture": "...", "links": [{"quality": "hd", "link": "..."}]}
    """

    ENDPOINT = '/smvd/get/all'

    def __init__(self, settings: Settings, http: HttpClient):
        self.settings = settings
        self.http = http

    async def fetch(self, url: str) -> Dict[str, Any]:
        """
        Запросить данные о посте

        Raises:
            ConfigurationError: RAPIDAPI_KEY не задан
            UpstreamUnavailable: API ответил ошибкой или не JSON
        """
        api_key = self.settings.require_rapidapi_key()
        host = self.settings.rapidapi_host
        logger.info(f"[Aggregator] Запрос к {host} для {url}")

        data = await self.http.get_json(
            f"https://{host}{self.ENDPOINT}",
            headers={
                'x-rapidapi-key': api_key,
                'x-rapidapi-host': host,
            },
            params={'url': url},
        )
        if not isinstance(data, dict):
            raise UpstreamUnavailable('Aggregation API returned an unexpected response')
        if data.get('error') and not data.get('links'):
            logger.warning(f"[Aggregator] API вернул ошибку: {str(data.get('message') or data.get('error'))[:200]}")
        return data

    @staticmethod
    def video_links(data: Dict[str, Any]) -> List[Tuple[Optional[str], str]]:
        """Список (метка, ссылка) только для видео, в порядке ответа"""
        links = data.get('links') or []
        result = []
        audio_only = []
        for item in links:
            if not isinstance(item, dict) or not item.get('link'):
                continue
            label = quality_label(item.get('quality'))
            if label is None and item.get('quality'):
                audio_only.append((None, item['link']))
                continue
            result.append((label, item['link']))
        # Если видео-ссылок нет совсем, лучше аудио, чем ничего
        return result or audio_only

    def to_metadata(self, data: Dict[str, Any], platform: PlatformTag, default_title: str) -> VideoMetadata:
        """Метаданные из ответа API (qualities никогда не пустые)"""
        labels = dedupe(label for label, _ in self.video_links(data) if label)
        return VideoMetadata(
            platform=platform,
            title=data.get('title') or default_title,
            thumbnail_url=data.get('picture') or data.get('thumbnail') or '',
            duration_seconds=parse_duration(data.get('duration')),
            available_qualities=labels or list(DEFAULT_QUALITIES),
        )

    def to_locator(
        self,
        data: Dict[str, Any],
        desired_quality: Optional[str],
        headers: Dict[str, str]
    ) -> MediaLocator:
        """
        Выбрать ссылку: нужное качество, иначе 'hd', иначе первая

        Raises:
            NoLinkFound: список ссылок пуст или отсутствует
        """
        links = self.video_links(data)
        if not links:
            raise NoLinkFound()

        chosen = None
        if desired_quality:
            wanted = desired_quality.strip().lower()
            chosen = next((item for item in links if item[0] and item[0].lower() == wanted), None)
        if chosen is None:
            chosen = next((item for item in links if item[0] == 'HD'), links[0])

        label, link = chosen
        logger.info(f"[Aggregator] Выбрана ссылка качества {label or 'default'}")
        return MediaLocator(
            direct_url=link,
            required_headers=dict(headers),
            title=data.get('title') or None,
            quality=label,
        )
