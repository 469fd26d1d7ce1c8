"""
Базовый класс для сервисов платформ
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict
import logging

from reelgrab.config import Settings
from reelgrab.models import PlatformTag, VideoMetadata, MediaLocator
from reelgrab.services.http_client import HttpClient

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Базовый класс для всех сервисов платформ

    Каждый сервис знает только свою платформу: получает метаданные
    и прямую ссылку на медиафайл.
    НЕ ретранслирует байты, НЕ кэширует ссылки, НЕ знает об HTTP API.
    """

    PLATFORM: PlatformTag = PlatformTag.UNKNOWN
    REFERER: Optional[str] = None

    def __init__(self, settings: Settings, http: HttpClient):
        """
        Args:
            settings: Настройки сервиса
            http: Клиент для запросов метаданных
        """
        self.settings = settings
        self.http = http
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def analyze(self, url: str) -> VideoMetadata:
        """
        Получить метаданные видео

        Args:
            url: URL видео

        Returns:
            VideoMetadata с непустым списком качеств

        Raises:
            ReelgrabError: ошибка из таксономии reelgrab.errors
        """
        pass

    @abstractmethod
    async def resolve_media(self, url: str, desired_quality: Optional[str] = None) -> MediaLocator:
        """
        Получить прямую ссылку на медиафайл

        Args:
            url: URL видео
            desired_quality: Желаемое качество; если его нет - лучшее доступное

        Returns:
            Свежий MediaLocator (не кэшируется)

        Raises:
            ReelgrabError: ошибка из таксономии reelgrab.errors
        """
        pass

    def browser_headers(self, referer: Optional[str] = None) -> Dict[str, str]:
        """Заголовки браузера для страниц и CDN платформы"""
        headers = {
            'User-Agent': self.settings.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        }
        referer = referer or self.REFERER
        if referer:
            headers['Referer'] = referer
        return headers

    def media_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Заголовки для запроса медиафайла: User-Agent и Referer платформы"""
        headers = {'User-Agent': self.settings.user_agent}
        if self.REFERER:
            headers['Referer'] = self.REFERER
        if extra:
            headers.update(extra)
        return headers
