"""
Фабрика для создания сервисов платформ
"""
from typing import Optional

from reelgrab.config import Settings
from reelgrab.models import PlatformTag
from reelgrab.services.aggregator import AggregatorClient
from reelgrab.services.base import BaseService
from reelgrab.services.facebook import FacebookService
from reelgrab.services.http_client import HttpClient
from reelgrab.services.instagram import InstagramService
from reelgrab.services.tiktok import TikTokService
from reelgrab.services.youtube import YouTubeService
from reelgrab.services.ytdlp_service import YtDlpService


class ServiceFactory:
    """Фабрика для создания сервисов платформ"""

    def __init__(
        self,
        settings: Settings,
        http: Optional[HttpClient] = None,
        ytdlp: Optional[YtDlpService] = None
    ):
        """
        Args:
            settings: Настройки сервиса
            http: Клиент для запросов метаданных
            ytdlp: Экземпляр YtDlpService (для YouTube)
        """
        self.settings = settings
        self.http = http or HttpClient(settings)
        self.ytdlp = ytdlp or YtDlpService(settings)
        self.aggregator = AggregatorClient(settings, self.http)
        self._services = {}

    def get_service(self, platform: PlatformTag) -> Optional[BaseService]:
        """
        Получить сервис для платформы

        Args:
            platform: Тег платформы

        Returns:
            Сервис для платформы или None если платформа не поддерживается
        """
        if platform not in self._services:
            if platform is PlatformTag.YOUTUBE:
                self._services[platform] = YouTubeService(self.settings, self.http, self.ytdlp)
            elif platform is PlatformTag.TIKTOK:
                self._services[platform] = TikTokService(self.settings, self.http, self.aggregator)
            elif platform is PlatformTag.INSTAGRAM:
                self._services[platform] = InstagramService(self.settings, self.http, self.aggregator)
            elif platform is PlatformTag.FACEBOOK:
                self._services[platform] = FacebookService(self.settings, self.http, self.aggregator)
            else:
                return None

        return self._services.get(platform)
