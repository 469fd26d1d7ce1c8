"""
Общая логика TikTok / Instagram / Facebook:
упорядоченный список стратегий ('api', 'scrape'), первая успешная выигрывает
"""
from abc import abstractmethod
from typing import Optional, Dict, Callable, Awaitable, List

from reelgrab.config import Settings, STRATEGY_API, STRATEGY_SCRAPE
from reelgrab.errors import ExtractionFailed, ConfigurationError
from reelgrab.models import VideoMetadata, MediaLocator
from reelgrab.services.aggregator import AggregatorClient, DEFAULT_QUALITIES
from reelgrab.services.base import BaseService
from reelgrab.services.http_client import HttpClient, PageResponse
from reelgrab.services.scraping import ScrapedVideo, first_successful, looks_like_login_wall


class SocialMediaService(BaseService):
    """
    Сервис платформы с двумя взаимозаменяемыми стратегиями

    Подклассы задают:
    - DEFAULT_TITLE, REFERER, FAILURE_HINT
    - parse_page(): упорядоченные шаблоны разбора страницы
    """

    DEFAULT_TITLE = 'Video'
    FAILURE_HINT = 'The video may be private, removed, or unavailable in this region.'
    LOGIN_HINT = 'This video requires login to view.'

    def __init__(self, settings: Settings, http: HttpClient, aggregator: Optional[AggregatorClient] = None):
        super().__init__(settings, http)
        self.aggregator = aggregator or AggregatorClient(settings, http)

    @property
    def strategies(self) -> tuple:
        return self.settings.strategies_for(self.PLATFORM)

    def _chain(self, handlers: Dict[str, Callable[[], Awaitable]]) -> List[Callable[[], Awaitable]]:
        attempts = []
        for strategy in self.strategies:
            if strategy not in handlers:
                raise ConfigurationError(f"Unknown extraction strategy: {strategy}")
            attempts.append(handlers[strategy])
        return attempts

    async def analyze(self, url: str) -> VideoMetadata:
        self.logger.info(f"[{self.PLATFORM.display_name}] Анализ {url} (стратегии: {', '.join(self.strategies)})")
        return await first_successful(
            self._chain({
                STRATEGY_API: lambda: self._analyze_api(url),
                STRATEGY_SCRAPE: lambda: self._analyze_scrape(url),
            }),
            label=self.PLATFORM.display_name,
        )

    async def resolve_media(self, url: str, desired_quality: Optional[str] = None) -> MediaLocator:
        self.logger.info(f"[{self.PLATFORM.display_name}] Поиск ссылки для {url} (качество: {desired_quality or 'best'})")
        locator = await first_successful(
            self._chain({
                STRATEGY_API: lambda: self._resolve_api(url, desired_quality),
                STRATEGY_SCRAPE: lambda: self._resolve_scrape(url, desired_quality),
            }),
            label=self.PLATFORM.display_name,
        )
        if locator.direct_url == url:
            # Ссылка на страницу вместо файла - значит ничего не нашли
            raise self.extraction_failed()
        return locator

    # --- стратегия 'api' ---

    async def _analyze_api(self, url: str) -> VideoMetadata:
        data = await self.aggregator.fetch(url)
        return self.aggregator.to_metadata(data, self.PLATFORM, self.DEFAULT_TITLE)

    async def _resolve_api(self, url: str, desired_quality: Optional[str]) -> MediaLocator:
        data = await self.aggregator.fetch(url)
        try:
            return self.aggregator.to_locator(data, desired_quality, self.media_headers())
        except ExtractionFailed as e:
            e.hint = e.hint or self.FAILURE_HINT
            e.platform = self.PLATFORM.value
            raise

    # --- стратегия 'scrape' ---

    async def fetch_page(self, url: str) -> PageResponse:
        return await self.http.get_text(url, headers=self.browser_headers())

    async def scrape(self, url: str) -> tuple:
        """
        Загрузить страницу и разобрать ее

        Returns:
            (ScrapedVideo, PageResponse)

        Raises:
            ExtractionFailed: ни один шаблон не сработал
        """
        page = await self.fetch_page(url)
        video = self.parse_page(page.text)
        if not video or not video.media_url:
            self.logger.warning(f"[{self.PLATFORM.display_name}] Ни один шаблон не нашел видео на {page.url}")
            raise self.extraction_failed(login_required=looks_like_login_wall(page.text))
        self.logger.info(f"[{self.PLATFORM.display_name}] Видео найдено шаблоном {video.pattern}")
        return video, page

    async def _analyze_scrape(self, url: str) -> VideoMetadata:
        video, _ = await self.scrape(url)
        return VideoMetadata(
            platform=self.PLATFORM,
            title=video.title or self.DEFAULT_TITLE,
            thumbnail_url=video.thumbnail_url,
            duration_seconds=video.duration_seconds,
            available_qualities=list(video.variants) or list(DEFAULT_QUALITIES),
        )

    async def _resolve_scrape(self, url: str, desired_quality: Optional[str]) -> MediaLocator:
        video, page = await self.scrape(url)
        label, media_url = video.pick(desired_quality)
        return MediaLocator(
            direct_url=media_url,
            required_headers=self.media_headers(self.page_headers(page)),
            title=video.title or None,
            quality=label,
        )

    def page_headers(self, page: PageResponse) -> Dict[str, str]:
        """Дополнительные заголовки для CDN, полученные со страницы"""
        return {}

    @abstractmethod
    def parse_page(self, page: str) -> Optional[ScrapedVideo]:
        """Применить шаблоны платформы по порядку; None, если ни один не сработал"""
        pass

    def extraction_failed(self, login_required: bool = False) -> ExtractionFailed:
        return ExtractionFailed(
            f"Failed to extract {self.PLATFORM.display_name} video",
            hint=self.LOGIN_HINT if login_required else self.FAILURE_HINT,
            platform=self.PLATFORM.value,
        )
