"""
Use case: Скачивание видео
"""
import logging
from typing import Optional

from reelgrab.downloader.stream_relay import StreamRelay, ProgressCallback
from reelgrab.models import PlatformTag, StreamResult
from reelgrab.services.link_processing_service import LinkProcessingService
from reelgrab.utils.utils import safe_filename

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = '720p'


def build_filename(title: Optional[str], platform: PlatformTag) -> str:
    """'<безопасный заголовок>.mp4' или '<платформа>_video.mp4'"""
    name = safe_filename(title)
    if not name:
        return f"{platform.value}_video.mp4"
    return f"{name}.mp4"


class DownloadVideoUseCase:
    """Use case для скачивания видео: поиск прямой ссылки и ретрансляция"""

    def __init__(
        self,
        link_processor: LinkProcessingService,
        relay: StreamRelay,
        default_quality: str = DEFAULT_QUALITY
    ):
        """
        Args:
            link_processor: Выбирает сервис платформы по ссылке
            relay: Ретранслятор медиафайлов
            default_quality: Качество, если клиент его не указал
        """
        self.link_processor = link_processor
        self.relay = relay
        self.default_quality = default_quality

    async def execute(
        self,
        url: str,
        quality: Optional[str] = None,
        progress: Optional[ProgressCallback] = None
    ) -> StreamResult:
        """
        Открыть поток видео

        Args:
            url: URL видео
            quality: Желаемое качество или None (тогда default_quality)
            progress: Колбэк прогресса (размер каждого чанка)

        Returns:
            StreamResult; тело читается лениво

        Raises:
            InvalidInput, UnsupportedPlatform: до любых сетевых запросов
            ReelgrabError: ошибка поиска ссылки или подключения к источнику
        """
        reference, service = self.link_processor.handle(url)
        desired_quality = quality or self.default_quality
        logger.info(f"Скачивание {reference.platform.value}: {reference.url} (качество: {desired_quality})")

        # Ссылка получается заново на каждый запрос: прямые URL быстро протухают
        locator = await service.resolve_media(reference.url, desired_quality)
        filename = build_filename(locator.title, reference.platform)

        return await self.relay.open(locator, filename, title=locator.title, progress=progress)
