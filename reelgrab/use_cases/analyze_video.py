"""
Use case: Анализ видео
"""
import logging

from reelgrab.models import VideoMetadata
from reelgrab.services.link_processing_service import LinkProcessingService

logger = logging.getLogger(__name__)


class AnalyzeVideoUseCase:
    """Use case для получения метаданных видео (байты видео не скачиваются)"""

    def __init__(self, link_processor: LinkProcessingService):
        """
        Args:
            link_processor: Выбирает сервис платформы по ссылке
        """
        self.link_processor = link_processor

    async def execute(self, url: str) -> VideoMetadata:
        """
        Получить метаданные видео

        Args:
            url: URL видео

        Returns:
            VideoMetadata с непустым списком качеств

        Raises:
            InvalidInput, UnsupportedPlatform: до любых сетевых запросов
            ReelgrabError: ошибка сервиса платформы
        """
        reference, service = self.link_processor.handle(url)
        logger.info(f"Анализ {reference.platform.value}: {reference.url}")
        metadata = await service.analyze(reference.url)
        logger.info(
            f"Анализ завершен: {metadata.title!r}, качества {metadata.available_qualities}, "
            f"длительность {metadata.duration_seconds}с"
        )
        return metadata
