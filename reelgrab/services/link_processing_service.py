"""
LinkProcessingService - первая ступень обработки ссылки:
проверка, классификация и выбор сервиса платформы (без сети)
"""
import logging
from typing import Tuple

from reelgrab.errors import InvalidInput, UnsupportedPlatform
from reelgrab.models import PlatformTag, VideoReference
from reelgrab.services.base import BaseService
from reelgrab.services.service_factory import ServiceFactory
from reelgrab.utils.utils import normalize_url, is_valid_url, get_platform

logger = logging.getLogger(__name__)


class LinkProcessingService:
    """
    Сервис для обработки ссылок на видео
    Решает, какой сервис платформы обслужит ссылку
    """

    def __init__(self, factory: ServiceFactory):
        """
        Args:
            factory: Фабрика сервисов платформ
        """
        self.factory = factory

    def handle(self, url) -> Tuple[VideoReference, BaseService]:
        """
        Проверить ссылку и найти сервис платформы

        Args:
            url: URL видео от пользователя

        Returns:
            (VideoReference, сервис платформы)

        Raises:
            InvalidInput: URL пустой или некорректный
            UnsupportedPlatform: платформа не поддерживается
        """
        if not isinstance(url, str) or not url.strip():
            raise InvalidInput()

        normalized_url = normalize_url(url)
        if not is_valid_url(normalized_url):
            raise InvalidInput('Invalid URL')

        platform = get_platform(normalized_url)
        service = self.factory.get_service(platform)
        if platform is PlatformTag.UNKNOWN or service is None:
            logger.info(f"Неподдерживаемая платформа: {normalized_url}")
            raise UnsupportedPlatform()

        logger.debug(f"Ссылка {normalized_url} -> {platform.value}")
        return VideoReference(url=normalized_url, platform=platform), service
