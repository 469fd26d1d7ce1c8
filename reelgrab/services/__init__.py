"""
Сервисы для работы с различными платформами (YouTube, TikTok, Instagram, Facebook)
"""
from .base import BaseService
from .http_client import HttpClient, PageResponse
from .aggregator import AggregatorClient
from .social import SocialMediaService
from .youtube import YouTubeService
from .tiktok import TikTokService
from .instagram import InstagramService
from .facebook import FacebookService
from .link_processing_service import LinkProcessingService
from .service_factory import ServiceFactory
from .ytdlp_service import YtDlpService

__all__ = [
    'BaseService',
    'HttpClient',
    'PageResponse',
    'AggregatorClient',
    'SocialMediaService',
    'YouTubeService',
    'TikTokService',
    'InstagramService',
    'FacebookService',
    'LinkProcessingService',
    'ServiceFactory',
    'YtDlpService',
]
