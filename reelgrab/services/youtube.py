"""
Сервис для работы с YouTube
Содержит всю специфичную логику для YouTube видео/Shorts
Знает только YouTube, формирует MediaLocator
"""
from typing import Optional, Dict, Any

from reelgrab.config import Settings
from reelgrab.errors import InvalidInput, NoFormatFound, ReelgrabError
from reelgrab.models import PlatformTag, VideoMetadata, MediaLocator
from reelgrab.services.base import BaseService
from reelgrab.services.http_client import HttpClient
from reelgrab.services.scraping import first_successful
from reelgrab.services.ytdlp_service import YtDlpService, combined_formats, format_label, quality_labels
from reelgrab.utils.utils import extract_youtube_id

OEMBED_URL = 'https://www.youtube.com/oembed'
OEMBED_QUALITIES = ['1080p', '720p', '480p', '360p']
FALLBACK_QUALITIES = ['720p', '360p']
DEFAULT_TITLE = 'YouTube Video'


class YouTubeService(BaseService):
    """
    Сервис для работы с YouTube видео

    Знает:
    - Как получить метаданные (oEmbed -> yt-dlp -> заглушка)
    - Какие форматы отдаются одним файлом
    - Как YouTube блокирует облачные серверы

    НЕ знает:
    - HTTP API
    - Ретрансляцию байтов
    """

    PLATFORM = PlatformTag.YOUTUBE
    REFERER = 'https://www.youtube.com/'

    def __init__(self, settings: Settings, http: HttpClient, ytdlp: Optional[YtDlpService] = None):
        super().__init__(settings, http)
        self.ytdlp = ytdlp or YtDlpService(settings)

    def extract_video_id(self, url: str) -> str:
        """
        Извлечь ID видео

        Raises:
            InvalidInput: в URL нет ID видео
        """
        video_id = extract_youtube_id(url)
        if not video_id:
            raise InvalidInput('Invalid YouTube URL')
        return video_id

    @staticmethod
    def watch_url(video_id: str) -> str:
        return f"https://www.youtube.com/watch?v={video_id}"

    async def analyze(self, url: str) -> VideoMetadata:
        video_id = self.extract_video_id(url)
        self.logger.info(f"[YouTube] Анализ видео {video_id}")
        try:
            return await first_successful(
                [
                    lambda: self._analyze_oembed(video_id),
                    lambda: self._analyze_ytdlp(video_id),
                ],
                label='YouTube',
            )
        except ReelgrabError as e:
            # Анализ не должен падать: ссылка валидна, метаданные - по минимуму
            self.logger.warning(f"[YouTube] oEmbed и yt-dlp недоступны ({type(e).__name__}), возвращаю заглушку")
            return self.stub_metadata(video_id)

    async def _analyze_oembed(self, video_id: str) -> VideoMetadata:
        data = await self.http.get_json(
            OEMBED_URL,
            params={'url': self.watch_url(video_id), 'format': 'json'},
        )
        title = data.get('title') if isinstance(data, dict) else None
        return VideoMetadata(
            platform=self.PLATFORM,
            title=title or DEFAULT_TITLE,
            thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/maxresdefault.jpg",
            duration_seconds=0,
            available_qualities=list(OEMBED_QUALITIES),
        )

    async def _analyze_ytdlp(self, video_id: str) -> VideoMetadata:
        info = await self.ytdlp.get_info_async(self.watch_url(video_id))
        return VideoMetadata(
            platform=self.PLATFORM,
            title=info.get('title') or DEFAULT_TITLE,
            thumbnail_url=info.get('thumbnail') or f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            duration_seconds=info.get('duration') or 0,
            available_qualities=quality_labels(combined_formats(info)) or list(FALLBACK_QUALITIES),
        )

    def stub_metadata(self, video_id: str) -> VideoMetadata:
        return VideoMetadata(
            platform=self.PLATFORM,
            title=DEFAULT_TITLE,
            thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            duration_seconds=0,
            available_qualities=list(FALLBACK_QUALITIES),
        )

    async def resolve_media(self, url: str, desired_quality: Optional[str] = None) -> MediaLocator:
        video_id = self.extract_video_id(url)
        self.logger.info(f"[YouTube] Поиск формата для {video_id} (качество: {desired_quality or 'best'})")

        info = await self.ytdlp.get_info_async(self.watch_url(video_id))
        formats = combined_formats(info)
        if not formats:
            self.logger.warning(f"[YouTube] Нет форматов с видео и аудио для {video_id}")
            raise NoFormatFound(hint='Try a different video.', platform=self.PLATFORM.value)

        chosen = self._select_format(formats, desired_quality)
        label = format_label(chosen)
        self.logger.info(f"[YouTube] Выбран формат {chosen.get('format_id')} ({label})")

        return MediaLocator(
            direct_url=chosen['url'],
            required_headers=self._format_headers(chosen),
            title=info.get('title') or None,
            quality=label,
        )

    @staticmethod
    def _select_format(formats, desired_quality: Optional[str]) -> Dict[str, Any]:
        """Формат с нужной меткой, иначе лучший (первый)"""
        if desired_quality:
            for fmt in formats:
                if format_label(fmt).lower() == desired_quality.lower():
                    return fmt
        return formats[0]

    def _format_headers(self, fmt: Dict[str, Any]) -> Dict[str, str]:
        headers = self.media_headers(fmt.get('http_headers'))
        headers['Referer'] = self.REFERER
        return headers
