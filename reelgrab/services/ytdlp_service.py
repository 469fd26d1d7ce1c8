"""
YtDlpService - низкоуровневый сервис для работы с yt-dlp
Получает информацию о видео и список форматов, ничего не скачивает
"""
import asyncio
import logging
import re
from typing import Optional, Dict, Any, List

import yt_dlp
from yt_dlp.utils import DownloadError, ExtractorError

from reelgrab.config import Settings
from reelgrab.errors import ExtractionFailed, PlatformBlocked

logger = logging.getLogger(__name__)

# Признаки антибот-блокировки YouTube в тексте ошибки yt-dlp
BLOCK_MARKERS = (
    'not a bot',
    'sign in to confirm',
    'http error 429',
    'http error 403',
    'too many requests',
)

UNAVAILABLE_HINT = 'The video may be private, age-restricted, or unavailable.'


def classify_error(message: str) -> Exception:
    """
    Перевести текст ошибки yt-dlp в ошибку сервиса

    Returns:
        PlatformBlocked для антибот-блокировки, иначе ExtractionFailed
    """
    lowered = (message or '').lower()
    if any(marker in lowered for marker in BLOCK_MARKERS):
        return PlatformBlocked()
    return ExtractionFailed('Failed to get video info', hint=UNAVAILABLE_HINT, platform='youtube')


def format_label(fmt: Dict[str, Any]) -> str:
    """Метка качества формата: '720p' по высоте, иначе format_note / format_id"""
    height = fmt.get('height')
    if height:
        return f"{int(height)}p"
    return str(fmt.get('format_note') or fmt.get('format_id') or 'best')


def _label_height(label: str) -> Optional[int]:
    match = re.fullmatch(r'(\d+)p?', label)
    return int(match.group(1)) if match else None


def combined_formats(info: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Форматы с видео и аудио в одном файле и прямой http(s) ссылкой,
    от лучшего к худшему
    """
    result = []
    for fmt in info.get('formats') or []:
        if fmt.get('vcodec') in (None, 'none') or fmt.get('acodec') in (None, 'none'):
            continue
        url = fmt.get('url') or ''
        if not url.startswith(('http://', 'https://')):
            continue
        if fmt.get('protocol') and not str(fmt['protocol']).startswith('http'):
            # m3u8 / dash манифесты не отдаются одним файлом
            continue
        result.append(fmt)
    result.sort(key=lambda f: (f.get('height') or 0, f.get('tbr') or 0), reverse=True)
    return result


def quality_labels(formats: List[Dict[str, Any]]) -> List[str]:
    """
    Уникальные метки качества: числовые по убыванию, остальные в конце
    в исходном порядке
    """
    labels = []
    for fmt in formats:
        label = format_label(fmt)
        if label not in labels:
            labels.append(label)
    numeric = sorted((l for l in labels if _label_height(l) is not None), key=_label_height, reverse=True)
    other = [l for l in labels if _label_height(l) is None]
    return numeric + other


class YtDlpService:
    """
    Низкоуровневый сервис для работы с yt-dlp

    Ответственность:
    - Получение информации о видео через yt-dlp (без скачивания)
    - Перевод ошибок yt-dlp в ошибки сервиса

    НЕ знает о платформах, HTTP API, ретрансляции.
    """

    def __init__(self, settings: Settings):
        """
        Args:
            settings: Настройки (таймаут и User-Agent)
        """
        self.settings = settings

    def _ydl_opts(self) -> Dict[str, Any]:
        return {
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'extract_flat': False,
            'skip_download': True,
            'socket_timeout': self.settings.http_timeout,
            'http_headers': {'User-Agent': self.settings.user_agent},
        }

    def get_info(self, url: str, ydl_opts: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Получить информацию о видео через yt-dlp (блокирующий вызов)

        Args:
            url: URL видео
            ydl_opts: Опции для yt-dlp (опционально)

        Returns:
            Словарь с информацией о видео

        Raises:
            PlatformBlocked: YouTube требует подтвердить, что мы не бот
            ExtractionFailed: видео недоступно или yt-dlp ничего не вернул
        """
        opts = self._ydl_opts()
        if ydl_opts:
            opts.update(ydl_opts)

        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except (DownloadError, ExtractorError) as e:
            logger.warning(f"[yt-dlp] Ошибка при получении информации о видео {url}: {e}")
            raise classify_error(str(e)) from e

        if not info:
            raise ExtractionFailed('Failed to get video info', hint=UNAVAILABLE_HINT, platform='youtube')
        return info

    async def get_info_async(self, url: str, ydl_opts: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """get_info в отдельном потоке, чтобы не блокировать event loop"""
        return await asyncio.to_thread(self.get_info, url, ydl_opts)
