"""
Утилиты для работы с URL и определения платформы
"""
import re
import html
import json
from typing import Optional
from urllib.parse import urlparse, quote

from reelgrab.models.platform import PlatformTag


# Порядок важен: первое совпадение выигрывает
PLATFORM_DOMAINS = (
    (PlatformTag.YOUTUBE, ('youtube.com', 'youtu.be', 'youtube-nocookie.com')),
    (PlatformTag.TIKTOK, ('tiktok.com',)),
    (PlatformTag.INSTAGRAM, ('instagram.com', 'instagr.am')),
    (PlatformTag.FACEBOOK, ('facebook.com', 'fb.com', 'fb.watch')),
)

YOUTUBE_ID_PATTERNS = (
    re.compile(r'(?:youtube(?:-nocookie)?\.com/(?:watch\?(?:.*&)?v=|embed/|v/|shorts/|live/)|youtu\.be/)([A-Za-z0-9_-]+)', re.IGNORECASE),
)


def normalize_url(url: str) -> str:
    """
    Нормализация пользовательского ввода
    youtu.be/ABC -> https://youtu.be/ABC
    '  https://x  ' -> https://x
    """
    url = url.strip()
    if url and not re.match(r'^[a-zA-Z][a-zA-Z0-9+.-]*://', url):
        url = f"https://{url.lstrip('/')}"
    return url


def _host_of(url: str) -> str:
    """Хост в нижнем регистре без порта и userinfo (пустая строка, если разобрать не удалось)"""
    try:
        parsed = urlparse(normalize_url(url))
        return (parsed.hostname or '').lower().rstrip('.')
    except ValueError:
        return ''


def get_platform(url) -> PlatformTag:
    """
    Определение платформы по URL

    Чистая и тотальная функция: никогда не бросает исключений,
    сеть не используется. Сравнение идет по хосту (точное совпадение
    или поддомен), поэтому example.com/youtube.com -> UNKNOWN.
    """
    if not isinstance(url, str) or not url.strip():
        return PlatformTag.UNKNOWN

    host = _host_of(url)
    if not host:
        return PlatformTag.UNKNOWN

    for platform, domains in PLATFORM_DOMAINS:
        for domain in domains:
            if host == domain or host.endswith('.' + domain):
                return platform
    return PlatformTag.UNKNOWN


classify = get_platform


def is_valid_url(url) -> bool:
    """Проверка, что строка - корректный http(s) URL с хостом"""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(normalize_url(url))
    except ValueError:
        return False
    if parsed.scheme.lower() not in ('http', 'https'):
        return False
    host = parsed.hostname or ''
    return '.' in host and not any(ch.isspace() for ch in url.strip())


def extract_youtube_id(url: str) -> Optional[str]:
    """
    Извлечь video ID YouTube из URL
    Поддерживаются watch?v=, youtu.be/, /embed/, /v/, /shorts/, /live/
    """
    if not url:
        return None
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def unescape_media_url(raw: str) -> str:
    """
    Раскодировать URL, вытащенный из JSON/JS разметки страницы
    \\u0026 -> &, \\/ -> /, &amp; -> &
    """
    if not raw:
        return raw
    value = raw
    if '\\' in value:
        try:
            # Строку из JSON-литерала корректнее всего раскодирует json
            value = json.loads('"' + value.replace('"', '\\"') + '"')
        except ValueError:
            value = re.sub(r'\\u([0-9a-fA-F]{4})', lambda m: chr(int(m.group(1), 16)), value)
            value = value.replace('\\/', '/')
    return html.unescape(value)


def safe_filename(title: Optional[str], max_length: int = 50) -> str:
    """
    Имя файла для заголовка Content-Disposition: только ASCII буквы, цифры,
    пробел, '_' и '-'. Пустая строка, если ничего не осталось.
    """
    if not title:
        return ''
    cleaned = re.sub(r'[^A-Za-z0-9 _-]', '', title)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    return cleaned[:max_length].strip()


def content_disposition(filename: str, title: Optional[str] = None) -> str:
    """
    Значение Content-Disposition для вложения.
    Для не-ASCII заголовков добавляется filename* (RFC 5987).
    """
    value = f'attachment; filename="{filename}"'
    if title and not title.isascii():
        utf8_name = re.sub(r'[\\/:*?"<>|\r\n]', '', title).strip()[:50]
        if utf8_name:
            value += f"; filename*=UTF-8''{quote(utf8_name + '.mp4', safe='')}"
    return value
