"""
Утилиты для работы с URL и определения платформы
"""
from .utils import (
    normalize_url,
    get_platform,
    classify,
    is_valid_url,
    extract_youtube_id,
    unescape_media_url,
    safe_filename,
    content_disposition
)

__all__ = [
    'normalize_url',
    'get_platform',
    'classify',
    'is_valid_url',
    'extract_youtube_id',
    'unescape_media_url',
    'safe_filename',
    'content_disposition'
]
