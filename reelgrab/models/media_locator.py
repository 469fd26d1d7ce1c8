"""
MediaLocator - короткоживущий прямой URL на байты видео
"""
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class MediaLocator:
    """
    Указатель на поток видео

    Создается заново на каждый запрос и нигде не кэшируется:
    ссылки платформ одноразовые и быстро истекают.

    Attributes:
        direct_url: Прямой URL медиафайла
        required_headers: Заголовки, без которых CDN отвечает 403 (User-Agent, Referer, Cookie)
        title: Заголовок видео (только для имени файла) или None
        quality: Фактически выбранное качество или None
    """
    direct_url: str
    required_headers: Dict[str, str] = field(default_factory=dict)
    title: Optional[str] = None
    quality: Optional[str] = None
