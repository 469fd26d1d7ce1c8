"""
VideoMetadata - результат анализа видео
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any

from .platform import PlatformTag


@dataclass
class VideoMetadata:
    """
    Метаданные видео для выбора качества

    Attributes:
        platform: Платформа видео
        title: Заголовок
        thumbnail_url: URL превью
        duration_seconds: Длительность в секундах (0 - неизвестна, а не нулевая длина)
        available_qualities: Метки качества, лучшее первым (никогда не пустой)
    """
    platform: PlatformTag
    title: str
    thumbnail_url: str = ''
    duration_seconds: int = 0
    available_qualities: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Длительность не бывает отрицательной; inf и NaN считаются неизвестной"""
        try:
            self.duration_seconds = max(0, int(self.duration_seconds or 0))
        except (TypeError, ValueError, OverflowError):
            self.duration_seconds = 0

    @property
    def duration_known(self) -> bool:
        return self.duration_seconds > 0

    def to_response(self) -> Dict[str, Any]:
        """Сериализация для ответа /analyze"""
        return {
            'platform': self.platform.value,
            'title': self.title,
            'thumbnail': self.thumbnail_url,
            'duration': self.duration_seconds,
            'qualities': list(self.available_qualities),
        }
