"""
PlatformTag и VideoReference - результат классификации ссылки
"""
from dataclasses import dataclass
from enum import Enum


class PlatformTag(str, Enum):
    """Поддерживаемые платформы (UNKNOWN отклоняется дальше по цепочке)"""
    YOUTUBE = 'youtube'
    TIKTOK = 'tiktok'
    INSTAGRAM = 'instagram'
    FACEBOOK = 'facebook'
    UNKNOWN = 'unknown'

    @property
    def display_name(self) -> str:
        return {
            PlatformTag.YOUTUBE: 'YouTube',
            PlatformTag.TIKTOK: 'TikTok',
            PlatformTag.INSTAGRAM: 'Instagram',
            PlatformTag.FACEBOOK: 'Facebook',
        }.get(self, 'Unknown')


@dataclass(frozen=True)
class VideoReference:
    """
    Ссылка на видео после классификации

    Attributes:
        url: Нормализованный URL, введенный пользователем
        platform: Платформа, определенная по URL
    """
    url: str
    platform: PlatformTag
