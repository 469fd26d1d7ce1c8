"""
Иерархия ошибок сервиса

Каждая ошибка знает свой HTTP статус и подсказку для пользователя.
Сервисы платформ переводят ошибки aiohttp / yt-dlp в эти классы,
поэтому наружу не утекает сырой текст ответа источника.
"""
from typing import Optional


class ReelgrabError(Exception):
    """Базовая ошибка, ограниченная одним запросом"""

    status_code = 500
    default_message = 'Request failed'

    def __init__(self, message: Optional[str] = None, hint: Optional[str] = None):
        self.message = message or self.default_message
        self.hint = hint
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Сообщение для клиента: текст ошибки и подсказка"""
        if self.hint:
            return f"{self.message}. {self.hint}"
        return self.message

    def to_response(self) -> dict:
        return {'message': self.user_message}


class InvalidInput(ReelgrabError):
    """Пустой или некорректный URL"""
    status_code = 400
    default_message = 'URL is required'


class UnsupportedPlatform(ReelgrabError):
    """URL не относится ни к одной поддерживаемой платформе"""
    status_code = 400
    default_message = 'Unsupported platform. Use YouTube, TikTok, Instagram, or Facebook.'


class ExtractionFailed(ReelgrabError):
    """Не удалось получить прямую ссылку (приватное видео, логин, регион, изменилась разметка)"""
    default_message = 'Could not extract the video'

    def __init__(self, message: Optional[str] = None, hint: Optional[str] = None, platform: Optional[str] = None):
        super().__init__(message, hint)
        self.platform = platform


class NoFormatFound(ExtractionFailed):
    """yt-dlp не вернул ни одного формата с видео и аудио"""
    default_message = 'No suitable format found'


class NoLinkFound(ExtractionFailed):
    """Aggregation API не вернул ни одной ссылки"""
    default_message = 'No video link found'


class UpstreamUnavailable(ReelgrabError):
    """Страница или API источника ответили ошибкой или не ответили вовремя"""
    default_message = 'Upstream service is unavailable'

    def __init__(self, message: Optional[str] = None, hint: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, hint)
        self.status = status


class UpstreamFetchFailed(UpstreamUnavailable):
    """Запрос медиафайла вернул неуспешный статус (до отправки первого байта)"""
    default_message = 'Failed to download video stream'


class PlatformBlocked(ReelgrabError):
    """YouTube заблокировал запросы с этого сервера"""
    default_message = 'YouTube download is currently unavailable on this server'
    default_hint = (
        'YouTube blocks requests from cloud servers. '
        'Please try TikTok, Instagram, or Facebook videos instead.'
    )

    def __init__(self, message: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(message, hint or self.default_hint)


class StreamInterrupted(ReelgrabError):
    """Источник оборвал передачу посреди файла"""
    default_message = 'Video stream was interrupted'

    def __init__(self, message: Optional[str] = None, transferred: int = 0, expected: Optional[int] = None):
        super().__init__(message)
        self.transferred = transferred
        self.expected = expected


class ConfigurationError(ReelgrabError):
    """Не хватает настроек для выбранной стратегии (например, RAPIDAPI_KEY)"""
    default_message = 'Server is not configured for this request'


class InvalidTransition(ReelgrabError):
    """Недопустимый переход состояния задачи"""
    status_code = 409
    default_message = 'Invalid status transition'
