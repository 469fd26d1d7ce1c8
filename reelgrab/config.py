"""
Настройки сервиса

Settings собирается один раз в точке входа и передается в конструкторы явно,
поэтому ядро тестируется без изменения переменных окружения.
"""
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from reelgrab.errors import ConfigurationError
from reelgrab.models.platform import PlatformTag

logger = logging.getLogger(__name__)

STRATEGY_API = 'api'
STRATEGY_SCRAPE = 'scrape'
KNOWN_STRATEGIES = (STRATEGY_API, STRATEGY_SCRAPE)

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)


def parse_strategies(value: Optional[str], default: Tuple[str, ...] = (STRATEGY_API,)) -> Tuple[str, ...]:
    """
    Разобрать список стратегий вида "api,scrape"

    Raises:
        ConfigurationError: если указана неизвестная стратегия
    """
    if not value or not value.strip():
        return default
    strategies = tuple(s.strip().lower() for s in value.split(',') if s.strip())
    unknown = [s for s in strategies if s not in KNOWN_STRATEGIES]
    if unknown:
        raise ConfigurationError(f"Unknown extraction strategy: {', '.join(unknown)}")
    return strategies or default


@dataclass
class Settings:
    """
    Настройки сервиса

    Attributes:
        rapidapi_key: Ключ aggregation API (нужен только стратегии 'api')
        rapidapi_host: Хост aggregation API
        strategies: Порядок стратегий для TikTok / Instagram / Facebook
        default_quality: Качество, если клиент его не указал
        http_timeout: Общий таймаут запросов метаданных (oEmbed, API, страницы), сек
        stream_connect_timeout: Таймаут подключения к медиафайлу, сек
        stream_read_timeout: Таймаут чтения одного чанка медиафайла, сек
        stream_chunk_size: Размер чанка при ретрансляции, байт
        user_agent: User-Agent браузера для страниц и CDN
        api_host: Адрес, на котором слушает HTTP API
        api_port: Порт HTTP API
        log_level: Уровень логирования
    """
    rapidapi_key: Optional[str] = None
    rapidapi_host: str = 'social-media-video-downloader.p.rapidapi.com'
    strategies: Dict[PlatformTag, Tuple[str, ...]] = field(default_factory=lambda: {
        PlatformTag.TIKTOK: (STRATEGY_API,),
        PlatformTag.INSTAGRAM: (STRATEGY_API,),
        PlatformTag.FACEBOOK: (STRATEGY_API,),
    })
    default_quality: str = '720p'
    http_timeout: float = 15.0
    stream_connect_timeout: float = 15.0
    stream_read_timeout: float = 30.0
    stream_chunk_size: int = 64 * 1024
    user_agent: str = DEFAULT_USER_AGENT
    api_host: str = '0.0.0.0'
    api_port: int = 8000
    log_level: str = 'INFO'

    def strategies_for(self, platform: PlatformTag) -> Tuple[str, ...]:
        """Стратегии для платформы (для неизвестной - только api)"""
        return self.strategies.get(platform, (STRATEGY_API,))

    def require_rapidapi_key(self) -> str:
        """
        Получить ключ aggregation API

        Отсутствие ключа - ошибка конфигурации, но только когда стратегия
        'api' реально используется, а не при старте.
        """
        if not self.rapidapi_key:
            raise ConfigurationError('RAPIDAPI_KEY is not configured')
        return self.rapidapi_key

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Settings':
        """
        Собрать настройки из переменных окружения (и .env файла)

        Args:
            env_file: Путь к .env файлу (по умолчанию ищется автоматически)
        """
        load_dotenv(env_file)

        defaults = cls()
        strategies = {
            PlatformTag.TIKTOK: parse_strategies(os.getenv('TIKTOK_STRATEGIES')),
            PlatformTag.INSTAGRAM: parse_strategies(os.getenv('INSTAGRAM_STRATEGIES')),
            PlatformTag.FACEBOOK: parse_strategies(os.getenv('FACEBOOK_STRATEGIES')),
        }

        settings = cls(
            rapidapi_key=os.getenv('RAPIDAPI_KEY') or None,
            rapidapi_host=os.getenv('RAPIDAPI_HOST', defaults.rapidapi_host),
            strategies=strategies,
            default_quality=os.getenv('DEFAULT_QUALITY', defaults.default_quality),
            http_timeout=_float_env('HTTP_TIMEOUT', defaults.http_timeout),
            stream_connect_timeout=_float_env('STREAM_CONNECT_TIMEOUT', defaults.stream_connect_timeout),
            stream_read_timeout=_float_env('STREAM_READ_TIMEOUT', defaults.stream_read_timeout),
            stream_chunk_size=int(_float_env('STREAM_CHUNK_SIZE', defaults.stream_chunk_size)),
            user_agent=os.getenv('USER_AGENT', defaults.user_agent),
            api_host=os.getenv('API_HOST', defaults.api_host),
            api_port=int(_float_env('API_PORT', defaults.api_port)),
            log_level=os.getenv('LOG_LEVEL', defaults.log_level).upper(),
        )

        if not settings.rapidapi_key:
            uses_api = any(STRATEGY_API in s for s in strategies.values())
            if uses_api:
                logger.warning("RAPIDAPI_KEY не задан: стратегия 'api' будет возвращать ошибку конфигурации")
        return settings


def _float_env(name: str, default: float) -> float:
    """Прочитать число из окружения, при ошибке - значение по умолчанию"""
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning(f"Некорректное значение {name}={value!r}, использую {default}")
        return default
    if parsed <= 0:
        logger.warning(f"{name} должен быть положительным, использую {default}")
        return default
    return parsed
