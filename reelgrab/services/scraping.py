"""
Помощники для цепочек fallback и разбора разметки страниц платформ
"""
import re
import json
import math
import html
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from reelgrab.errors import ReelgrabError, ExtractionFailed
from reelgrab.utils.utils import unescape_media_url

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ScrapedVideo:
    """
    Данные, найденные на странице платформы

    Attributes:
        media_url: Прямая ссылка на лучший вариант
        title: Заголовок или ''
        thumbnail_url: Превью или ''
        duration_seconds: Длительность (0 - неизвестна)
        variants: Метка качества -> URL, лучшее первым
        pattern: Какой шаблон сработал (для логов)
    """
    media_url: str
    title: str = ''
    thumbnail_url: str = ''
    duration_seconds: int = 0
    variants: Dict[str, str] = field(default_factory=dict)
    pattern: str = ''

    def pick(self, desired_quality: Optional[str]) -> tuple:
        """Вариант с нужной меткой или лучший: (метка, url)"""
        if desired_quality:
            for label, url in self.variants.items():
                if label.lower() == desired_quality.lower():
                    return label, url
        if self.variants:
            label, url = next(iter(self.variants.items()))
            return label, url
        return None, self.media_url


async def first_successful(
    attempts: Sequence[Callable[[], Awaitable[T]]],
    label: str = ''
) -> T:
    """
    Выполнить попытки по порядку до первой успешной

    Попытки вызываются лениво: следующая запускается только если
    предыдущая бросила ReelgrabError. Если упали все, бросается
    ошибка последней попытки.
    """
    if not attempts:
        raise ExtractionFailed('No extraction strategy configured')

    last_error: Optional[ReelgrabError] = None
    for index, attempt in enumerate(attempts, 1):
        try:
            return await attempt()
        except ReelgrabError as e:
            logger.info(f"[{label}] Попытка {index}/{len(attempts)} не удалась: {type(e).__name__}: {e.message}")
            last_error = e
    raise last_error


def first_match(patterns: Iterable[Callable[[str], Optional[T]]], page: str) -> Optional[T]:
    """Первый шаблон, вернувший непустой результат"""
    for pattern in patterns:
        try:
            result = pattern(page)
        except (ValueError, KeyError, TypeError, IndexError, AttributeError, OverflowError) as e:
            logger.debug(f"Шаблон {getattr(pattern, '__name__', pattern)} упал: {e}")
            continue
        if result:
            return result
    return None


META_TAG_RE = re.compile(r'<meta\b[^>]*>', re.IGNORECASE)
ATTRIBUTE_RE = re.compile(r'([\w:-]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')


def find_meta(page: str, name: str) -> str:
    """
    Значение <meta property|name="..." content="..."> (порядок атрибутов любой)
    """
    name = name.lower()
    for tag in META_TAG_RE.findall(page):
        attrs = {}
        for key, double_quoted, single_quoted in ATTRIBUTE_RE.findall(tag):
            attrs[key.lower()] = double_quoted or single_quoted
        key = (attrs.get('property') or attrs.get('name') or '').lower()
        content = attrs.get('content', '').strip()
        if key == name and content:
            return html.unescape(content)
    return ''


def find_json_script(page: str, script_id: str) -> Optional[Any]:
    """Разобрать JSON из <script id="..."> (None, если блока нет или он битый)"""
    match = re.search(
        r'<script[^>]+id=["\']' + re.escape(script_id) + r'["\'][^>]*>(.*?)</script>',
        page,
        re.DOTALL | re.IGNORECASE,
    )
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        logger.debug(f"Блок {script_id} найден, но это не JSON")
        return None


def find_escaped_string(page: str, key: str) -> str:
    """
    Значение строкового поля "key":"..." из встроенного JSON/JS, раскодированное
    """
    match = re.search(r'"' + re.escape(key) + r'"\s*:\s*"((?:[^"\\]|\\.)+)"', page)
    if not match:
        return ''
    return unescape_media_url(match.group(1))


def find_number(page: str, key: str) -> int:
    """Числовое поле "key": 12.5 -> 12 (0, если нет)"""
    match = re.search(r'"' + re.escape(key) + r'"\s*:\s*(\d+(?:\.\d+)?)', page)
    if not match:
        return 0
    return parse_duration(match.group(1))


def parse_duration(value) -> int:
    """
    Длительность в секундах из числа, строки '12.3' или '01:02'
    Бесконечность, NaN и мусор дают 0 (неизвестна)
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        number = value
    else:
        text = str(value).strip()
        if ':' in text:
            seconds = 0
            for part in text.split(':'):
                if not part.isdigit():
                    return 0
                seconds = seconds * 60 + int(part)
            return seconds
        try:
            number = float(text)
        except ValueError:
            return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


def dig(data: Any, *path) -> Any:
    """Безопасный спуск по вложенным dict/list: dig(d, 'a', 0, 'b')"""
    current = data
    for key in path:
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and isinstance(key, int) and -len(current) <= key < len(current):
            current = current[key]
        else:
            return None
        if current is None:
            return None
    return current


def looks_like_login_wall(page: str) -> bool:
    """Страница требует входа (Instagram / Facebook отдают форму логина)"""
    lowered = page.lower()
    markers = ('"require_login":true', 'loginform', 'id="login_form"', '/accounts/login/', 'log in to continue', 'you must log in')
    return any(marker in lowered for marker in markers)


def dedupe(labels: Iterable[str]) -> List[str]:
    """Убрать повторы, сохранив порядок"""
    seen = set()
    result = []
    for label in labels:
        if label and label not in seen:
            seen.add(label)
            result.append(label)
    return result
