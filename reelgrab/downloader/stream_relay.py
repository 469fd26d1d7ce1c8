"""
StreamRelay - ретрансляция медиафайла от источника клиенту
Байты идут чанками по мере получения, файл целиком в памяти не хранится
"""
import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from reelgrab.config import Settings
from reelgrab.errors import UpstreamFetchFailed, StreamInterrupted
from reelgrab.models import MediaLocator, StreamResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class UpstreamBody:
    """
    Асинхронный итератор по телу ответа источника

    Владеет сессией и ответом aiohttp. Закрывается сам при окончании,
    ошибке или через aclose(); закрытие обрывает соединение, а не дочитывает его.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        response: aiohttp.ClientResponse,
        chunk_size: int,
        progress: Optional[ProgressCallback] = None
    ):
        self.session = session
        self.response = response
        self.chunk_size = chunk_size
        self.progress = progress
        self.expected = response.content_length
        self.transferred = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise StopAsyncIteration

        try:
            chunk = await self.response.content.read(self.chunk_size)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                f"[Relay] Обрыв после {self.transferred} байт: {type(e).__name__}: {e}"
            )
            await self.aclose()
            raise StreamInterrupted(transferred=self.transferred, expected=self.expected) from e

        if not chunk:
            await self.aclose()
            if self.expected is not None and self.transferred < self.expected:
                logger.warning(f"[Relay] Получено {self.transferred} из {self.expected} байт")
                raise StreamInterrupted(transferred=self.transferred, expected=self.expected)
            logger.info(f"[Relay] Передано {self.transferred} байт")
            raise StopAsyncIteration

        self.transferred += len(chunk)
        if self.progress:
            self.progress(len(chunk))
        return chunk

    async def aclose(self):
        """Оборвать соединение с источником (повторный вызов ничего не делает)"""
        if self.closed:
            return
        self.closed = True
        self.response.close()
        await self.session.close()


class StreamRelay:
    """
    Ретранслятор медиафайлов

    Ответственность:
    - Один GET к direct_url с заголовками из MediaLocator
    - Проверка статуса до отправки первого байта
    - Конечные таймауты на подключение и чтение

    НЕ делает:
    - Не ищет ссылки (это делают сервисы платформ)
    - Не повторяет запросы
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=None,
            connect=self.settings.stream_connect_timeout,
            sock_connect=self.settings.stream_connect_timeout,
            sock_read=self.settings.stream_read_timeout,
        )

    async def open(
        self,
        locator: MediaLocator,
        filename: str,
        title: Optional[str] = None,
        progress: Optional[ProgressCallback] = None
    ) -> StreamResult:
        """
        Открыть поток медиафайла

        Args:
            locator: Прямая ссылка и нужные заголовки
            filename: Имя файла для клиента
            title: Исходный заголовок (для filename* в Content-Disposition)
            progress: Вызывается с размером каждого переданного чанка

        Returns:
            StreamResult; тело читается лениво

        Raises:
            UpstreamFetchFailed: источник ответил не 2xx или недоступен
        """
        headers = {'User-Agent': self.settings.user_agent}
        headers.update(locator.required_headers)

        # Без распаковки: байты и Content-Length должны совпадать с источником
        session = aiohttp.ClientSession(timeout=self._timeout(), auto_decompress=False)
        try:
            response = await session.get(locator.direct_url, headers=headers, allow_redirects=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            logger.warning(f"[Relay] Не удалось подключиться к источнику: {type(e).__name__}: {e}")
            raise UpstreamFetchFailed() from e

        if not 200 <= response.status < 300:
            logger.warning(f"[Relay] Источник ответил {response.status}")
            response.close()
            await session.close()
            raise UpstreamFetchFailed(status=response.status)

        body = UpstreamBody(session, response, self.settings.stream_chunk_size, progress)
        logger.info(f"[Relay] Поток открыт: {filename} ({body.expected if body.expected is not None else '?'} байт)")
        return StreamResult(
            body=body,
            content_type='video/mp4',
            suggested_filename=filename,
            content_length=body.expected,
            title=title,
        )
