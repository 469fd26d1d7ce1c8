"""
StreamResult - открытый поток байтов от StreamRelay
"""
from dataclasses import dataclass
from typing import AsyncIterator, Optional


@dataclass
class StreamResult:
    """
    Результат открытия потока

    Relay владеет соединением с источником, пока итератор не будет
    дочитан, не упадет или не будет закрыт через aclose().

    Attributes:
        body: Асинхронный итератор чанков
        content_type: MIME тип ответа
        suggested_filename: Имя файла для Content-Disposition
        content_length: Размер из Content-Length источника или None
        title: Исходный заголовок видео (для filename*) или None
    """
    body: AsyncIterator[bytes]
    content_type: str
    suggested_filename: str
    content_length: Optional[int] = None
    title: Optional[str] = None

    def __aiter__(self):
        return self.body.__aiter__()

    async def aclose(self):
        """Закрыть соединение с источником, не дочитывая тело"""
        aclose = getattr(self.body, 'aclose', None)
        if aclose is not None:
            await aclose()
