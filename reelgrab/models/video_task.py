"""
VideoTask - жизненный цикл одной ссылки, как его видит клиент
pending -> analyzing -> ready | error
ready -> downloading -> completed | error
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, FrozenSet
import uuid

from reelgrab.errors import InvalidTransition
from .platform import PlatformTag
from .video_metadata import VideoMetadata


class DownloadStatus(str, Enum):
    PENDING = 'pending'
    ANALYZING = 'analyzing'
    READY = 'ready'
    DOWNLOADING = 'downloading'
    COMPLETED = 'completed'
    ERROR = 'error'


TRANSITIONS: Dict[DownloadStatus, FrozenSet[DownloadStatus]] = {
    DownloadStatus.PENDING: frozenset({DownloadStatus.ANALYZING}),
    DownloadStatus.ANALYZING: frozenset({DownloadStatus.READY, DownloadStatus.ERROR}),
    DownloadStatus.READY: frozenset({DownloadStatus.DOWNLOADING}),
    DownloadStatus.DOWNLOADING: frozenset({DownloadStatus.COMPLETED, DownloadStatus.ERROR}),
    DownloadStatus.COMPLETED: frozenset(),
    DownloadStatus.ERROR: frozenset(),
}


@dataclass
class VideoTask:
    """
    Задача на скачивание одной ссылки

    Attributes:
        url: URL, введенный пользователем
        platform: Платформа по классификатору
        id: Уникальный ID задачи
        status: Текущее состояние
        metadata: Метаданные после анализа или None
        selected_quality: Выбранное качество (по умолчанию 720p)
        bytes_transferred: Сколько байт уже получено
        total_bytes: Размер файла, если источник его сообщил
        error: Текст ошибки (если status == ERROR)
        history: Пройденные состояния
    """
    url: str
    platform: PlatformTag
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: DownloadStatus = DownloadStatus.PENDING
    metadata: Optional[VideoMetadata] = None
    selected_quality: str = '720p'
    bytes_transferred: int = 0
    total_bytes: Optional[int] = None
    error: Optional[str] = None
    history: List[DownloadStatus] = field(default_factory=list)

    def __post_init__(self):
        if not self.history:
            self.history.append(self.status)

    def transition(self, new_status: DownloadStatus):
        """Перевести задачу в новое состояние или бросить InvalidTransition"""
        if new_status not in TRANSITIONS[self.status]:
            raise InvalidTransition(f"Cannot move from {self.status.value} to {new_status.value}")
        self.status = new_status
        self.history.append(new_status)

    def start_analysis(self):
        self.transition(DownloadStatus.ANALYZING)

    def mark_ready(self, metadata: VideoMetadata):
        self.transition(DownloadStatus.READY)
        self.metadata = metadata
        if metadata.available_qualities and self.selected_quality not in metadata.available_qualities:
            self.selected_quality = metadata.available_qualities[0]

    def start_download(self, total_bytes: Optional[int] = None):
        self.transition(DownloadStatus.DOWNLOADING)
        self.bytes_transferred = 0
        self.total_bytes = total_bytes

    def add_progress(self, delta: int):
        """Учесть очередной полученный чанк"""
        self.bytes_transferred += delta

    def mark_completed(self):
        self.transition(DownloadStatus.COMPLETED)

    def fail(self, message: str):
        self.transition(DownloadStatus.ERROR)
        self.error = message

    @property
    def progress(self) -> int:
        """Прогресс в процентах (0, если размер неизвестен)"""
        if self.status == DownloadStatus.COMPLETED:
            return 100
        if not self.total_bytes:
            return 0
        return min(100, int(self.bytes_transferred * 100 / self.total_bytes))

    def is_finished(self) -> bool:
        return self.status in (DownloadStatus.COMPLETED, DownloadStatus.ERROR)
