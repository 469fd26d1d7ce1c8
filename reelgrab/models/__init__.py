"""
Модели данных для анализа и скачивания видео
"""
from .platform import PlatformTag, VideoReference
from .video_metadata import VideoMetadata
from .media_locator import MediaLocator
from .stream_result import StreamResult
from .video_task import VideoTask, DownloadStatus

__all__ = ['PlatformTag', 'VideoReference', 'VideoMetadata', 'MediaLocator', 'StreamResult', 'VideoTask', 'DownloadStatus']
