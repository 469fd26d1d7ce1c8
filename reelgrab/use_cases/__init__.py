"""
Use cases: анализ и скачивание видео
"""
from reelgrab.use_cases.analyze_video import AnalyzeVideoUseCase
from reelgrab.use_cases.download_video import DownloadVideoUseCase, build_filename

__all__ = [
    'AnalyzeVideoUseCase',
    'DownloadVideoUseCase',
    'build_filename',
]
