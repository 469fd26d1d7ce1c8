"""
Модуль для ретрансляции видео
"""
from .stream_relay import StreamRelay, UpstreamBody

__all__ = ['StreamRelay', 'UpstreamBody']
