"""
reelgrab - анализ и скачивание видео с YouTube, TikTok, Instagram и Facebook
"""
__version__ = '0.1.0'
