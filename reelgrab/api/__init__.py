"""
HTTP API сервиса
"""
from .app import create_app, build_use_cases

__all__ = ['create_app', 'build_use_cases']
