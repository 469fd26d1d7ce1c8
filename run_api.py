"""
Скрипт для запуска HTTP API
Запускать из корневой директории проекта: python run_api.py
"""
import logging

import uvicorn

from reelgrab.config import Settings

if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(
        "reelgrab.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )
