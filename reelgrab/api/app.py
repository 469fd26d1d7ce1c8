"""
HTTP API сервиса: POST /analyze, POST /download, GET /health
Отдельный слой, который только переводит запросы в use cases и ошибки в JSON
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from reelgrab.config import Settings
from reelgrab.downloader.stream_relay import StreamRelay
from reelgrab.errors import ReelgrabError, StreamInterrupted
from reelgrab.models import StreamResult
from reelgrab.services.link_processing_service import LinkProcessingService
from reelgrab.services.service_factory import ServiceFactory
from reelgrab.use_cases import AnalyzeVideoUseCase, DownloadVideoUseCase
from reelgrab.utils.utils import content_disposition

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


class DownloadRequest(BaseModel):
    url: Optional[str] = None
    quality: Optional[str] = None


def build_use_cases(settings: Settings):
    """Собрать граф объектов: фабрика сервисов -> диспетчер -> use cases"""
    link_processor = LinkProcessingService(ServiceFactory(settings))
    analyze = AnalyzeVideoUseCase(link_processor)
    download = DownloadVideoUseCase(link_processor, StreamRelay(settings), settings.default_quality)
    return analyze, download


async def _relay_body(result: StreamResult, filename: str):
    """Отдать тело клиенту; при отключении клиента соединение с источником обрывается"""
    try:
        async for chunk in result:
            yield chunk
    except StreamInterrupted as e:
        logger.error(f"[API] Поток {filename} оборван: передано {e.transferred} из {e.expected or '?'} байт")
        raise
    finally:
        await result.aclose()


def create_app(
    settings: Optional[Settings] = None,
    analyze_use_case: Optional[AnalyzeVideoUseCase] = None,
    download_use_case: Optional[DownloadVideoUseCase] = None
) -> FastAPI:
    """
    Создать приложение FastAPI

    Args:
        settings: Настройки (по умолчанию из окружения)
        analyze_use_case: Готовый use case анализа (для тестов)
        download_use_case: Готовый use case скачивания (для тестов)
    """
    if settings is None:
        settings = Settings.from_env()
    if analyze_use_case is None or download_use_case is None:
        default_analyze, default_download = build_use_cases(settings)
        analyze_use_case = analyze_use_case or default_analyze
        download_use_case = download_use_case or default_download

    app = FastAPI(title="Reelgrab Video Downloader", version="0.1.0")
    app.state.settings = settings

    @app.exception_handler(ReelgrabError)
    async def reelgrab_error_handler(request: Request, exc: ReelgrabError):
        logger.warning(f"[API] {request.url.path}: {type(exc).__name__}: {exc.user_message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"[API] {request.url.path}: некорректное тело запроса")
        return JSONResponse(status_code=400, content={'message': 'Invalid request body'})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/analyze")
    async def analyze(body: AnalyzeRequest):
        """
        Метаданные видео:
        {platform, title, thumbnail, duration, qualities}
        """
        try:
            metadata = await analyze_use_case.execute(body.url)
        except ReelgrabError:
            raise
        except Exception as e:
            logger.error(f"[API] Непредвиденная ошибка анализа {body.url}: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={'message': 'Analysis failed'})
        return metadata.to_response()

    @app.post("/download")
    async def download(body: DownloadRequest):
        """
        Поток видео (video/mp4) с Content-Disposition: attachment
        """
        try:
            result = await download_use_case.execute(body.url, body.quality)
        except ReelgrabError:
            raise
        except Exception as e:
            logger.error(f"[API] Непредвиденная ошибка скачивания {body.url}: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={'message': 'Download failed'})

        headers = {
            'Content-Disposition': content_disposition(result.suggested_filename, result.title),
        }
        if result.content_length is not None:
            headers['Content-Length'] = str(result.content_length)

        return StreamingResponse(
            _relay_body(result, result.suggested_filename),
            media_type=result.content_type,
            headers=headers,
            background=BackgroundTask(result.aclose),
        )

    return app
