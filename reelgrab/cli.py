"""
Консольный клиент: анализ и скачивание видео по ссылкам
Запуск: reelgrab [--quality Q] [--output-dir DIR] [--analyze-only] URL...
"""
import os
import sys
import asyncio
import logging
import argparse
from typing import List, Optional

from reelgrab.api.app import build_use_cases
from reelgrab.config import Settings
from reelgrab.errors import ReelgrabError
from reelgrab.models import VideoTask, DownloadStatus
from reelgrab.use_cases import AnalyzeVideoUseCase, DownloadVideoUseCase
from reelgrab.utils.utils import get_platform, normalize_url

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='reelgrab',
        description='Download videos from YouTube, TikTok, Instagram and Facebook',
    )
    parser.add_argument('urls', nargs='+', metavar='URL', help='video links')
    parser.add_argument('-q', '--quality', help='preferred quality (e.g. 720p, HD); default from DEFAULT_QUALITY')
    parser.add_argument('-o', '--output-dir', default='.', help='directory for downloaded files')
    parser.add_argument('--analyze-only', action='store_true', help='only print metadata, do not download')
    parser.add_argument('--env-file', help='path to .env file')
    return parser.parse_args(argv)


def reserve_path(directory: str, filename: str):
    """
    Занять свободное имя файла: name.mp4 -> name (1).mp4

    Имя считается занятым, если существует сам файл или его .part.
    .part создается с O_EXCL, поэтому два скачивания с одинаковым
    именем никогда не пишут в один файл.

    Returns:
        (path, part_path, fd) - итоговый путь, путь .part и его дескриптор
    """
    path = os.path.join(directory, filename)
    base, ext = os.path.splitext(path)
    counter = 0
    while True:
        if counter:
            path = f"{base} ({counter}){ext}"
        counter += 1
        part_path = path + '.part'
        if os.path.exists(path) or os.path.exists(part_path):
            continue
        try:
            fd = os.open(part_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            continue
        return path, part_path, fd


class ProgressReporter:
    """Пишет в лог прогресс задачи шагами по 10%"""

    def __init__(self, task: VideoTask):
        self.task = task
        self.last_reported = 0

    def __call__(self, delta: int):
        self.task.add_progress(delta)
        percent = self.task.progress
        if percent >= self.last_reported + 10:
            self.last_reported = percent - percent % 10
            logger.info(f"[{self.task.platform.display_name}] {self.task.id[:8]}: {percent}%")


async def process_task(
    task: VideoTask,
    analyze_use_case: AnalyzeVideoUseCase,
    download_use_case: DownloadVideoUseCase,
    output_dir: str,
    analyze_only: bool = False
) -> VideoTask:
    """
    Провести задачу по состояниям:
    pending -> analyzing -> ready -> downloading -> completed (или error)
    """
    task.start_analysis()
    try:
        metadata = await analyze_use_case.execute(task.url)
    except ReelgrabError as e:
        task.fail(e.user_message)
        return task
    except Exception as e:
        logger.error(f"Непредвиденная ошибка анализа {task.url}: {e}", exc_info=True)
        task.fail('Analysis failed')
        return task

    task.mark_ready(metadata)
    print(
        f"{task.url}\n"
        f"  platform: {metadata.platform.display_name}\n"
        f"  title: {metadata.title}\n"
        f"  duration: {metadata.duration_seconds if metadata.duration_known else 'unknown'}\n"
        f"  qualities: {', '.join(metadata.available_qualities)}"
    )
    if analyze_only:
        return task

    task.start_download()
    path = None
    try:
        result = await download_use_case.execute(task.url, task.selected_quality, progress=ProgressReporter(task))
        task.total_bytes = result.content_length
        try:
            path, part_path, fd = reserve_path(output_dir, result.suggested_filename)
            try:
                with os.fdopen(fd, 'wb') as f:
                    async for chunk in result:
                        f.write(chunk)
            except BaseException:
                if os.path.exists(part_path):
                    os.remove(part_path)
                raise
        finally:
            await result.aclose()
        os.replace(part_path, path)
    except ReelgrabError as e:
        task.fail(e.user_message)
        return task
    except Exception as e:
        logger.error(f"Непредвиденная ошибка скачивания {task.url}: {e}", exc_info=True)
        task.fail('Download failed')
        return task

    task.mark_completed()
    print(f"  saved: {path} ({task.bytes_transferred} bytes)")
    return task


async def run(args: argparse.Namespace, settings: Settings) -> List[VideoTask]:
    analyze_use_case, download_use_case = build_use_cases(settings)
    os.makedirs(args.output_dir, exist_ok=True)

    tasks = [
        VideoTask(
            url=normalize_url(url),
            platform=get_platform(url),
            selected_quality=args.quality or settings.default_quality,
        )
        for url in args.urls
    ]
    await asyncio.gather(*(
        process_task(task, analyze_use_case, download_use_case, args.output_dir, args.analyze_only)
        for task in tasks
    ))
    return tasks


def main(argv: Optional[List[str]] = None) -> int:
    """Точка входа консольной команды; код возврата 0, если все задачи успешны"""
    args = parse_args(argv)

    try:
        settings = Settings.from_env(args.env_file)
    except ReelgrabError as e:
        print(f"Configuration error: {e.user_message}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    tasks = asyncio.run(run(args, settings))

    expected = DownloadStatus.READY if args.analyze_only else DownloadStatus.COMPLETED
    failed = [task for task in tasks if task.status != expected]
    for task in failed:
        print(f"{task.url}\n  error: {task.error}", file=sys.stderr)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
