"""
Тесты для консольного клиента
"""
import os
import asyncio
import shutil
import tempfile
import unittest
from unittest.mock import AsyncMock, Mock, patch

from reelgrab import cli
from reelgrab.config import Settings
from reelgrab.errors import UnsupportedPlatform, StreamInterrupted
from reelgrab.models import VideoTask, DownloadStatus, PlatformTag, StreamResult, VideoMetadata
from reelgrab.use_cases import AnalyzeVideoUseCase, DownloadVideoUseCase


async def chunks(*parts, error=None):
    for part in parts:
        yield part
        await asyncio.sleep(0)
    if error:
        raise error


def make_use_cases(metadata=None, analyze_error=None, result=None):
    analyze = Mock(spec=AnalyzeVideoUseCase)
    analyze.execute = AsyncMock(return_value=metadata, side_effect=analyze_error)
    download = Mock(spec=DownloadVideoUseCase)
    download.execute = AsyncMock(return_value=result)
    return analyze, download


class TestProcessTask(unittest.IsolatedAsyncioTestCase):
    """Тесты для process_task"""

    def setUp(self):
        self.output_dir = tempfile.mkdtemp()
        self.metadata = VideoMetadata(platform=PlatformTag.TIKTOK, title='Clip', available_qualities=['HD', 'SD'])

    def tearDown(self):
        shutil.rmtree(self.output_dir, ignore_errors=True)

    def task(self):
        return VideoTask(url='https://vm.tiktok.com/ABC123', platform=PlatformTag.TIKTOK)

    async def test_download_completes(self):
        result = StreamResult(body=chunks(b'abc', b'def'), content_type='video/mp4', suggested_filename='Clip.mp4', content_length=6)
        analyze, download = make_use_cases(self.metadata, result=result)

        task = await cli.process_task(self.task(), analyze, download, self.output_dir)

        self.assertEqual(task.status, DownloadStatus.COMPLETED)
        self.assertEqual(task.selected_quality, 'HD')
        with open(os.path.join(self.output_dir, 'Clip.mp4'), 'rb') as f:
            self.assertEqual(f.read(), b'abcdef')
        download.execute.assert_awaited_once()
        self.assertEqual(download.execute.call_args[0], ('https://vm.tiktok.com/ABC123', 'HD'))

    async def test_analyze_only(self):
        analyze, download = make_use_cases(self.metadata)

        task = await cli.process_task(self.task(), analyze, download, self.output_dir, analyze_only=True)

        self.assertEqual(task.status, DownloadStatus.READY)
        download.execute.assert_not_called()

    async def test_analysis_error(self):
        analyze, download = make_use_cases(analyze_error=UnsupportedPlatform())
        task = VideoTask(url='https://example.com/video', platform=PlatformTag.UNKNOWN)

        task = await cli.process_task(task, analyze, download, self.output_dir)

        self.assertEqual(task.status, DownloadStatus.ERROR)
        self.assertIn('Unsupported platform', task.error)

    async def test_interrupted_download_leaves_no_file(self):
        result = StreamResult(
            body=chunks(b'abc', error=StreamInterrupted(transferred=3, expected=10)),
            content_type='video/mp4',
            suggested_filename='Clip.mp4',
            content_length=10,
        )
        analyze, download = make_use_cases(self.metadata, result=result)

        task = await cli.process_task(self.task(), analyze, download, self.output_dir)

        self.assertEqual(task.status, DownloadStatus.ERROR)
        self.assertEqual(os.listdir(self.output_dir), [])

    async def test_same_filename_downloads_do_not_collide(self):
        results = [
            StreamResult(body=chunks(*[b'A' * 5] * 4), content_type='video/mp4', suggested_filename='tiktok_video.mp4', content_length=20),
            StreamResult(body=chunks(*[b'B' * 5] * 4), content_type='video/mp4', suggested_filename='tiktok_video.mp4', content_length=20),
        ]
        analyze, download = make_use_cases(self.metadata)
        download.execute = AsyncMock(side_effect=results)

        tasks = await asyncio.gather(
            cli.process_task(self.task(), analyze, download, self.output_dir),
            cli.process_task(self.task(), analyze, download, self.output_dir),
        )

        self.assertEqual([task.status for task in tasks], [DownloadStatus.COMPLETED] * 2)
        self.assertEqual(sorted(os.listdir(self.output_dir)), ['tiktok_video (1).mp4', 'tiktok_video.mp4'])
        contents = set()
        for name in os.listdir(self.output_dir):
            with open(os.path.join(self.output_dir, name), 'rb') as f:
                contents.add(f.read())
        self.assertEqual(contents, {b'A' * 20, b'B' * 20})

    def test_reserve_path_skips_existing_and_partial_files(self):
        open(os.path.join(self.output_dir, 'Clip.mp4'), 'wb').close()
        open(os.path.join(self.output_dir, 'Clip (1).mp4.part'), 'wb').close()

        path, part_path, fd = cli.reserve_path(self.output_dir, 'Clip.mp4')
        os.close(fd)

        self.assertEqual(path, os.path.join(self.output_dir, 'Clip (2).mp4'))
        self.assertEqual(part_path, path + '.part')
        self.assertTrue(os.path.exists(part_path))


class TestMain(unittest.TestCase):
    """Тесты для точки входа"""

    def test_parse_args(self):
        args = cli.parse_args(['-q', '1080p', '--analyze-only', 'https://youtu.be/abc', 'https://fb.watch/x/'])
        self.assertEqual(args.quality, '1080p')
        self.assertTrue(args.analyze_only)
        self.assertEqual(args.urls, ['https://youtu.be/abc', 'https://fb.watch/x/'])

    @patch('reelgrab.cli.logging.basicConfig')
    @patch('reelgrab.cli.Settings.from_env', return_value=Settings())
    def test_exit_code(self, from_env, basic_config):
        async def fake_run(args, settings):
            ok = VideoTask(url=args.urls[0], platform=PlatformTag.YOUTUBE, status=DownloadStatus.COMPLETED)
            failed = VideoTask(url=args.urls[1], platform=PlatformTag.UNKNOWN, status=DownloadStatus.ERROR, error='Unsupported platform')
            return [ok, failed][:len(args.urls)]

        with patch('reelgrab.cli.run', side_effect=fake_run):
            self.assertEqual(cli.main(['https://youtu.be/abc']), 0)
            self.assertEqual(cli.main(['https://youtu.be/abc', 'https://example.com/v']), 1)


if __name__ == '__main__':
    unittest.main()
