"""
Тесты для HTTP API и use cases
"""
import unittest
from unittest.mock import AsyncMock, Mock

from fastapi.testclient import TestClient

from reelgrab.api import create_app
from reelgrab.config import Settings
from reelgrab.errors import (
    ExtractionFailed,
    InvalidInput,
    PlatformBlocked,
    StreamInterrupted,
    UnsupportedPlatform,
    UpstreamFetchFailed,
)
from reelgrab.models import MediaLocator, PlatformTag, StreamResult, VideoMetadata
from reelgrab.services import LinkProcessingService, ServiceFactory
from reelgrab.use_cases import AnalyzeVideoUseCase, DownloadVideoUseCase, build_filename


async def body_of(*chunks):
    for chunk in chunks:
        yield chunk


def stream_result(filename='Cool clip.mp4', title='Cool clip', content_length=6, chunks=(b'abc', b'def')):
    return StreamResult(
        body=body_of(*chunks),
        content_type='video/mp4',
        suggested_filename=filename,
        content_length=content_length,
        title=title,
    )


def error_chain(error):
    """Исключение, его причины и вложенные исключения ExceptionGroup"""
    seen = []
    pending = [error]
    while pending:
        current = pending.pop()
        if current is None or any(current is e for e in seen):
            continue
        seen.append(current)
        pending.extend(getattr(current, 'exceptions', ()))
        pending.extend((current.__cause__, current.__context__))
    return seen


class InterruptedBody:
    """Тело, которое отдает первый чанк и обрывается"""

    def __init__(self, first=b'abc', expected=6):
        self.first = first
        self.expected = expected
        self.sent = False
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.sent:
            self.sent = True
            return self.first
        raise StreamInterrupted(transferred=len(self.first), expected=self.expected)

    async def aclose(self):
        self.closed = True


class TestApi(unittest.TestCase):
    """Тесты для эндпоинтов /analyze, /download, /health"""

    def setUp(self):
        self.analyze = Mock(spec=AnalyzeVideoUseCase)
        self.analyze.execute = AsyncMock()
        self.download = Mock(spec=DownloadVideoUseCase)
        self.download.execute = AsyncMock()
        app = create_app(Settings(), analyze_use_case=self.analyze, download_use_case=self.download)
        self.client = TestClient(app)

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'status': 'ok'})

    def test_analyze_success(self):
        self.analyze.execute.return_value = VideoMetadata(
            platform=PlatformTag.YOUTUBE,
            title='Rick Astley - Never Gonna Give You Up',
            thumbnail_url='https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg',
            duration_seconds=0,
            available_qualities=['1080p', '720p', '480p', '360p'],
        )

        response = self.client.post('/analyze', json={'url': 'https://www.youtube.com/watch?v=dQw4w9WgXcQ'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            'platform': 'youtube',
            'title': 'Rick Astley - Never Gonna Give You Up',
            'thumbnail': 'https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg',
            'duration': 0,
            'qualities': ['1080p', '720p', '480p', '360p'],
        })

    def test_analyze_client_errors(self):
        for error in (InvalidInput(), UnsupportedPlatform()):
            with self.subTest(error=type(error).__name__):
                self.analyze.execute.side_effect = error
                response = self.client.post('/analyze', json={'url': 'x'})
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {'message': error.user_message})

    def test_analyze_extraction_failed_has_hint(self):
        self.analyze.execute.side_effect = ExtractionFailed(
            'Failed to extract TikTok video', hint='The video may be private.', platform='tiktok'
        )
        response = self.client.post('/analyze', json={'url': 'https://vm.tiktok.com/ABC123'})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'message': 'Failed to extract TikTok video. The video may be private.'})

    def test_analyze_unexpected_error(self):
        self.analyze.execute.side_effect = RuntimeError('secret upstream details')
        response = self.client.post('/analyze', json={'url': 'https://youtu.be/abc'})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'message': 'Analysis failed'})

    def test_malformed_json(self):
        response = self.client.post(
            '/analyze', content=b'{"url": ', headers={'Content-Type': 'application/json'}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('message', response.json())
        self.analyze.execute.assert_not_called()

    def test_wrong_field_type(self):
        response = self.client.post('/download', json={'url': ['not', 'a', 'string']})
        self.assertEqual(response.status_code, 400)
        self.download.execute.assert_not_called()

    def test_download_streams_with_headers(self):
        self.download.execute.return_value = stream_result()

        response = self.client.post('/download', json={'url': 'https://vm.tiktok.com/ABC123', 'quality': 'HD'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b'abcdef')
        self.assertEqual(response.headers['content-type'], 'video/mp4')
        self.assertEqual(response.headers['content-disposition'], 'attachment; filename="Cool clip.mp4"')
        self.assertEqual(response.headers['content-length'], '6')
        self.download.execute.assert_awaited_once_with('https://vm.tiktok.com/ABC123', 'HD')

    def test_download_non_ascii_title(self):
        self.download.execute.return_value = stream_result(
            filename='tiktok_video.mp4', title='Привет', content_length=None, chunks=(b'xyz',)
        )

        response = self.client.post('/download', json={'url': 'https://vm.tiktok.com/ABC123'})

        self.assertEqual(response.status_code, 200)
        disposition = response.headers['content-disposition']
        self.assertIn('filename="tiktok_video.mp4"', disposition)
        self.assertIn("filename*=UTF-8''", disposition)

    def test_download_interrupted_mid_stream(self):
        body = InterruptedBody()
        self.download.execute.return_value = StreamResult(
            body=body, content_type='video/mp4', suggested_filename='clip.mp4', content_length=6
        )

        with self.assertRaises(Exception) as ctx:
            self.client.post('/download', json={'url': 'https://vm.tiktok.com/ABC123'})

        errors = error_chain(ctx.exception)
        self.assertTrue(any(isinstance(e, StreamInterrupted) for e in errors), repr(ctx.exception))
        self.assertTrue(body.sent)
        self.assertTrue(body.closed)

    def test_download_errors(self):
        cases = [
            (UnsupportedPlatform(), 400),
            (UpstreamFetchFailed(status=403), 500),
            (PlatformBlocked(), 500),
        ]
        for error, status in cases:
            with self.subTest(error=type(error).__name__):
                self.download.execute.side_effect = error
                response = self.client.post('/download', json={'url': 'https://youtu.be/abc'})
                self.assertEqual(response.status_code, status)
                self.assertEqual(response.json(), {'message': error.user_message})

    def test_download_blocked_message(self):
        self.download.execute.side_effect = PlatformBlocked()
        response = self.client.post('/download', json={'url': 'https://youtu.be/abc'})
        self.assertIn(
            'YouTube blocks requests from cloud servers. Please try TikTok, Instagram, or Facebook videos instead.',
            response.json()['message']
        )

    def test_download_unexpected_error(self):
        self.download.execute.side_effect = ValueError('boom')
        response = self.client.post('/download', json={'url': 'https://youtu.be/abc'})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'message': 'Download failed'})


class FakeHttp:
    """HttpClient, который запоминает, что к нему обращались"""

    def __init__(self):
        self.calls = []

    async def get_text(self, url, headers=None, params=None):
        self.calls.append(url)
        raise AssertionError('network must not be used')

    async def get_json(self, url, headers=None, params=None):
        self.calls.append(url)
        raise AssertionError('network must not be used')


class TestUseCases(unittest.IsolatedAsyncioTestCase):
    """Тесты для AnalyzeVideoUseCase и DownloadVideoUseCase"""

    def setUp(self):
        self.http = FakeHttp()
        self.ytdlp = Mock()
        self.factory = ServiceFactory(Settings(), http=self.http, ytdlp=self.ytdlp)
        self.link_processor = LinkProcessingService(self.factory)
        self.relay = Mock()
        self.relay.open = AsyncMock(return_value=stream_result())

    async def test_unknown_platform_without_network(self):
        analyze = AnalyzeVideoUseCase(self.link_processor)
        download = DownloadVideoUseCase(self.link_processor, self.relay)

        with self.assertRaises(UnsupportedPlatform):
            await analyze.execute('https://example.com/video')
        with self.assertRaises(UnsupportedPlatform):
            await download.execute('https://example.com/video')

        self.assertEqual(self.http.calls, [])
        self.relay.open.assert_not_called()
        self.ytdlp.get_info_async.assert_not_called()

    async def test_missing_url(self):
        analyze = AnalyzeVideoUseCase(self.link_processor)
        with self.assertRaises(InvalidInput) as ctx:
            await analyze.execute(None)
        self.assertEqual(ctx.exception.user_message, 'URL is required')

    async def test_download_uses_default_quality_and_title(self):
        service = self.factory.get_service(PlatformTag.TIKTOK)
        locator = MediaLocator(
            direct_url='https://v16.tiktokcdn.com/v.mp4',
            required_headers={'Referer': 'https://www.tiktok.com/'},
            title='Dance: part #1!',
        )
        service.resolve_media = AsyncMock(return_value=locator)
        download = DownloadVideoUseCase(self.link_processor, self.relay, default_quality='720p')

        await download.execute('vm.tiktok.com/ABC123')

        service.resolve_media.assert_awaited_once_with('https://vm.tiktok.com/ABC123', '720p')
        self.relay.open.assert_awaited_once()
        args, kwargs = self.relay.open.call_args
        self.assertEqual(args, (locator, 'Dance part 1.mp4'))
        self.assertEqual(kwargs['title'], 'Dance: part #1!')

    async def test_download_passes_requested_quality(self):
        service = self.factory.get_service(PlatformTag.FACEBOOK)
        service.resolve_media = AsyncMock(return_value=MediaLocator(direct_url='https://video.fbcdn.net/v.mp4'))
        download = DownloadVideoUseCase(self.link_processor, self.relay)

        await download.execute('https://fb.watch/abc/', 'SD')

        service.resolve_media.assert_awaited_once_with('https://fb.watch/abc/', 'SD')
        self.assertEqual(self.relay.open.call_args[0][1], 'facebook_video.mp4')

    def test_build_filename(self):
        self.assertEqual(build_filename('My Clip', PlatformTag.YOUTUBE), 'My Clip.mp4')
        self.assertEqual(build_filename('', PlatformTag.INSTAGRAM), 'instagram_video.mp4')
        self.assertEqual(build_filename('日本語', PlatformTag.TIKTOK), 'tiktok_video.mp4')
        self.assertEqual(build_filename(None, PlatformTag.FACEBOOK), 'facebook_video.mp4')


if __name__ == '__main__':
    unittest.main()
