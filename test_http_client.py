"""
Тесты для HttpClient на настоящем локальном HTTP сервере
"""
import unittest
from unittest.mock import AsyncMock, patch

import aiohttp
from aiohttp import web
from aiohttp import test_utils

from reelgrab.config import Settings
from reelgrab.errors import UpstreamUnavailable
from reelgrab.services import HttpClient


async def page_handler(request):
    return web.Response(text=f"<html>{request.headers.get('User-Agent')}</html>", content_type='text/html')


async def json_handler(request):
    return web.json_response({'url': request.query.get('url')})


async def not_json_handler(request):
    return web.Response(text='<html>rate limited</html>', content_type='text/html')


async def missing_handler(request):
    return web.Response(status=404, text='Not Found')


async def unknown_charset_handler(request):
    return web.Response(body=b'<html>hi</html>', headers={'Content-Type': 'text/html; charset=x-unknown-charset'})


class TestHttpClient(unittest.IsolatedAsyncioTestCase):
    """Тесты для HttpClient"""

    async def asyncSetUp(self):
        app = web.Application()
        app.router.add_get('/page', page_handler)
        app.router.add_get('/api', json_handler)
        app.router.add_get('/not-json', not_json_handler)
        app.router.add_get('/missing', missing_handler)
        app.router.add_get('/unknown-charset', unknown_charset_handler)
        self.server = test_utils.TestServer(app)
        await self.server.start_server()
        self.client = HttpClient(Settings(user_agent='reelgrab-test', http_timeout=5))

    async def asyncTearDown(self):
        await self.server.close()

    def url(self, path):
        return str(self.server.make_url(path))

    async def test_get_text_sends_user_agent(self):
        page = await self.client.get_text(self.url('/page'))

        self.assertEqual(page.status, 200)
        self.assertEqual(page.text, '<html>reelgrab-test</html>')
        self.assertEqual(page.url, self.url('/page'))

    async def test_get_json_passes_params(self):
        data = await self.client.get_json(self.url('/api'), params={'url': 'https://vm.tiktok.com/ABC123'})
        self.assertEqual(data, {'url': 'https://vm.tiktok.com/ABC123'})

    async def test_get_json_rejects_html(self):
        with self.assertRaises(UpstreamUnavailable):
            await self.client.get_json(self.url('/not-json'))

    async def test_error_status(self):
        with self.assertRaises(UpstreamUnavailable) as ctx:
            await self.client.get_text(self.url('/missing'))
        self.assertEqual(ctx.exception.status, 404)

    async def test_unknown_charset_is_upstream_error(self):
        failing_text = AsyncMock(side_effect=LookupError('unknown encoding: x-unknown-charset'))
        with patch.object(aiohttp.ClientResponse, 'text', failing_text):
            with self.assertRaises(UpstreamUnavailable):
                await self.client.get_text(self.url('/unknown-charset'))
        failing_text.assert_awaited_once()

    async def test_unknown_charset_stays_in_error_taxonomy(self):
        # Новые aiohttp сами откатываются на utf-8, старые бросают LookupError
        try:
            page = await self.client.get_text(self.url('/unknown-charset'))
        except UpstreamUnavailable:
            return
        self.assertIn('hi', page.text)


if __name__ == '__main__':
    unittest.main()
