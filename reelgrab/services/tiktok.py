"""
Сервис для работы с TikTok
Содержит всю специфичную логику для TikTok видео
Знает только TikTok, формирует MediaLocator
"""
import logging
from typing import Optional, Dict, Any

from reelgrab.models import PlatformTag
from reelgrab.services.http_client import PageResponse
from reelgrab.services.scraping import (
    ScrapedVideo,
    first_match,
    find_json_script,
    find_escaped_string,
    find_meta,
    dig,
    parse_duration,
)
from reelgrab.services.social import SocialMediaService
from reelgrab.utils.utils import unescape_media_url

logger = logging.getLogger(__name__)


class TikTokService(SocialMediaService):
    """
    Сервис для работы с TikTok видео

    Знает:
    - Где TikTok прячет play address в разметке
    - Что CDN TikTok проверяет Referer и cookies страницы

    НЕ знает:
    - HTTP API
    - Ретрансляцию байтов
    """

    PLATFORM = PlatformTag.TIKTOK
    DEFAULT_TITLE = 'TikTok Video'
    REFERER = 'https://www.tiktok.com/'
    FAILURE_HINT = 'The video may be private, removed, or unavailable in this region.'

    def parse_page(self, page: str) -> Optional[ScrapedVideo]:
        return first_match(
            (
                self._from_universal_data,
                self._from_sigi_state,
                self._from_inline_play_addr,
                self._from_og_tags,
            ),
            page,
        )

    def page_headers(self, page: PageResponse) -> Dict[str, str]:
        """Ссылки CDN привязаны к cookies страницы (tt_chain_token и т.п.)"""
        if not page.cookies:
            return {}
        return {'Cookie': '; '.join(f"{key}={value}" for key, value in page.cookies.items())}

    def _from_universal_data(self, page: str) -> Optional[ScrapedVideo]:
        data = find_json_script(page, '__UNIVERSAL_DATA_FOR_REHYDRATION__')
        item = dig(data, '__DEFAULT_SCOPE__', 'webapp.video-detail', 'itemInfo', 'itemStruct')
        return self._from_item(item, 'universal_data')

    def _from_sigi_state(self, page: str) -> Optional[ScrapedVideo]:
        data = find_json_script(page, 'SIGI_STATE')
        items = dig(data, 'ItemModule')
        if not isinstance(items, dict) or not items:
            return None
        return self._from_item(next(iter(items.values())), 'sigi_state')

    def _from_inline_play_addr(self, page: str) -> Optional[ScrapedVideo]:
        media_url = find_escaped_string(page, 'playAddr') or find_escaped_string(page, 'downloadAddr')
        if not media_url.startswith('http'):
            return None
        return ScrapedVideo(
            media_url=media_url,
            title=find_meta(page, 'og:title'),
            thumbnail_url=find_meta(page, 'og:image'),
            variants={'HD': media_url},
            pattern='inline_play_addr',
        )

    def _from_og_tags(self, page: str) -> Optional[ScrapedVideo]:
        media_url = find_meta(page, 'og:video:secure_url') or find_meta(page, 'og:video')
        if not media_url:
            return None
        return ScrapedVideo(
            media_url=media_url,
            title=find_meta(page, 'og:title'),
            thumbnail_url=find_meta(page, 'og:image'),
            pattern='og_video',
        )

    def _from_item(self, item: Optional[Dict[str, Any]], pattern: str) -> Optional[ScrapedVideo]:
        """Разобрать itemStruct: play address без водяного знака, варианты по битрейту"""
        if not isinstance(item, dict):
            return None
        video = item.get('video') or {}
        play_addr = video.get('playAddr') or video.get('downloadAddr')
        if isinstance(play_addr, dict):
            play_addr = dig(play_addr, 'UrlList', 0)
        if not play_addr:
            return None
        play_addr = unescape_media_url(play_addr)

        variants = {'HD': play_addr}
        bitrates = [
            b for b in (video.get('bitrateInfo') or [])
            if isinstance(b, dict) and dig(b, 'PlayAddr', 'UrlList', 0)
        ]
        if len(bitrates) > 1:
            bitrates.sort(key=lambda b: b.get('Bitrate') or 0, reverse=True)
            variants = {
                'HD': unescape_media_url(dig(bitrates[0], 'PlayAddr', 'UrlList', 0)),
                'SD': unescape_media_url(dig(bitrates[-1], 'PlayAddr', 'UrlList', 0)),
            }

        return ScrapedVideo(
            media_url=variants['HD'],
            title=item.get('desc') or '',
            thumbnail_url=unescape_media_url(video.get('cover') or video.get('originCover') or ''),
            duration_seconds=parse_duration(video.get('duration')),
            variants=variants,
            pattern=pattern,
        )
