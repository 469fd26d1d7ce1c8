"""
Сервис для работы с Instagram
Содержит всю специфичную логику для Instagram Reels/Posts
Знает только Instagram, формирует MediaLocator
"""
import re
import json
import logging
from typing import Optional

from reelgrab.models import PlatformTag
from reelgrab.services.scraping import (
    ScrapedVideo,
    first_match,
    find_escaped_string,
    find_meta,
    find_number,
)
from reelgrab.services.social import SocialMediaService
from reelgrab.utils.utils import unescape_media_url

logger = logging.getLogger(__name__)

VIDEO_VERSIONS_RE = re.compile(r'"video_versions"\s*:\s*(\[.*?\])', re.DOTALL)


class InstagramService(SocialMediaService):
    """
    Сервис для работы с Instagram видео

    Знает:
    - Форматы встроенных данных Instagram
    - Ограничения Instagram (приватные аккаунты, стена логина)

    НЕ знает:
    - HTTP API
    - Ретрансляцию байтов
    """

    PLATFORM = PlatformTag.INSTAGRAM
    DEFAULT_TITLE = 'Instagram Video'
    REFERER = 'https://www.instagram.com/'
    FAILURE_HINT = 'The post may be private, removed, or require login.'
    LOGIN_HINT = 'Instagram requires login to view this post.'

    def parse_page(self, page: str) -> Optional[ScrapedVideo]:
        return first_match(
            (
                self._from_video_versions,
                self._from_video_url,
                self._from_og_tags,
            ),
            page,
        )

    def _describe(self, media_url: str, page: str, pattern: str, variants=None) -> ScrapedVideo:
        return ScrapedVideo(
            media_url=media_url,
            title=find_meta(page, 'og:title') or find_meta(page, 'twitter:title'),
            thumbnail_url=find_meta(page, 'og:image') or find_escaped_string(page, 'display_url'),
            duration_seconds=find_number(page, 'video_duration'),
            variants=variants or {'HD': media_url},
            pattern=pattern,
        )

    def _from_video_versions(self, page: str) -> Optional[ScrapedVideo]:
        match = VIDEO_VERSIONS_RE.search(page)
        if not match:
            return None
        versions = json.loads(match.group(1))
        versions = [v for v in versions if isinstance(v, dict) and v.get('url')]
        if not versions:
            return None
        versions.sort(key=lambda v: (v.get('height') or 0) * (v.get('width') or 0), reverse=True)
        best = unescape_media_url(versions[0]['url'])
        variants = {'HD': best}
        if len(versions) > 1:
            variants['SD'] = unescape_media_url(versions[-1]['url'])
        return self._describe(best, page, 'video_versions', variants)

    def _from_video_url(self, page: str) -> Optional[ScrapedVideo]:
        media_url = find_escaped_string(page, 'video_url')
        if not media_url.startswith('http'):
            return None
        return self._describe(media_url, page, 'video_url')

    def _from_og_tags(self, page: str) -> Optional[ScrapedVideo]:
        media_url = (
            find_meta(page, 'og:video:secure_url')
            or find_meta(page, 'og:video:url')
            or find_meta(page, 'og:video')
        )
        if not media_url:
            return None
        return self._describe(media_url, page, 'og_video')
