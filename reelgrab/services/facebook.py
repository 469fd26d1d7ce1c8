"""
Сервис для работы с Facebook
Знает только Facebook, формирует MediaLocator
"""
import re
import logging
from typing import Optional

from reelgrab.models import PlatformTag
from reelgrab.services.scraping import ScrapedVideo, first_match, find_escaped_string, find_meta, find_number
from reelgrab.services.social import SocialMediaService
from reelgrab.utils.utils import unescape_media_url

logger = logging.getLogger(__name__)

# Пары (HD, SD) ключей в порядке от новой разметки к старой
PLAYABLE_KEYS = (
    ('browser_native_hd_url', 'browser_native_sd_url'),
    ('playable_url_quality_hd', 'playable_url'),
)

LEGACY_SRC_RE = re.compile(r'\b(hd_src|sd_src)(?:_no_ratelimit)?\s*:\s*"((?:[^"\\]|\\.)+)"')


class FacebookService(SocialMediaService):
    """
    Сервис для работы с Facebook видео (facebook.com/.../videos/..., fb.watch)
    """

    PLATFORM = PlatformTag.FACEBOOK
    DEFAULT_TITLE = 'Facebook Video'
    REFERER = 'https://www.facebook.com/'
    FAILURE_HINT = 'The video may be private, require login, or be unavailable in this region.'
    LOGIN_HINT = 'Facebook requires login to view this video.'

    def parse_page(self, page: str) -> Optional[ScrapedVideo]:
        patterns = [self._playable(hd_key, sd_key) for hd_key, sd_key in PLAYABLE_KEYS]
        patterns.extend([self._from_legacy_src, self._from_og_tags])
        return first_match(patterns, page)

    def _describe(self, page: str, pattern: str, hd_url: str = '', sd_url: str = '') -> Optional[ScrapedVideo]:
        variants = {}
        if hd_url:
            variants['HD'] = hd_url
        if sd_url:
            variants['SD'] = sd_url
        if not variants:
            return None
        return ScrapedVideo(
            media_url=hd_url or sd_url,
            title=find_meta(page, 'og:title'),
            thumbnail_url=find_meta(page, 'og:image'),
            duration_seconds=find_number(page, 'playable_duration_in_ms') // 1000,
            variants=variants,
            pattern=pattern,
        )

    def _playable(self, hd_key: str, sd_key: str):
        def pattern(page: str) -> Optional[ScrapedVideo]:
            return self._describe(
                page,
                hd_key,
                hd_url=find_escaped_string(page, hd_key),
                sd_url=find_escaped_string(page, sd_key),
            )
        pattern.__name__ = hd_key
        return pattern

    def _from_legacy_src(self, page: str) -> Optional[ScrapedVideo]:
        found = {}
        for key, raw in LEGACY_SRC_RE.findall(page):
            found.setdefault(key, unescape_media_url(raw))
        return self._describe(page, 'legacy_src', hd_url=found.get('hd_src', ''), sd_url=found.get('sd_src', ''))

    def _from_og_tags(self, page: str) -> Optional[ScrapedVideo]:
        media_url = find_meta(page, 'og:video:secure_url') or find_meta(page, 'og:video:url') or find_meta(page, 'og:video')
        if not media_url:
            return None
        return ScrapedVideo(
            media_url=media_url,
            title=find_meta(page, 'og:title'),
            thumbnail_url=find_meta(page, 'og:image'),
            pattern='og_video',
        )
