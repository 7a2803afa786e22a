"""yt-dlp metadata provider (info extraction without download)."""

from typing import Any, Dict, List, Optional

import yt_dlp

from tubevault.domain.exceptions import MetadataError
from tubevault.domain.models import ChannelInfo, Thumbnail, VideoInfo
from tubevault.domain.references import watch_url
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)

YOUTUBE_REFERER = "https://www.youtube.com/"


class YtDlpMetadataProvider:
    """
    Scrapes metadata with yt-dlp.
    Implements IMetadataProvider protocol.
    """

    name = "yt_dlp"

    def __init__(self, proxy: Optional[str] = None, socket_timeout: int = 30):
        self.proxy = proxy
        self.socket_timeout = socket_timeout

    def _options(self) -> Dict[str, Any]:
        ydl_opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'noplaylist': True,
            'nocheckcertificate': True,
            'socket_timeout': self.socket_timeout,
            'http_headers': {'Referer': YOUTUBE_REFERER},
        }
        if self.proxy:
            ydl_opts['proxy'] = self.proxy
        return ydl_opts

    def fetch(self, video_id: str) -> VideoInfo:
        url = watch_url(video_id)
        logger.debug(f"Extracting info with yt-dlp: {url}")

        try:
            with yt_dlp.YoutubeDL(self._options()) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.YoutubeDLError as e:
            raise MetadataError(f"yt-dlp could not extract {url}: {e}") from e

        if not info or not info.get('title'):
            raise MetadataError(f"yt-dlp result is missing required fields for {url}")

        return self._to_video_info(video_id, url, info)

    @staticmethod
    def _to_video_info(video_id: str, url: str, info: Dict[str, Any]) -> VideoInfo:
        thumbnails: List[Thumbnail] = [
            Thumbnail(url=t['url'], width=t.get('width'), height=t.get('height'))
            for t in info.get('thumbnails') or []
            if isinstance(t, dict) and t.get('url')
        ]

        return VideoInfo(
            id=video_id,
            title=info['title'],
            url=url,
            duration=int(info['duration']) if info.get('duration') is not None else None,
            upload_date=info.get('upload_date'),
            view_count=info.get('view_count'),
            like_count=info.get('like_count'),
            dislike_count=info.get('dislike_count'),
            comment_count=info.get('comment_count'),
            description=info.get('description') or None,
            channel=ChannelInfo(
                id=info.get('channel_id'),
                name=info.get('uploader') or info.get('channel'),
                url=info.get('channel_url'),
                subscriber_count=info.get('channel_follower_count'),
            ),
            thumbnails=thumbnails or None,
            categories=info.get('categories') or None,
            tags=info.get('tags') or None,
            is_live=bool(info.get('is_live')),
        )
