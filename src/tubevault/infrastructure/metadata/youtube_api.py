"""YouTube Data API v3 metadata provider."""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from tubevault.domain.exceptions import MetadataError
from tubevault.domain.models import ChannelInfo, Thumbnail, VideoInfo
from tubevault.domain.references import watch_url
from tubevault.shared.logging import get_logger
from tubevault.shared.retry import retry_with_backoff

logger = get_logger(__name__)

VIDEOS_ENDPOINT = "https://www.googleapis.com/youtube/v3/videos"
CHANNEL_URL_TEMPLATE = "https://www.youtube.com/channel/{channel_id}"

_ISO_DURATION = re.compile(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def parse_iso_duration(value: Optional[str]) -> Optional[int]:
    """Convert an ISO 8601 duration such as PT1H2M3S to seconds."""
    if not value:
        return None
    match = _ISO_DURATION.fullmatch(value)
    if not match:
        return None
    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def format_upload_date(published_at: Optional[str]) -> Optional[str]:
    """Convert an RFC 3339 timestamp to YYYYMMDD."""
    if not published_at:
        return None
    try:
        return datetime.fromisoformat(published_at.replace("Z", "+00:00")).strftime("%Y%m%d")
    except ValueError:
        return None


def _int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class YouTubeDataApiProvider:
    """
    Fetches metadata through the official YouTube Data API.
    Implements IMetadataProvider protocol.
    """

    name = "youtube_api"

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[requests.Session] = None,
        timeout: int = 15
    ):
        """
        Args:
            api_key: API key; the provider always fails when it is missing
            session: HTTP session to reuse
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch(self, video_id: str) -> VideoInfo:
        if not self.api_key:
            raise MetadataError("YouTube API key is not configured, skipping API call")

        logger.debug(f"Querying YouTube Data API for {video_id}")
        try:
            payload = self._get_video(video_id)
        except requests.RequestException as e:
            raise MetadataError(f"YouTube API request failed for {video_id}: {e}") from e
        except ValueError as e:
            raise MetadataError(f"YouTube API returned invalid JSON for {video_id}: {e}") from e

        items = payload.get("items") or []
        if not items:
            raise MetadataError(f"No data found for video ID: {video_id}")

        return self._to_video_info(video_id, items[0])

    @retry_with_backoff(
        max_attempts=3,
        backoff_seconds=0.5,
        exceptions=(requests.ConnectionError, requests.Timeout)
    )
    def _get_video(self, video_id: str) -> Dict[str, Any]:
        response = self._session.get(
            VIDEOS_ENDPOINT,
            params={
                "part": "snippet,contentDetails,statistics",
                "id": video_id,
                "key": self.api_key,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _to_video_info(video_id: str, data: Dict[str, Any]) -> VideoInfo:
        snippet = data.get("snippet") or {}
        details = data.get("contentDetails") or {}
        stats = data.get("statistics") or {}

        thumbnails: List[Thumbnail] = []
        for thumb in (snippet.get("thumbnails") or {}).values():
            if isinstance(thumb, dict) and thumb.get("url"):
                thumbnails.append(Thumbnail(
                    url=thumb["url"],
                    width=_int_or_none(thumb.get("width")),
                    height=_int_or_none(thumb.get("height")),
                ))

        channel_id = snippet.get("channelId")
        category = snippet.get("categoryId")

        return VideoInfo(
            id=video_id,
            title=snippet.get("title") or VideoInfo.placeholder_title(video_id),
            url=watch_url(video_id),
            duration=parse_iso_duration(details.get("duration")),
            upload_date=format_upload_date(snippet.get("publishedAt")),
            view_count=_int_or_none(stats.get("viewCount")),
            like_count=_int_or_none(stats.get("likeCount")),
            # The API stopped exposing dislikes
            dislike_count=None,
            comment_count=_int_or_none(stats.get("commentCount")),
            description=snippet.get("description") or None,
            channel=ChannelInfo(
                id=channel_id,
                name=snippet.get("channelTitle"),
                url=CHANNEL_URL_TEMPLATE.format(channel_id=channel_id) if channel_id else None,
                # Needs a separate channels call; not worth the quota
                subscriber_count=None,
            ),
            thumbnails=thumbnails or None,
            categories=[category] if category else None,
            tags=snippet.get("tags") or None,
            is_live=snippet.get("liveBroadcastContent") == "live",
        )
