"""Keyword search over YouTube using yt-dlp's ytsearch extractor."""

from typing import List, Optional

import yt_dlp

from tubevault.domain.exceptions import SearchError
from tubevault.domain.references import watch_url
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)


class YtDlpSearchProvider:
    """Implements ISearchProvider protocol."""

    def __init__(self, proxy: Optional[str] = None):
        self.proxy = proxy

    def search(self, query: str, max_results: int = 10) -> List[str]:
        """
        Search YouTube and return watch URLs of video results in rank order.

        Raises:
            SearchError: If the query is empty or the search fails
        """
        if not query or not query.strip():
            raise SearchError("No query provided for YouTube search")
        if max_results < 1:
            return []

        ydl_opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'extract_flat': True,
        }
        if self.proxy:
            ydl_opts['proxy'] = self.proxy

        logger.debug(f"Searching YouTube for '{query}' (max {max_results})")
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                result = ydl.extract_info(f"ytsearch{max_results}:{query}", download=False)
        except yt_dlp.utils.YoutubeDLError as e:
            raise SearchError(f"YouTube search failed: {e}") from e

        urls = []
        for entry in (result or {}).get('entries') or []:
            if not entry:
                continue
            # Flat search entries also include channels and playlists
            if entry.get('ie_key') not in (None, 'Youtube'):
                continue
            video_id = entry.get('id')
            if video_id:
                urls.append(watch_url(video_id))

        return urls[:max_results]
