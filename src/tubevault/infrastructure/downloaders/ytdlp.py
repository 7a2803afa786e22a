"""In-process yt-dlp download backend."""

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any, Dict, Optional

import yt_dlp

from tubevault.domain.exceptions import DownloadError
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)

VIDEO_FORMAT = 'best[ext=mp4]/best'
YOUTUBE_REFERER = 'https://www.youtube.com/'


def remove_partials(destination: Path) -> None:
    """Remove a destination file and the .part/.ytdl files yt-dlp leaves next to it."""
    for candidate in (
        destination,
        destination.with_name(destination.name + '.part'),
        destination.with_name(destination.name + '.ytdl'),
    ):
        candidate.unlink(missing_ok=True)


class YtDlpDownloader:
    """
    Downloads a single video through the yt_dlp library.
    Implements IDownloader protocol.
    """

    name = "yt_dlp"

    def __init__(self, proxy: Optional[str] = None, socket_timeout: int = 30):
        """
        Args:
            proxy: Optional proxy URL passed to yt-dlp
            socket_timeout: Upper bound for a single network read in seconds
        """
        self.proxy = proxy
        self.socket_timeout = socket_timeout

    def _options(self, destination: Path, timeout_ms: int) -> Dict[str, Any]:
        deadline = time.monotonic() + timeout_ms / 1000

        def enforce_deadline(status: Dict[str, Any]) -> None:
            if time.monotonic() > deadline:
                raise DownloadError(f"Download timed out after {timeout_ms} ms")

        ydl_opts = {
            'outtmpl': str(destination),
            'format': VIDEO_FORMAT,
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'nocheckcertificate': True,
            'overwrites': True,
            'socket_timeout': min(self.socket_timeout, max(1, timeout_ms // 1000)),
            'http_headers': {'Referer': YOUTUBE_REFERER},
            'progress_hooks': [enforce_deadline],
        }
        if self.proxy:
            ydl_opts['proxy'] = self.proxy
        return ydl_opts

    @staticmethod
    def _run(reference: str, opts: Dict[str, Any]) -> int:
        with yt_dlp.YoutubeDL(opts) as ydl:
            return ydl.download([reference])

    def download(self, reference: str, destination: Path, timeout_ms: int) -> Path:
        """
        Download reference to destination.

        Raises:
            DownloadError: On extractor/network failure or when the deadline passes
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"yt-dlp downloading {reference} to {destination}")

        opts = self._options(destination, timeout_ms)
        # the progress hook only fires while bytes flow; extraction can stall before that
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="yt-dlp")
        future = executor.submit(self._run, reference, opts)
        try:
            retcode = future.result(timeout=timeout_ms / 1000)
        except FutureTimeout:
            remove_partials(destination)
            raise DownloadError(f"Download timed out after {timeout_ms} ms") from None
        except DownloadError:
            remove_partials(destination)
            raise
        except (yt_dlp.utils.YoutubeDLError, OSError) as e:
            remove_partials(destination)
            raise DownloadError(f"yt-dlp failed for {reference}: {e}") from e
        finally:
            executor.shutdown(wait=False)

        if retcode:
            remove_partials(destination)
            raise DownloadError(f"yt-dlp exited with code {retcode} for {reference}")

        if not destination.exists():
            raise DownloadError(f"yt-dlp produced no file at {destination}")

        return destination
