"""yt-dlp executable download backend."""

import subprocess
from pathlib import Path
from typing import List, Optional

from tubevault.domain.exceptions import DownloadError
from tubevault.infrastructure.downloaders.ytdlp import (
    VIDEO_FORMAT, YOUTUBE_REFERER, remove_partials
)
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)


class YtDlpCliDownloader:
    """
    Runs the yt-dlp command line tool in a subprocess.
    Implements IDownloader protocol.
    """

    name = "yt_dlp_cli"

    def __init__(self, binary: str = "yt-dlp", proxy: Optional[str] = None):
        self.binary = binary
        self.proxy = proxy

    def build_command(self, reference: str, destination: Path) -> List[str]:
        cmd = [
            self.binary,
            "-f", VIDEO_FORMAT,
            "-o", str(destination),
            "--no-playlist",
            "--no-warnings",
            "--no-check-certificates",
            "--force-overwrites",
            "--referer", YOUTUBE_REFERER,
        ]
        if self.proxy:
            cmd += ["--proxy", self.proxy]
        cmd.append(reference)
        return cmd

    def download(self, reference: str, destination: Path, timeout_ms: int) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command(reference, destination)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout_ms / 1000,
                check=True,
            )
        except subprocess.TimeoutExpired as e:
            remove_partials(destination)
            raise DownloadError(f"yt-dlp timed out after {timeout_ms} ms for {reference}") from e
        except subprocess.CalledProcessError as e:
            remove_partials(destination)
            stderr = (e.stderr or "").strip().splitlines()
            detail = stderr[-1] if stderr else f"exit code {e.returncode}"
            raise DownloadError(f"yt-dlp failed for {reference}: {detail}") from e
        except FileNotFoundError as e:
            raise DownloadError(f"yt-dlp executable not found: {self.binary}") from e

        if not destination.exists():
            raise DownloadError(f"yt-dlp produced no file at {destination}")

        return destination
