"""Download backends."""

from tubevault.infrastructure.downloaders.ytdlp import YtDlpDownloader
from tubevault.infrastructure.downloaders.ytdlp_cli import YtDlpCliDownloader

__all__ = ["YtDlpDownloader", "YtDlpCliDownloader"]
