"""Metadata providers."""

from tubevault.infrastructure.metadata.youtube_api import YouTubeDataApiProvider
from tubevault.infrastructure.metadata.ytdlp_info import YtDlpMetadataProvider

__all__ = ["YouTubeDataApiProvider", "YtDlpMetadataProvider"]
