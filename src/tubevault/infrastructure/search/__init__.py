"""Search providers."""

from tubevault.infrastructure.search.ytdlp_search import YtDlpSearchProvider

__all__ = ["YtDlpSearchProvider"]
