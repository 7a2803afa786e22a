"""Fallback chains over interchangeable metadata providers and download backends.

Both chains try their members strictly in order; the first success wins and
exhaustion is reported to the caller as a single error listing every attempt.
"""

from pathlib import Path
from typing import List, Sequence, Tuple

from tubevault.domain.exceptions import DownloadError, MetadataError
from tubevault.domain.models import VideoInfo
from tubevault.domain.protocols import IDownloader, IMetadataProvider
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)


def _describe(failures: List[Tuple[str, Exception]]) -> str:
    return "; ".join(f"{name}: {error}" for name, error in failures)


class MetadataChain:
    """Ordered metadata providers, first success wins."""

    def __init__(self, providers: Sequence[IMetadataProvider]):
        self._providers = list(providers)

    @property
    def providers(self) -> List[IMetadataProvider]:
        return list(self._providers)

    def fetch(self, video_id: str) -> VideoInfo:
        """
        Fetch metadata from the first provider that succeeds.

        Raises:
            MetadataError: If every provider failed (or none is configured)
        """
        failures: List[Tuple[str, Exception]] = []

        for provider in self._providers:
            try:
                logger.debug(f"[{provider.name}] fetching metadata for {video_id}")
                info = provider.fetch(video_id)
                logger.info(f"[{provider.name}] metadata ok: {video_id} - {info.title}")
                return info
            except Exception as e:
                logger.warning(f"[{provider.name}] metadata failed for {video_id}: {e}")
                failures.append((provider.name, e))

        raise MetadataError(
            f"All metadata providers failed for {video_id}: {_describe(failures) or 'no providers'}"
        )


class DownloaderChain:
    """Ordered download backends, first success wins."""

    def __init__(self, downloaders: Sequence[IDownloader]):
        self._downloaders = list(downloaders)

    @property
    def downloaders(self) -> List[IDownloader]:
        return list(self._downloaders)

    def download(self, reference: str, destination: Path, timeout_ms: int) -> Path:
        """
        Download reference to destination with the first backend that succeeds.

        A backend only counts as successful if it left a non-empty file behind.
        Whatever a failed attempt left on disk is removed before the next one.

        Raises:
            DownloadError: If every backend failed (or none is configured)
        """
        failures: List[Tuple[str, Exception]] = []

        for downloader in self._downloaders:
            try:
                logger.info(f"[{downloader.name}] downloading {reference}")
                downloader.download(reference, destination, timeout_ms)

                if not destination.exists() or destination.stat().st_size == 0:
                    raise DownloadError(f"Downloaded file is empty or does not exist: {destination}")

                logger.info(f"[{downloader.name}] download ok: {reference}")
                return destination
            except Exception as e:
                logger.warning(f"[{downloader.name}] download failed for {reference}: {e}")
                failures.append((downloader.name, e))
                destination.unlink(missing_ok=True)

        raise DownloadError(
            f"All download backends failed for {reference}: {_describe(failures) or 'no backends'}"
        )
