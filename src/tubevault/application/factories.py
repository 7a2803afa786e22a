"""Factory for creating providers, backends and the orchestrator from configuration."""

from typing import List, Optional

from tubevault.application.chains import DownloaderChain, MetadataChain
from tubevault.application.orchestrator import IngestOrchestrator
from tubevault.application.registry import JobRegistry
from tubevault.domain.exceptions import ConfigurationError
from tubevault.domain.protocols import IDownloader, IMetadataProvider, ISearchProvider
from tubevault.infrastructure.config import IngestConfig
from tubevault.infrastructure.downloaders import YtDlpCliDownloader, YtDlpDownloader
from tubevault.infrastructure.metadata import YouTubeDataApiProvider, YtDlpMetadataProvider
from tubevault.infrastructure.search import YtDlpSearchProvider
from tubevault.infrastructure.storage import S3ObjectStore, TempStorage
from tubevault.infrastructure.storage.s3_client import S3_ERRORS
from tubevault.shared.logging import get_logger
from tubevault.shared.retry import RetryStrategy

logger = get_logger(__name__)


class ProviderFactory:
    """
    Builds the configured providers in priority order.

    Usage:
        factory = ProviderFactory(config)
        orchestrator = factory.create_orchestrator(JobRegistry())
    """

    def __init__(self, config: IngestConfig):
        self.config = config
        self._logger = get_logger(__name__)

    def create_metadata_provider(self, name: str) -> Optional[IMetadataProvider]:
        """
        Create one metadata provider by name.

        Returns:
            The provider, or None if it cannot run with this configuration

        Raises:
            ConfigurationError: If the name is unknown
        """
        if name == "youtube_api":
            if not self.config.youtube_api_key:
                self._logger.warning("Skipping youtube_api metadata provider: no API key")
                return None
            return YouTubeDataApiProvider(self.config.youtube_api_key)
        if name == "yt_dlp":
            return YtDlpMetadataProvider(proxy=self.config.ytdlp_proxy)
        raise ConfigurationError(f"Unknown metadata provider: {name}")

    def create_downloader(self, name: str) -> IDownloader:
        """
        Create one download backend by name.

        Raises:
            ConfigurationError: If the name is unknown
        """
        if name == "yt_dlp":
            return YtDlpDownloader(proxy=self.config.ytdlp_proxy)
        if name == "yt_dlp_cli":
            return YtDlpCliDownloader(binary=self.config.ytdlp_binary, proxy=self.config.ytdlp_proxy)
        raise ConfigurationError(f"Unknown downloader: {name}")

    def create_metadata_chain(self) -> MetadataChain:
        providers: List[IMetadataProvider] = []
        for name in self.config.metadata_providers:
            provider = self.create_metadata_provider(name)
            if provider is not None:
                providers.append(provider)

        chain = MetadataChain(providers)
        self._logger.info(
            f"Metadata providers: {', '.join(p.name for p in chain.providers) or 'none'}"
        )
        return chain

    def create_downloader_chain(self) -> DownloaderChain:
        chain = DownloaderChain([self.create_downloader(name) for name in self.config.downloaders])
        self._logger.info(f"Download backends: {', '.join(d.name for d in chain.downloaders)}")
        return chain

    def create_search_provider(self) -> ISearchProvider:
        return YtDlpSearchProvider(proxy=self.config.ytdlp_proxy)

    def create_object_store(self) -> S3ObjectStore:
        return S3ObjectStore(
            region=self.config.region,
            access_key=self.config.aws_access_key_id,
            secret_key=self.config.aws_secret_access_key,
            retry=RetryStrategy(
                max_attempts=self.config.storage_attempts,
                backoff_seconds=1.0,
                exceptions=S3_ERRORS,
            ),
        )

    def create_temp_storage(self) -> TempStorage:
        return TempStorage(base_dir=self.config.temp_dir)

    def create_orchestrator(
        self,
        registry: JobRegistry,
        object_store: Optional[S3ObjectStore] = None,
        metadata_chain: Optional[MetadataChain] = None
    ) -> IngestOrchestrator:
        """Wire chains, storage and the registry into a ready orchestrator."""
        return IngestOrchestrator(
            registry=registry,
            metadata_chain=metadata_chain or self.create_metadata_chain(),
            downloader_chain=self.create_downloader_chain(),
            object_store=object_store or self.create_object_store(),
            temp_storage=self.create_temp_storage(),
            default_bucket=self.config.bucket,
            download_timeout_ms=self.config.download_timeout_ms,
            max_concurrent_jobs=self.config.max_concurrent_jobs,
        )
