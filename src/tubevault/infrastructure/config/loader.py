"""Configuration loading and validation."""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field, fields

from tubevault.domain.exceptions import ConfigurationError
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BUCKET = "youtube-video-000"
DEFAULT_REGION = "us-west-2"

METADATA_PROVIDER_NAMES = ("youtube_api", "yt_dlp")
DOWNLOADER_NAMES = ("yt_dlp", "yt_dlp_cli")


@dataclass
class IngestConfig:
    """Configuration for the ingestion service."""

    # Destination
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    bucket: Optional[str] = DEFAULT_BUCKET
    region: str = DEFAULT_REGION

    # Providers, in priority order
    youtube_api_key: Optional[str] = None
    metadata_providers: List[str] = field(default_factory=lambda: list(METADATA_PROVIDER_NAMES))
    downloaders: List[str] = field(default_factory=lambda: list(DOWNLOADER_NAMES))
    ytdlp_binary: str = "yt-dlp"
    ytdlp_proxy: Optional[str] = None

    # Job engine
    temp_dir: Optional[Path] = None
    download_timeout_ms: int = 180_000
    max_concurrent_jobs: int = 4
    storage_attempts: int = 3

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.metadata_providers, str):
            self.metadata_providers = _split_list(self.metadata_providers)
        if isinstance(self.downloaders, str):
            self.downloaders = _split_list(self.downloaders)
        if self.temp_dir is not None and not isinstance(self.temp_dir, Path):
            self.temp_dir = Path(self.temp_dir)
        self._validate()

    def _validate(self):
        if not self.region:
            raise ConfigurationError("AWS region is required (set AWS_REGION)")

        if self.download_timeout_ms <= 0:
            raise ConfigurationError(
                f"Download timeout must be positive, got: {self.download_timeout_ms}"
            )

        if self.max_concurrent_jobs < 1:
            raise ConfigurationError(
                f"max_concurrent_jobs must be at least 1, got: {self.max_concurrent_jobs}"
            )

        if self.storage_attempts < 1:
            raise ConfigurationError(
                f"storage_attempts must be at least 1, got: {self.storage_attempts}"
            )

        for name in self.metadata_providers:
            if name not in METADATA_PROVIDER_NAMES:
                raise ConfigurationError(f"Unknown metadata provider: {name}")

        if not self.downloaders:
            raise ConfigurationError("At least one downloader is required")
        for name in self.downloaders:
            if name not in DOWNLOADER_NAMES:
                raise ConfigurationError(f"Unknown downloader: {name}")

    @property
    def has_aws_credentials(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


def _split_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class ConfigLoader:
    """Loads configuration from an optional YAML file, the environment and overrides."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_path: Optional path to YAML config file
        """
        self.config_path = config_path or Path("tubevault.yaml")
        self._logger = get_logger(__name__)

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> IngestConfig:
        """
        Load configuration.

        Precedence, lowest first: YAML file, environment variables, overrides.

        Returns:
            IngestConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict: Dict[str, Any] = {}

        if self.config_path.exists():
            self._logger.info(f"Loading config from {self.config_path}")
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e
            if not isinstance(yaml_config, dict):
                raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")
            config_dict.update(yaml_config)
        else:
            self._logger.debug(f"Config file not found: {self.config_path}")

        config_dict.update(self._load_from_env())

        if overrides:
            for k, v in overrides.items():
                if v is None:
                    continue
                config_dict[k] = v

        valid_fields = {f.name for f in fields(IngestConfig)}
        unknown = sorted(set(config_dict) - valid_fields)
        if unknown:
            self._logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        filtered_config = {k: v for k, v in config_dict.items() if k in valid_fields}

        try:
            config = IngestConfig(**filtered_config)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        if not config.has_aws_credentials:
            self._logger.warning(
                "Missing AWS credentials in environment variables; "
                "falling back to the default boto3 credential chain"
            )
        if not config.youtube_api_key and "youtube_api" in config.metadata_providers:
            self._logger.warning(
                "YOUTUBE_API_KEY is not set; the YouTube Data API provider will be skipped"
            )

        return config

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        # Destination
        if key_id := os.getenv("AWS_ACCESS_KEY_ID"):
            env_config["aws_access_key_id"] = key_id

        if secret := os.getenv("AWS_SECRET_ACCESS_KEY"):
            env_config["aws_secret_access_key"] = secret

        if bucket := os.getenv("AWS_S3_BUCKET_NAME"):
            env_config["bucket"] = bucket

        if region := os.getenv("AWS_REGION"):
            env_config["region"] = region

        # Providers
        if api_key := os.getenv("YOUTUBE_API_KEY"):
            env_config["youtube_api_key"] = api_key

        if providers := os.getenv("TUBEVAULT_METADATA_PROVIDERS"):
            env_config["metadata_providers"] = _split_list(providers)

        if downloaders := os.getenv("TUBEVAULT_DOWNLOADERS"):
            env_config["downloaders"] = _split_list(downloaders)

        if binary := os.getenv("YTDLP_BINARY"):
            env_config["ytdlp_binary"] = binary

        if proxy := os.getenv("YTDLP_PROXY"):
            env_config["ytdlp_proxy"] = proxy

        # Job engine
        if temp_dir := os.getenv("TUBEVAULT_TEMP_DIR"):
            env_config["temp_dir"] = Path(temp_dir)

        if timeout := os.getenv("TUBEVAULT_DOWNLOAD_TIMEOUT_MS"):
            try:
                env_config["download_timeout_ms"] = int(timeout)
            except ValueError:
                self._logger.warning(f"Invalid TUBEVAULT_DOWNLOAD_TIMEOUT_MS value: {timeout}")

        if max_jobs := os.getenv("TUBEVAULT_MAX_CONCURRENT_JOBS"):
            try:
                env_config["max_concurrent_jobs"] = int(max_jobs)
            except ValueError:
                self._logger.warning(f"Invalid TUBEVAULT_MAX_CONCURRENT_JOBS value: {max_jobs}")

        return env_config
