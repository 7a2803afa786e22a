"""TubeVault - archive YouTube videos into S3 as background jobs."""

__version__ = "0.1.0"
