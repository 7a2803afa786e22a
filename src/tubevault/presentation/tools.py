"""
Remote-invocable tools.

Each tool has a pydantic argument model (its JSON schema is published as the
tool's inputSchema) and a handler returning a JSON-serializable payload. The
service never raises: every failure is rendered as an isError result.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, Field, ValidationError, field_validator

from tubevault.application.chains import MetadataChain
from tubevault.application.orchestrator import IngestOrchestrator, validate_batch
from tubevault.application.status import JobStatusService
from tubevault.domain.exceptions import (
    ConfigurationError,
    DomainException,
    InvalidBatchError,
    InvalidReferenceError,
    JobNotFoundError,
    MetadataError,
    SearchError,
    StorageError,
)
from tubevault.domain.models import VideoInfo
from tubevault.domain.protocols import IObjectStore, ISearchProvider
from tubevault.domain.references import extract_video_id, watch_url
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)

PARTIAL_INFO_WARNING = (
    "Could not fetch full video information from any provider. Only basic details are available."
)
SEARCH_FALLBACK_MESSAGE = "Search is unavailable right now, please provide YouTube URLs directly."


# ---------------- Argument models ----------------

class SearchArgs(BaseModel):
    query: str = Field(..., min_length=1, description="Search keyword")
    maxResults: int = Field(10, ge=1, le=50, description="Maximum number of results to return")


class UploadVideosArgs(BaseModel):
    videoUrls: List[str] = Field(..., description="YouTube video URLs to download and upload")
    bucketName: Optional[str] = Field(None, description="S3 bucket overriding the configured default")

    @field_validator("videoUrls", mode="before")
    @classmethod
    def _check_batch(cls, value: Any) -> List[str]:
        try:
            return validate_batch(value)
        except InvalidBatchError as e:
            raise ValueError(str(e)) from e


class JobIdArgs(BaseModel):
    jobId: str = Field(..., min_length=1, description="Job id returned by upload_videos_s3")


class ListVideosArgs(BaseModel):
    bucketName: Optional[str] = Field(None, description="S3 bucket (defaults to the configured one)")
    prefix: Optional[str] = Field(None, description="Only list keys starting with this prefix")


class VideoIdArgs(BaseModel):
    videoId: str = Field(..., min_length=1, description="YouTube video id")


class VideoUrlArgs(BaseModel):
    url: str = Field(..., min_length=1, description="YouTube video URL")


# ---------------- Results ----------------

def text_result(payload: Any, is_error: bool = False) -> Dict[str, Any]:
    """Wrap a payload as a tool result with a single pretty-printed JSON text block."""
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2, ensure_ascii=False)
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def error_result(message: str, /, **extra: Any) -> Dict[str, Any]:
    return text_result({"error": message, **extra}, is_error=True)


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    original = (first.get("ctx") or {}).get("error")
    if original is not None:
        return str(original)
    location = ".".join(str(part) for part in first.get("loc", ())) or "arguments"
    return f"{location}: {first.get('msg')}"


@dataclass
class ToolDefinition:
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: Callable[[Any], Dict[str, Any]]

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.args_model.model_json_schema(),
        }


class ToolService:
    """Dispatches tool calls to the job engine and the provider collaborators."""

    def __init__(
        self,
        orchestrator: IngestOrchestrator,
        status_service: JobStatusService,
        metadata_chain: MetadataChain,
        search_provider: ISearchProvider,
        object_store: IObjectStore,
        default_bucket: Optional[str] = None
    ):
        self._orchestrator = orchestrator
        self._status = status_service
        self._metadata_chain = metadata_chain
        self._search = search_provider
        self._object_store = object_store
        self._default_bucket = default_bucket

        self._tools: Dict[str, ToolDefinition] = {
            tool.name: tool for tool in (
                ToolDefinition(
                    "youtube_search",
                    "Search YouTube by keyword and return up to maxResults video URLs.",
                    SearchArgs,
                    self._youtube_search,
                ),
                ToolDefinition(
                    "upload_videos_s3",
                    "Download YouTube videos and upload them to S3 in the background. "
                    "Returns a jobId to poll with check_upload_job_status.",
                    UploadVideosArgs,
                    self._upload_videos,
                ),
                ToolDefinition(
                    "check_upload_job_status",
                    "Status, progress and estimated time remaining of an upload job.",
                    JobIdArgs,
                    self._check_job_status,
                ),
                ToolDefinition(
                    "get_job_urls",
                    "S3 URLs of a completed upload job (empty until the job completes).",
                    JobIdArgs,
                    self._get_job_urls,
                ),
                ToolDefinition(
                    "list_s3_videos",
                    "List video files stored in the S3 bucket.",
                    ListVideosArgs,
                    self._list_videos,
                ),
                ToolDefinition(
                    "get_youtube_video_info",
                    "Detailed information about a YouTube video by id.",
                    VideoIdArgs,
                    self._video_info,
                ),
                ToolDefinition(
                    "get_youtube_video_info_by_url",
                    "Detailed information about a YouTube video by URL.",
                    VideoUrlArgs,
                    self._video_info_by_url,
                ),
            )
        }

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs; with wait, block until running jobs finish."""
        self._orchestrator.shutdown(wait=wait)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.describe() for tool in self._tools.values()]

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Validate arguments and run a tool.

        Returns:
            Tool result; failures are reported with isError set
        """
        tool = self._tools.get(name)
        if tool is None:
            return text_result(f"Unknown tool requested: {name}", is_error=True)

        try:
            args = tool.args_model.model_validate(arguments or {})
        except ValidationError as e:
            return error_result(_validation_message(e))

        try:
            return tool.handler(args)
        except JobNotFoundError:
            return error_result("Job not found")
        except DomainException as e:
            return error_result(str(e))
        except Exception as e:
            logger.exception(f"Tool {name} failed: {e}")
            return error_result(f"Internal error: {e}")

    # ---------------- Handlers ----------------

    def _youtube_search(self, args: SearchArgs) -> Dict[str, Any]:
        try:
            urls = self._search.search(args.query, args.maxResults)
        except SearchError as e:
            logger.error(f"YouTube search error: {e}")
            return error_result(str(e), message=SEARCH_FALLBACK_MESSAGE)
        return text_result(urls)

    def _upload_videos(self, args: UploadVideosArgs) -> Dict[str, Any]:
        job_id = self._orchestrator.submit(args.videoUrls, args.bucketName)
        return text_result({"jobId": job_id})

    def _check_job_status(self, args: JobIdArgs) -> Dict[str, Any]:
        return text_result(self._status.get_status(args.jobId))

    def _get_job_urls(self, args: JobIdArgs) -> Dict[str, Any]:
        return text_result(self._status.get_completed_urls(args.jobId))

    def _list_videos(self, args: ListVideosArgs) -> Dict[str, Any]:
        bucket = args.bucketName or self._default_bucket
        if not bucket:
            raise ConfigurationError("No S3 bucket name configured or provided")

        try:
            objects = self._object_store.list_objects(bucket, args.prefix or "")
        except StorageError as e:
            return error_result(f"Failed to list videos in S3 bucket: {e}")

        files = [
            {
                "key": obj.key,
                "url": self._object_store.public_url(bucket, obj.key),
                "size": obj.size,
                "lastModified": obj.last_modified,
            }
            for obj in objects
        ]
        return text_result({"files": files})

    def _video_info(self, args: VideoIdArgs) -> Dict[str, Any]:
        return self._describe_video(args.videoId)

    def _video_info_by_url(self, args: VideoUrlArgs) -> Dict[str, Any]:
        video_id = extract_video_id(args.url)
        if not video_id:
            raise InvalidReferenceError(f"Invalid YouTube URL: {args.url}")
        return self._describe_video(video_id)

    def _describe_video(self, video_id: str) -> Dict[str, Any]:
        try:
            info = self._metadata_chain.fetch(video_id)
        except MetadataError as e:
            logger.warning(f"Falling back to placeholder info for {video_id}: {e}")
            info = VideoInfo.placeholder(video_id, watch_url(video_id))

        if info.is_placeholder:
            return text_result({"warning": PARTIAL_INFO_WARNING, "info": info.to_dict()})
        return text_result(info.to_dict())
