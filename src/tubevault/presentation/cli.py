"""CLI interface for the YouTube to S3 archiving service."""
import sys
import json
import time
import logging
import argparse
from pathlib import Path
from typing import Any, Dict

from tubevault.application.factories import ProviderFactory
from tubevault.application.registry import JobRegistry
from tubevault.application.status import JobStatusService
from tubevault.domain.exceptions import DomainException
from tubevault.domain.models import JobStatus
from tubevault.infrastructure.config import ConfigLoader, IngestConfig
from tubevault.presentation.server import StdioServer
from tubevault.presentation.tools import ToolService
from tubevault.shared.logging import setup_logger, get_logger


def create_tool_service(config: IngestConfig) -> ToolService:
    """Create the tool service with all dependencies from config."""
    factory = ProviderFactory(config)
    registry = JobRegistry()
    object_store = factory.create_object_store()
    metadata_chain = factory.create_metadata_chain()

    return ToolService(
        orchestrator=factory.create_orchestrator(
            registry, object_store=object_store, metadata_chain=metadata_chain
        ),
        status_service=JobStatusService(registry),
        metadata_chain=metadata_chain,
        search_provider=factory.create_search_provider(),
        object_store=object_store,
        default_bucket=config.bucket,
    )


def _print_result(result: Dict[str, Any]) -> int:
    for block in result.get("content", []):
        print(block.get("text", ""))
    return 1 if result.get("isError") else 0


def _run_upload(tools: ToolService, args) -> int:
    """Submit a batch, poll it to a terminal state and print the final status."""
    logger = get_logger(__name__)
    submitted = tools.call_tool(
        "upload_videos_s3", {"videoUrls": args.urls, "bucketName": args.bucket}
    )
    if submitted["isError"]:
        return _print_result(submitted)

    job_id = json.loads(submitted["content"][0]["text"])["jobId"]
    logger.info(f"Submitted job {job_id}")

    while True:
        result = tools.call_tool("check_upload_job_status", {"jobId": job_id})
        if result["isError"]:
            return _print_result(result)

        status = json.loads(result["content"][0]["text"])
        progress = status["progress"]
        remaining = status.get("readableTimeRemaining") or "-"
        print(
            f"[{status['status']}] {progress['current']}/{progress['total']} "
            f"({progress['percentage']}%) remaining: {remaining}",
            file=sys.stderr,
        )

        if JobStatus(status["status"]).is_terminal:
            print(json.dumps(status, indent=2, ensure_ascii=False))
            return 0 if status["status"] == JobStatus.COMPLETED.value else 1

        time.sleep(args.poll_interval)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Archive YouTube videos into S3")
    parser.add_argument('--config', type=Path, help='Config YAML file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose')
    parser.add_argument('--log-file', type=Path, help='Also write logs to this file')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('serve', help='Serve tools over stdio (newline-delimited JSON)')

    search = sub.add_parser('search', help='Search YouTube by keyword')
    search.add_argument('query', help='Search keyword')
    search.add_argument('--max-results', '-n', type=int, default=10, help='Maximum results')

    info = sub.add_parser('info', help='Show video information for an id or URL')
    info.add_argument('video', help='YouTube video id or URL')

    upload = sub.add_parser('upload', help='Download videos and upload them to S3')
    upload.add_argument('urls', nargs='+', help='YouTube video URLs')
    upload.add_argument('--bucket', '-b', help='Destination bucket (overrides config)')
    upload.add_argument('--poll-interval', type=float, default=2.0, help='Seconds between status polls')

    listing = sub.add_parser('list', help='List videos stored in the bucket')
    listing.add_argument('--bucket', '-b', help='Bucket (overrides config)')
    listing.add_argument('--prefix', '-p', help='Key prefix')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logger(level=log_level, log_file=args.log_file)

    logger = get_logger(__name__)
    tools = None
    try:
        config = ConfigLoader(config_path=args.config).load()
        tools = create_tool_service(config)

        if args.command == 'serve':
            StdioServer(tools).serve_forever()
            return 0
        if args.command == 'search':
            return _print_result(
                tools.call_tool("youtube_search", {"query": args.query, "maxResults": args.max_results})
            )
        if args.command == 'info':
            if "/" in args.video:
                return _print_result(tools.call_tool("get_youtube_video_info_by_url", {"url": args.video}))
            return _print_result(tools.call_tool("get_youtube_video_info", {"videoId": args.video}))
        if args.command == 'upload':
            return _run_upload(tools, args)
        if args.command == 'list':
            return _print_result(
                tools.call_tool("list_s3_videos", {"bucketName": args.bucket, "prefix": args.prefix})
            )

        parser.error(f"Unknown command: {args.command}")
        return 2

    except DomainException as e:
        logger.error(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception as e:
        logger.exception(f"Error: {e}")
        return 1
    finally:
        if tools is not None:
            tools.shutdown()


if __name__ == '__main__':
    sys.exit(main())
