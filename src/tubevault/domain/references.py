"""
YouTube reference parsing.

A reference is whatever the caller hands us (usually a watch URL); the
canonical identifier is the 11 character video id extracted from it.
"""

import re
from typing import Optional

from .exceptions import InvalidReferenceError

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

_VIDEO_ID_LENGTH = 11
_SUPPORTED_MARKERS = ("youtube.com/watch", "youtu.be/")
_ID_PATTERN = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


def is_supported_reference(reference: str) -> bool:
    """Check the reference looks like a YouTube watch or short link."""
    if not isinstance(reference, str):
        return False
    return any(marker in reference for marker in _SUPPORTED_MARKERS)


def extract_video_id(reference: str) -> Optional[str]:
    """
    Extract the video id from a YouTube URL.

    Args:
        reference: Watch, short, embed or /v/ URL

    Returns:
        The 11 character video id, or None if none could be found
    """
    if not isinstance(reference, str):
        return None
    match = _ID_PATTERN.match(reference)
    if match and len(match.group(2)) == _VIDEO_ID_LENGTH:
        return match.group(2)
    return None


def parse_reference(reference: str) -> str:
    """
    Validate a reference and return its canonical video id.

    Raises:
        InvalidReferenceError: If the shape is wrong or no id can be extracted
    """
    if not is_supported_reference(reference):
        raise InvalidReferenceError(f"Invalid YouTube URL: {reference}")

    video_id = extract_video_id(reference)
    if not video_id:
        raise InvalidReferenceError(f"Could not extract YouTube ID from URL: {reference}")
    return video_id


def watch_url(video_id: str) -> str:
    return WATCH_URL_TEMPLATE.format(video_id=video_id)
