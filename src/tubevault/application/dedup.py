"""Destination deduplication.

The destination key is a pure function of the video id, which is what lets a
job take one listing snapshot up front instead of querying the store per item.
"""

from typing import Iterable, Set

from tubevault.domain.models import DedupResult, StoredObject

KEY_TEMPLATE = "youtube_{video_id}.mp4"


def object_key_for(video_id: str) -> str:
    """Deterministic destination key for a video id."""
    return KEY_TEMPLATE.format(video_id=video_id)


class DestinationSnapshot:
    """Keys present in the destination when a job started, plus keys it uploaded since."""

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: Set[str] = set(keys)

    @classmethod
    def from_objects(cls, objects: Iterable[StoredObject]) -> "DestinationSnapshot":
        return cls(obj.key for obj in objects)

    def check(self, video_id: str) -> DedupResult:
        key = object_key_for(video_id)
        return DedupResult(present=key in self._keys, key=key)

    def add(self, key: str) -> None:
        # Later items of the same batch then see this key as a duplicate
        self._keys.add(key)

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
