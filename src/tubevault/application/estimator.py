"""Remaining-time estimation for ingestion jobs.

Pure functions of job-local counters. The average only covers items that were
actually downloaded and uploaded, so the estimate means "time to finish the
real downloads"; duplicates advance progress without moving the average.
"""

from typing import Optional


def estimate_remaining_ms(
    cumulative_ms: float,
    success_count: int,
    items_attempted: int,
    remaining_count: int
) -> float:
    """
    Estimate the time left for a job.

    Args:
        cumulative_ms: Total processing time of successful items
        success_count: Number of successfully uploaded items
        items_attempted: Items attempted so far, used when nothing succeeded yet
        remaining_count: Items not yet attempted

    Returns:
        Estimated milliseconds remaining
    """
    if remaining_count <= 0:
        return 0.0

    if success_count > 0:
        average = cumulative_ms / success_count
    else:
        average = cumulative_ms / max(1, items_attempted)

    return average * remaining_count


def format_remaining(remaining_ms: Optional[float]) -> Optional[str]:
    """Human readable form of an estimate, e.g. 'about 2m 5s'."""
    if remaining_ms is None or remaining_ms <= 0:
        return None

    seconds = int(remaining_ms // 1000)
    minutes, rest = divmod(seconds, 60)
    if minutes > 0:
        return f"about {minutes}m {rest}s"
    return f"about {seconds}s"
