"""Processing-status maintenance for analysed competitor videos.

The content backend moves rows of `competitive_videos` through a processing
state machine. When an analysis run crashes, rows are left in `failed`,
`analyzing` or `processing` and never get picked up again. These helpers
find such rows and move them back to `onboarding_analyzed` so the next run
retries them.

Status Flow:
    queued → processing → analyzing → onboarding_analyzed → completed
                     ↘           ↘
                      failed ←────┘
"""

import enum
from dataclasses import dataclass
from typing import Any

import structlog

from fantasy_ops.clients.supabase import SupabaseClient

log = structlog.get_logger(__name__)

VIDEOS_TABLE = "competitive_videos"
TITLE_PREVIEW_LENGTH = 60
UNSPECIFIED_ERROR = "(not specified)"


class ProcessingStatus(enum.Enum):
    """Values of competitive_videos.processing_status."""

    QUEUED = "queued"
    PROCESSING = "processing"
    ANALYZING = "analyzing"
    ONBOARDING_ANALYZED = "onboarding_analyzed"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class FailedVideo:
    """Display row for a failed video."""

    video_id: str
    title: str
    error: str


async def list_videos_by_status(
    client: SupabaseClient,
    status: ProcessingStatus,
    table: str = VIDEOS_TABLE,
) -> list[dict[str, Any]]:
    """Get all rows in a given processing status, ordered by id."""
    return await client.select(
        table,
        "id, video_id, title, analysis, processing_status",
        filters={"processing_status": status.value},
        order="id",
    )


async def reset_videos(
    client: SupabaseClient,
    from_status: ProcessingStatus,
    to_status: ProcessingStatus = ProcessingStatus.ONBOARDING_ANALYZED,
    clear_analysis: bool = False,
    table: str = VIDEOS_TABLE,
) -> int:
    """Move every row in from_status to to_status.

    Args:
        client: Supabase table client
        from_status: Status to reset
        to_status: Target status (default: onboarding_analyzed)
        clear_analysis: Also set `analysis` to NULL (drops the stored error)
        table: Table name

    Returns:
        Number of rows reset (0 without issuing an update when none match)
    """
    rows = await client.select(table, "id, video_id, title", filters={"processing_status": from_status.value})
    if not rows:
        log.info("videos_reset_skipped", from_status=from_status.value)
        return 0

    values: dict[str, Any] = {"processing_status": to_status.value}
    if clear_analysis:
        values["analysis"] = None

    updated = await client.update(table, values, filters={"processing_status": from_status.value})
    count = len(updated) or len(rows)
    log.info("videos_reset", from_status=from_status.value, to_status=to_status.value, count=count)
    return count


def _preview(title: str | None) -> str:
    title = title or ""
    if len(title) <= TITLE_PREVIEW_LENGTH:
        return title
    return title[:TITLE_PREVIEW_LENGTH]


def summarize_failures(videos: list[dict[str, Any]]) -> list[FailedVideo]:
    """Build display rows: truncated title and the stored `analysis.error`."""
    summaries = []
    for video in videos:
        analysis = video.get("analysis")
        error = analysis.get("error") if isinstance(analysis, dict) else None
        summaries.append(
            FailedVideo(
                video_id=str(video.get("video_id", "")),
                title=_preview(video.get("title")),
                error=error or UNSPECIFIED_ERROR,
            )
        )
    return summaries
