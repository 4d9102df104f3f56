"""Multi-segment video generation sessions.

A session is a working directory under the sessions root holding the
downloaded segments and a `progress.json` file:

    {
      "sessionId": "session_1760180721221",
      "playerName": "Pere Milla",
      "contentType": "chollo",
      "preset": "chollo_viral",
      "segmentsTotal": 3,
      "segmentsCompleted": 1,
      "segments": [
        {"index": 0, "taskId": "...", "filename": "segment_1.mp4",
         "dialogue": "...", "completedAt": "2025-10-11T10:00:00+00:00"}
      ]
    }

The file is shared with the content backend, which writes the same keys, so
unknown keys are preserved when the file is rewritten. Segment indexes are
0-based in the file and 1-based on the command line.
"""

import json
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from fantasy_ops.utils.filesystem import PROGRESS_FILE_NAME, get_session_dir, validate_identifier

log = structlog.get_logger(__name__)

_KNOWN_KEYS = {"sessionId", "playerName", "contentType", "preset", "segmentsTotal", "segmentsCompleted", "segments"}


@dataclass
class SegmentRecord:
    """One generated segment.

    Attributes:
        index: 0-based segment position
        task_id: KIE.ai task that produced the segment
        filename: File name inside the session directory
        dialogue: Spoken line of the segment
        completed_at: ISO-8601 completion timestamp
    """

    index: int
    task_id: str
    filename: str
    dialogue: str = ""
    completed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "taskId": self.task_id,
            "filename": self.filename,
            "dialogue": self.dialogue,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SegmentRecord":
        return cls(
            index=int(data["index"]),
            task_id=data.get("taskId", ""),
            filename=data["filename"],
            dialogue=data.get("dialogue", ""),
            completed_at=data.get("completedAt"),
        )


@dataclass
class SessionProgress:
    """Contents of progress.json."""

    session_id: str
    player_name: str = ""
    content_type: str = ""
    preset: str = ""
    segments_total: int = 0
    segments: list[SegmentRecord] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def segments_completed(self) -> int:
        return len(self.segments)

    @property
    def is_complete(self) -> bool:
        recorded = {s.index for s in self.segments}
        return self.segments_total > 0 and recorded.issuperset(range(self.segments_total))

    def get_segment(self, index: int) -> SegmentRecord | None:
        """Get the record for a 0-based index, if generated."""
        return next((s for s in self.segments if s.index == index), None)

    def record_segment(self, record: SegmentRecord) -> None:
        """Add a record, replacing any existing record with the same index."""
        self.segments = [s for s in self.segments if s.index != record.index]
        self.segments.append(record)
        self.segments.sort(key=lambda s: s.index)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "sessionId": self.session_id,
            "playerName": self.player_name,
            "contentType": self.content_type,
            "preset": self.preset,
            "segmentsTotal": self.segments_total,
            "segmentsCompleted": self.segments_completed,
            "segments": [s.to_dict() for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], session_id: str) -> "SessionProgress":
        segments = [SegmentRecord.from_dict(s) for s in data.get("segments") or []]
        segments.sort(key=lambda s: s.index)
        return cls(
            session_id=data.get("sessionId") or session_id,
            player_name=data.get("playerName") or "",
            content_type=data.get("contentType") or "",
            preset=data.get("preset") or "",
            segments_total=int(data.get("segmentsTotal") or 0),
            segments=segments,
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )


@dataclass
class Session:
    """A session directory and its loaded progress."""

    session_id: str
    directory: Path
    progress: SessionProgress

    @property
    def progress_path(self) -> Path:
        return self.directory / PROGRESS_FILE_NAME

    def segment_filename(self, index: int) -> str:
        """File name for a 0-based segment index (segment_1.mp4 for index 0)."""
        return f"segment_{index + 1}.mp4"


def new_session_id(prefix: str = "session") -> str:
    """Build `<prefix>_<epoch milliseconds>`."""
    validate_identifier(prefix, "prefix")
    return f"{prefix}_{int(time.time() * 1000)}"


def save_progress(session: Session) -> Path:
    """Write progress.json (via a temporary file, then rename)."""
    path = session.progress_path
    tmp_path = path.with_suffix(".json.tmp")
    tmp_path.write_text(json.dumps(session.progress.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp_path, path)
    log.info("session_progress_saved", session_id=session.session_id,
             completed=session.progress.segments_completed, total=session.progress.segments_total)
    return path


def create_session(
    root: Path,
    prefix: str = "session",
    player_name: str = "",
    content_type: str = "",
    preset: str = "",
    segments_total: int = 0,
) -> Session:
    """Create a new session directory with an initial progress.json.

    Raises:
        ValueError: If prefix is not a valid identifier
        FileExistsError: If a session with the generated id already has progress
    """
    session_id = new_session_id(prefix)
    directory = get_session_dir(root, session_id, create=True)
    session = Session(
        session_id,
        directory,
        SessionProgress(session_id, player_name, content_type, preset, segments_total),
    )
    if session.progress_path.exists():
        raise FileExistsError(f"Session already exists: {session_id}")
    save_progress(session)
    log.info("session_created", session_id=session_id, directory=str(directory))
    return session


def load_session(root: Path, session_id: str) -> Session:
    """Load an existing session.

    Raises:
        ValueError: If session_id is invalid or escapes root
        FileNotFoundError: If the session has no progress.json
    """
    directory = get_session_dir(root, session_id, create=False)
    progress_path = directory / PROGRESS_FILE_NAME
    if not progress_path.exists():
        raise FileNotFoundError(f"No {PROGRESS_FILE_NAME} found in {directory}")

    data = json.loads(progress_path.read_text(encoding="utf-8"))
    return Session(session_id, directory, SessionProgress.from_dict(data, session_id))


def record_segment(session: Session, record: SegmentRecord) -> None:
    """Record a finished segment and persist progress."""
    if record.completed_at is None:
        record.completed_at = datetime.now(timezone.utc).isoformat()
    session.progress.record_segment(record)
    save_progress(session)


def segment_paths(session: Session) -> list[Path]:
    """Paths of the recorded segments in index order."""
    return [session.directory / record.filename for record in session.progress.segments]


def validate_segment_number(progress: SessionProgress, number: int) -> int:
    """Validate a 1-based segment number and return the 0-based index.

    Raises:
        ValueError: If number is outside 1..segments_total
    """
    if progress.segments_total < 1 or not 1 <= number <= progress.segments_total:
        raise ValueError(f"Invalid segment number {number}: must be between 1 and {progress.segments_total}")
    return number - 1


def missing_segment_numbers(progress: SessionProgress) -> list[int]:
    """1-based numbers in 1..segments_total that have no recorded segment."""
    recorded = {s.index for s in progress.segments}
    return [index + 1 for index in range(progress.segments_total) if index not in recorded]
