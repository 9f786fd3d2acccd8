"""
Data models for the alldl downloader bot.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DownloadStatus(Enum):
    """Lifecycle states for a single download invocation."""

    IDLE = "idle"
    RESOLVING = "resolving"
    DOWNLOADING = "downloading"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"


class MediaKind(Enum):
    """Kind of media returned by the resolution API."""

    VIDEO = "video"
    AUDIO = "audio"

    @property
    def extension(self) -> str:
        return "mp3" if self is MediaKind.AUDIO else "mp4"


@dataclass(frozen=True)
class DownloadRequest:
    """One command or auto-download invocation."""

    source_url: str
    thread_id: int
    message_id: int


@dataclass(frozen=True)
class ResolvedMedia:
    """Direct media URL plus metadata for one source link."""

    title: str
    platform: str
    media_url: str
    media_kind: MediaKind
    quality_label: str
    author: Optional[str] = None
    duration_text: Optional[str] = None


@dataclass
class DownloadTask:
    """Runtime info for one invocation of the download pipeline."""

    request: DownloadRequest
    status: DownloadStatus = DownloadStatus.IDLE
    temp_path: Optional[str] = None
    start_ts: Optional[float] = None
    end_ts: Optional[float] = None
    error_message: Optional[str] = None
