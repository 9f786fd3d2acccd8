"""
Unit tests for data models.
"""

from models import DownloadRequest, DownloadStatus, DownloadTask, MediaKind


def test_download_task_defaults():
    request = DownloadRequest(source_url="https://tiktok.com/x", thread_id=-100, message_id=7)
    task = DownloadTask(request=request)
    assert task.status == DownloadStatus.IDLE
    assert task.temp_path is None
    assert task.start_ts is None
    assert task.end_ts is None
    assert task.error_message is None


def test_download_status_enum_values():
    assert [status.value for status in DownloadStatus] == [
        "idle",
        "resolving",
        "downloading",
        "delivering",
        "done",
        "failed",
    ]


def test_media_kind_extensions():
    assert MediaKind.VIDEO.value == "video"
    assert MediaKind.AUDIO.value == "audio"
    assert MediaKind.VIDEO.extension == "mp4"
    assert MediaKind.AUDIO.extension == "mp3"
