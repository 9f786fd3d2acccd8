"""
Download manager: resolve a link, stream the media, reply with it, clean up.
"""

import asyncio
import json
import logging
import os
import time
from typing import Any, Dict, Optional, Protocol

import aiohttp

from config import (
    API_BASE_URL,
    BROWSER_HEADERS,
    CACHE_DIR,
    DEFAULT_PLATFORM,
    DEFAULT_QUALITY,
    DEFAULT_TITLE,
    FAILURE_REACTION,
    MAX_FILE_SIZE_MB,
    RESOLVE_TIMEOUT_SECONDS,
    STREAM_TIMEOUT_SECONDS,
    SUCCESS_REACTION,
)
from errors import DeliveryError, DownloadError, ResolutionError, StreamError, error_manager
from models import DownloadRequest, DownloadStatus, DownloadTask, MediaKind, ResolvedMedia
from utils import (
    build_caption,
    build_media_filename,
    download_file_async,
    duration_to_text,
    ensure_dir,
    get_file_size_mb,
    remove_file,
)

logger = logging.getLogger(__name__)


class ReplyTarget(Protocol):
    """Messaging capabilities the pipeline needs from the chat host."""

    async def reply(self, body: str, attachment: Optional[str] = None) -> Any:
        ...

    async def reaction(self, icon: str, message_id: int) -> Any:
        ...


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_resolved_media(data: Dict[str, Any]) -> ResolvedMedia:
    """Turn a successful resolution API response into a ResolvedMedia record."""
    video_url = _text(data.get("videoDownload")) or _text(data.get("videoStream"))
    audio_url = _text(data.get("audioDownload")) or _text(data.get("audioStream"))

    if not video_url and not audio_url:
        raise ResolutionError("No downloadable media URL found in API response.")

    if data.get("type") == "audio" and audio_url:
        media_url, kind = audio_url, MediaKind.AUDIO
    elif video_url:
        media_url, kind = video_url, MediaKind.VIDEO
    else:
        media_url, kind = audio_url, MediaKind.AUDIO

    author = _text(data.get("author"))
    if author == "Unknown":
        author = None

    return ResolvedMedia(
        title=_text(data.get("title")) or DEFAULT_TITLE,
        platform=_text(data.get("platform")) or DEFAULT_PLATFORM,
        media_url=media_url,
        media_kind=kind,
        quality_label=_text(data.get("videoQuality")) or _text(data.get("audioQuality")) or DEFAULT_QUALITY,
        author=author,
        duration_text=duration_to_text(data.get("duration")),
    )


class DownloadManager:
    """Runs the resolve, stream, deliver and cleanup sequence for one link."""

    def __init__(
        self,
        api_base_url: str = API_BASE_URL,
        cache_dir: str = CACHE_DIR,
        resolve_timeout: int = RESOLVE_TIMEOUT_SECONDS,
        stream_timeout: int = STREAM_TIMEOUT_SECONDS,
        max_file_size_mb: int = MAX_FILE_SIZE_MB,
    ):
        self.api_base_url = api_base_url
        self.cache_dir = cache_dir
        self.resolve_timeout = resolve_timeout
        self.stream_timeout = stream_timeout
        self.max_file_size_mb = max_file_size_mb

    async def download(self, request: DownloadRequest, target: ReplyTarget) -> DownloadTask:
        """Run the whole pipeline. Never raises; the final state is on the returned task."""
        task = DownloadTask(request=request)
        task.start_ts = time.time()

        try:
            task.status = DownloadStatus.RESOLVING
            media = await self.resolve(request.source_url)

            task.status = DownloadStatus.DOWNLOADING
            await ensure_dir(self.cache_dir)
            task.temp_path = os.path.join(
                self.cache_dir,
                build_media_filename(media.title, media.media_kind),
            )
            await self.stream_to_file(media, task.temp_path)

            task.status = DownloadStatus.DELIVERING
            await self._send_file(target, media, task.temp_path)

            task.status = DownloadStatus.DONE
            await target.reaction(SUCCESS_REACTION, request.message_id)
        except Exception as error:
            task.status = DownloadStatus.FAILED
            task.error_message = str(error)
            await self._handle_download_error(target, request, error)
        finally:
            task.end_ts = time.time()
            if task.temp_path:
                await remove_file(task.temp_path)

        return task

    async def resolve(self, source_url: str) -> ResolvedMedia:
        """Ask the resolution API for a direct media URL. Single attempt."""
        data = await self._request_json(source_url)
        if not data.get("success"):
            raise ResolutionError(_text(data.get("error")) or "Failed to fetch media from API.")
        media = build_resolved_media(data)
        logger.info("Resolved %s via %s (%s)", source_url, media.platform, media.media_kind.value)
        return media

    async def _request_json(self, source_url: str) -> Dict[str, Any]:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.api_base_url,
                    params={"url": source_url},
                    timeout=aiohttp.ClientTimeout(total=self.resolve_timeout),
                ) as response:
                    body = await response.read()
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as error:
            raise ResolutionError(f"Resolution API is unreachable: {str(error) or type(error).__name__}") from error

        try:
            data = json.loads(body)
        except ValueError:
            data = None

        if status >= 400:
            raise ResolutionError(f"Resolution API returned HTTP {status}.", payload=data)
        if not isinstance(data, dict):
            raise ResolutionError("Malformed response from the resolution API.")
        return data

    async def stream_to_file(self, media: ResolvedMedia, filepath: str) -> None:
        """Stream media bytes into ``filepath``."""
        headers = {**BROWSER_HEADERS, "Referer": media.media_url}
        try:
            async with aiohttp.ClientSession() as session:
                await download_file_async(
                    url=media.media_url,
                    filepath=filepath,
                    session=session,
                    timeout=self.stream_timeout,
                    headers=headers,
                )
        except aiohttp.ClientResponseError as error:
            raise StreamError(f"Media server returned HTTP {error.status}.") from error
        except (aiohttp.ClientError, asyncio.TimeoutError) as error:
            raise StreamError(f"Media download was interrupted: {str(error) or type(error).__name__}") from error
        except OSError as error:
            raise StreamError(f"Could not write media file: {error}") from error

    async def _send_file(self, target: ReplyTarget, media: ResolvedMedia, filepath: str) -> None:
        file_size_mb = get_file_size_mb(filepath)
        if file_size_mb > self.max_file_size_mb:
            raise DeliveryError(f"File is too large to send ({file_size_mb:.1f} MB > {self.max_file_size_mb} MB).")

        try:
            await target.reply(build_caption(media), attachment=filepath)
        except DownloadError:
            raise
        except Exception as error:
            raise DeliveryError(f"Could not send the media file: {error}") from error

    async def _handle_download_error(
        self,
        target: ReplyTarget,
        request: DownloadRequest,
        error: Exception,
    ) -> None:
        if isinstance(error, DownloadError):
            logger.warning("Download failed for thread=%s url=%s: %s", request.thread_id, request.source_url, error)
        else:
            logger.error(
                "Download failed for thread=%s url=%s",
                request.thread_id,
                request.source_url,
                exc_info=error,
            )

        try:
            await target.reaction(FAILURE_REACTION, request.message_id)
            await target.reply(error_manager.to_user_message(error))
        except Exception:
            logger.exception("Failed to report download error for thread=%s", request.thread_id)
