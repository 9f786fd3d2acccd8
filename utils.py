"""
Utilities for URL parsing, file naming, captions and file operations.
"""

import logging
import os
import re
import time
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlparse

import aiofiles
import aiofiles.os
import aiohttp

from config import (
    AUTO_DOWNLOAD_DOMAINS,
    CAPTION_LIMIT,
    STREAM_CHUNK_SIZE,
    TITLE_PREFIX_LENGTH,
    URL_RE,
)
from models import MediaKind, ResolvedMedia

logger = logging.getLogger(__name__)


def find_first_url(text: str) -> Optional[str]:
    """Return first URL in text."""
    if not text:
        return None
    match = URL_RE.search(text)
    return match.group(0) if match else None


def is_supported_url(url: str, domains: Iterable[str] = AUTO_DOWNLOAD_DOMAINS) -> bool:
    """Check whether the URL host is one of the allow-listed platform domains.

    Only the host is compared, exactly or as a parent domain, so a platform
    link wrapped in another site's query string does not match, and short
    domains such as ``t.co`` do not match inside unrelated hosts.
    """
    if not url:
        return False
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    for domain in domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


def validate_url_input(url: str) -> Tuple[bool, str]:
    """Validate URL format and safety."""
    if not url:
        return False, "URL must not be empty"
    if len(url) > 2000:
        return False, "URL is too long"

    try:
        parsed = urlparse(url)
        if parsed.scheme.lower() not in {"http", "https"}:
            return False, "Only HTTP/HTTPS URLs are supported"
        if not parsed.netloc:
            return False, "Invalid URL"
    except ValueError:
        return False, "Invalid URL"

    return True, ""


def sanitize_user_input(text: str, max_length: int = 1000) -> str:
    """Remove control chars and trim length."""
    if not text:
        return ""
    sanitized = re.sub(r"[\x00-\x1f\x7f-\x9f]", " ", text)
    return sanitized.strip()[:max_length]


def sanitize_title(title: str, max_length: int = TITLE_PREFIX_LENGTH) -> str:
    """Keep ASCII letters and digits from the title prefix, everything else becomes ``_``."""
    return re.sub(r"[^A-Za-z0-9]", "_", (title or "")[:max_length])


def build_media_filename(title: str, kind: MediaKind, timestamp_ms: Optional[int] = None) -> str:
    """Return ``<epoch-ms>_<sanitized title>.<ext>``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}_{sanitize_title(title)}.{kind.extension}"


def format_duration(seconds: float) -> str:
    """Human readable duration."""
    total_seconds = max(0, int(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def duration_to_text(value: Any) -> Optional[str]:
    """Numeric durations are seconds; strings are shown as given."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return format_duration(value) if value > 0 else None
    text = str(value).strip()
    return text or None


def build_caption(media: ResolvedMedia) -> str:
    """Reply body sent together with the downloaded file."""
    lines = [
        "Download Complete",
        f"Title: {media.title}",
        f"Platform: {media.platform}",
    ]
    if media.author:
        lines.append(f"Author: {media.author}")
    if media.duration_text:
        lines.append(f"Duration: {media.duration_text}")
    lines.append(f"Quality: {media.quality_label}")
    caption = "\n".join(lines)
    if len(caption) > CAPTION_LIMIT:
        caption = caption[: CAPTION_LIMIT - 1] + "…"
    return caption


def get_file_size_mb(filepath: str) -> float:
    """File size in MB."""
    try:
        return os.path.getsize(filepath) / (1024 * 1024)
    except OSError:
        return 0.0


async def ensure_dir(path: str) -> None:
    """Create directory if it does not exist yet."""
    await aiofiles.os.makedirs(path, exist_ok=True)


async def remove_file(filepath: Optional[str]) -> bool:
    """Delete a temporary file. Failures are logged, never raised."""
    if not filepath:
        return False
    try:
        if not await aiofiles.os.path.exists(filepath):
            return False
        await aiofiles.os.remove(filepath)
        return True
    except OSError:
        logger.error("Failed to remove temporary file %s", filepath, exc_info=True)
        return False


async def download_file_async(
    url: str,
    filepath: str,
    session: aiohttp.ClientSession,
    timeout: int = 180,
    headers: Optional[Dict[str, str]] = None,
) -> None:
    """Stream URL to local path."""
    async with session.get(
        url,
        headers=headers,
        timeout=aiohttp.ClientTimeout(total=timeout),
    ) as response:
        response.raise_for_status()
        async with aiofiles.open(filepath, "wb") as file:
            async for chunk in response.content.iter_chunked(STREAM_CHUNK_SIZE):
                await file.write(chunk)
