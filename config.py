"""
Configuration for the alldl media download bot.
"""

import os
import re
from typing import Dict, FrozenSet, List, Optional


def require_bot_token() -> str:
    """Return bot token or raise if it is not configured."""
    token = os.getenv("BOT_TOKEN", "").strip()
    if not token:
        raise RuntimeError("Set the BOT_TOKEN environment variable")
    return token


def _parse_id_list(raw_value: str) -> FrozenSet[int]:
    ids = set()
    for part in raw_value.replace(";", ",").split(","):
        part = part.strip()
        if part.lstrip("-").isdigit():
            ids.add(int(part))
    return frozenset(ids)


def _optional_int(raw_value: str) -> Optional[int]:
    raw_value = raw_value.strip()
    if raw_value.lstrip("-").isdigit():
        return int(raw_value)
    return None


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Own sender id; resolved from the Bot API at startup when unset.
BOT_ID: Optional[int] = _optional_int(os.getenv("BOT_ID", ""))
BOT_ADMIN_IDS: FrozenSet[int] = _parse_id_list(os.getenv("BOT_ADMIN_IDS", ""))

API_BASE_URL: str = os.getenv("API_BASE_URL", "https://neokex-dl-apis.fly.dev/api/download").strip()
CACHE_DIR: str = os.getenv(
    "CACHE_DIR",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "cache"),
)

RESOLVE_TIMEOUT_SECONDS: int = int(os.getenv("RESOLVE_TIMEOUT_SECONDS", "60"))
STREAM_TIMEOUT_SECONDS: int = int(os.getenv("STREAM_TIMEOUT_SECONDS", "180"))
MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "2048"))  # local Bot API server limit
STREAM_CHUNK_SIZE: int = 8192

COMMAND_COOLDOWN_SECONDS: int = int(os.getenv("COMMAND_COOLDOWN_SECONDS", "5"))
TOGGLE_MIN_ROLE: int = 1

# Telegram accepts only a fixed emoji set for reactions.
PENDING_REACTION: str = os.getenv("PENDING_REACTION", "👀")
SUCCESS_REACTION: str = os.getenv("SUCCESS_REACTION", "👍")
FAILURE_REACTION: str = os.getenv("FAILURE_REACTION", "👎")

TITLE_PREFIX_LENGTH: int = 30
CAPTION_LIMIT: int = 1024
DEFAULT_TITLE: str = "Media Download"
DEFAULT_PLATFORM: str = "Unknown Source"
DEFAULT_QUALITY: str = "Best"
GENERIC_ERROR_MESSAGE: str = "Failed to download media."

BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
}

URL_RE: re.Pattern[str] = re.compile(r"https?://[^\s<>'\"()\[\]{}]+", re.IGNORECASE)

COMMAND_NAME: str = "alldl"
COMMAND_ALIASES: List[str] = ["download", "dl", "instadl", "fbdl", "xdl", "tikdl", "ytdl", "pindl"]
COMMAND_PREFIXES: str = "./"

SUPPORTED_PLATFORMS_TEXT: str = (
    "TikTok, Instagram, Facebook, YouTube, Twitter/X, Pinterest, Threads, "
    "Spotify, SoundCloud, CapCut, Douyin, Xiaohongshu, and more."
)

USAGE_TEXT: str = (
    "Please provide a valid media URL or reply to a message containing one.\n\n"
    f"Usage: .{COMMAND_NAME} [link]\n"
    f".{COMMAND_NAME} on/off - Toggle auto-download for this group\n\n"
    f"Supported: {SUPPORTED_PLATFORMS_TEXT}"
)

AUTO_DOWNLOAD_DOMAINS: List[str] = [
    "tiktok.com",
    "vm.tiktok.com",
    "instagram.com",
    "instagr.am",
    "facebook.com",
    "fb.watch",
    "fb.com",
    "youtube.com",
    "youtu.be",
    "twitter.com",
    "x.com",
    "t.co",
    "pinterest.com",
    "pin.it",
    "threads.net",
    "spotify.com",
    "open.spotify.com",
    "soundcloud.com",
    "capcut.com",
    "douyin.com",
    "xiaohongshu.com",
    "xhslink.com",
]
