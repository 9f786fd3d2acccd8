"""
Error types, user-facing error messages and logging setup.
"""

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from config import GENERIC_ERROR_MESSAGE


def setup_logging(
    level: str = "INFO",
    format_string: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
) -> logging.Logger:
    """Configure root logging once and return module logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(format_string))
    root_logger.addHandler(console_handler)
    return logging.getLogger(__name__)


class DownloadError(Exception):
    """Base error for one download invocation.

    ``payload`` holds the structured body returned by the remote API, if any.
    """

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.payload = payload if isinstance(payload, dict) else None


class ResolutionError(DownloadError):
    """Resolution API unreachable, malformed, failed, or without a media URL."""


class StreamError(DownloadError):
    """Media bytes could not be transferred to the cache directory."""


class DeliveryError(DownloadError):
    """Reply with the attachment could not be submitted."""


def _payload_field(error: Exception, field: str) -> Optional[str]:
    payload = getattr(error, "payload", None)
    if not isinstance(payload, dict):
        return None
    value = payload.get(field)
    if value is None:
        return None
    return str(value).strip() or None


def remote_error_message(error: Exception) -> Optional[str]:
    return _payload_field(error, "error")


def remote_hint_message(error: Exception) -> Optional[str]:
    hint = _payload_field(error, "hint")
    if not hint:
        return None
    return f"{GENERIC_ERROR_MESSAGE}\n{hint}"


def exception_message(error: Exception) -> Optional[str]:
    return str(error).strip() or None


def generic_message(error: Exception) -> Optional[str]:
    return GENERIC_ERROR_MESSAGE


ErrorExtractor = Callable[[Exception], Optional[str]]

DEFAULT_EXTRACTORS: Sequence[ErrorExtractor] = (
    remote_error_message,
    remote_hint_message,
    exception_message,
    generic_message,
)


class ErrorManager:
    """Convert exceptions to the reply text shown to the user.

    Extractors are tried in order and the first non-empty result wins.
    """

    def __init__(self, extractors: Sequence[ErrorExtractor] = DEFAULT_EXTRACTORS):
        self.extractors = tuple(extractors)

    def to_user_message(self, error: Exception) -> str:
        for extractor in self.extractors:
            message = extractor(error)
            if message:
                return message
        return GENERIC_ERROR_MESSAGE


error_manager = ErrorManager()
