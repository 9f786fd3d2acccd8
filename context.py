"""
Reply and reaction adapter over an incoming Telegram message.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.types import FSInputFile, Message, ReactionTypeEmoji

logger = logging.getLogger(__name__)


class MessageContext:
    """Messaging capabilities bound to the message that triggered a download."""

    def __init__(self, message: Message):
        self.message = message
        self.chat_id = message.chat.id
        self.message_id = message.message_id

    async def reply(self, body: str, attachment: Optional[str] = None) -> Any:
        if attachment is None:
            return await self.message.reply(body, parse_mode=None)

        file = FSInputFile(attachment)
        try:
            if Path(attachment).suffix.lower() == ".mp3":
                return await self.message.reply_audio(audio=file, caption=body, parse_mode=None)
            return await self.message.reply_video(video=file, caption=body, parse_mode=None)
        except TelegramBadRequest:
            logger.warning("Typed upload rejected for %s, sending as document", attachment, exc_info=True)
            return await self.message.reply_document(document=file, caption=body, parse_mode=None)

    async def reaction(self, icon: str, message_id: int) -> None:
        try:
            await self.message.bot.set_message_reaction(
                chat_id=self.chat_id,
                message_id=message_id,
                reaction=[ReactionTypeEmoji(emoji=icon)],
            )
        except TelegramAPIError:
            logger.debug("Reaction %s failed for message %s", icon, message_id, exc_info=True)
