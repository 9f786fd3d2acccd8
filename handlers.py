"""
Telegram handlers: the alldl command and the auto-download observer.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Optional

from aiogram import Dispatcher
from aiogram.enums import ChatMemberStatus, ChatType
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from config import (
    BOT_ADMIN_IDS,
    COMMAND_ALIASES,
    COMMAND_COOLDOWN_SECONDS,
    COMMAND_NAME,
    COMMAND_PREFIXES,
    PENDING_REACTION,
    TOGGLE_MIN_ROLE,
    USAGE_TEXT,
)
from context import MessageContext
from managers import DownloadManager
from models import DownloadRequest
from storage import ThreadsData
from utils import find_first_url, is_supported_url, sanitize_user_input, validate_url_input

logger = logging.getLogger(__name__)

ROLE_MEMBER = 0
ROLE_CHAT_ADMIN = 1
ROLE_BOT_ADMIN = 2


class BotHandlers:
    """Registers the download command and the URL observer."""

    def __init__(
        self,
        dp: Dispatcher,
        download_manager: DownloadManager,
        threads_data: ThreadsData,
        bot_id: int,
        admin_ids: FrozenSet[int] = BOT_ADMIN_IDS,
        cooldown_seconds: int = COMMAND_COOLDOWN_SECONDS,
        context_factory: Callable[[Message], Any] = MessageContext,
    ):
        self.dp = dp
        self.download_manager = download_manager
        self.threads_data = threads_data
        self.bot_id = bot_id
        self.admin_ids = frozenset(admin_ids)
        self.cooldown_seconds = cooldown_seconds
        self.context_factory = context_factory
        self.last_command_ts: Dict[int, float] = {}
        self._register_handlers()

    def _register_handlers(self) -> None:
        self.dp.message.register(self.handle_help, Command(commands=["start", "help"]))
        self.dp.message.register(
            self.handle_command,
            Command(COMMAND_NAME, *COMMAND_ALIASES, prefix=COMMAND_PREFIXES, ignore_case=True),
        )
        self.dp.message.register(self.handle_chat_message)

    async def handle_help(self, message: Message) -> None:
        await message.answer(USAGE_TEXT, parse_mode=None)

    async def handle_command(self, message: Message, command: Optional[CommandObject] = None) -> None:
        args = sanitize_user_input(command.args if command else "").split()
        ctx = self.context_factory(message)

        if args and args[0].lower() in ("on", "off"):
            await self._toggle_auto_download(message, ctx, args[0].lower() == "on")
            return

        wait_seconds = self._cooldown_remaining(message)
        if wait_seconds > 0:
            await ctx.reply(f"Please wait {wait_seconds}s before using this command again.")
            return

        url = find_first_url(" ".join(args))
        if not url:
            url = self._find_reply_url(message)

        valid, _ = validate_url_input(url or "")
        if not valid:
            await ctx.reply(USAGE_TEXT)
            return

        await ctx.reaction(PENDING_REACTION, message.message_id)
        request = DownloadRequest(source_url=url, thread_id=message.chat.id, message_id=message.message_id)
        await self.download_manager.download(request, ctx)

    async def handle_chat_message(self, message: Message) -> None:
        """Auto-download observer. Errors never leave this method."""
        try:
            thread_id = message.chat.id
            if not await self.threads_data.is_auto_download_enabled(thread_id):
                return
            if message.from_user is not None and message.from_user.id == self.bot_id:
                return

            url = find_first_url(message.text or message.caption or "")
            if not url or not is_supported_url(url):
                return

            ctx = self.context_factory(message)
            await ctx.reaction(PENDING_REACTION, message.message_id)
            request = DownloadRequest(source_url=url, thread_id=thread_id, message_id=message.message_id)
            await self.download_manager.download(request, ctx)
        except Exception:
            logger.exception("Auto-download failed for chat %s", getattr(message.chat, "id", None))

    async def _toggle_auto_download(self, message: Message, ctx: Any, enabled: bool) -> None:
        role = await self._get_role(message)
        if role < TOGGLE_MIN_ROLE:
            await ctx.reply("You don't have permission to toggle auto-download.")
            return

        await self.threads_data.set_auto_download(message.chat.id, enabled)
        logger.info("Auto-download %s for chat %s", "enabled" if enabled else "disabled", message.chat.id)
        await ctx.reply(f"Auto-download has been turned {'on' if enabled else 'off'} for this group.")

    async def _get_role(self, message: Message) -> int:
        user = message.from_user
        if user is None:
            return ROLE_MEMBER
        if user.id in self.admin_ids:
            return ROLE_BOT_ADMIN
        # The other side of a private chat owns it.
        if message.chat.type == ChatType.PRIVATE:
            return ROLE_CHAT_ADMIN

        try:
            member = await message.bot.get_chat_member(chat_id=message.chat.id, user_id=user.id)
        except TelegramAPIError:
            logger.warning("Could not fetch chat member %s in %s", user.id, message.chat.id, exc_info=True)
            return ROLE_MEMBER

        if member.status in (ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.CREATOR):
            return ROLE_CHAT_ADMIN
        return ROLE_MEMBER

    def _cooldown_remaining(self, message: Message) -> int:
        if self.cooldown_seconds <= 0 or message.from_user is None:
            return 0

        now = datetime.now().timestamp()
        user_id = message.from_user.id
        last = self.last_command_ts.get(user_id)
        if last is not None and now - last < self.cooldown_seconds:
            return max(1, int(self.cooldown_seconds - (now - last) + 0.999))

        self.last_command_ts[user_id] = now
        self._cleanup_cooldowns(now)
        return 0

    def _cleanup_cooldowns(self, now: float) -> None:
        expired = [
            user_id
            for user_id, ts in self.last_command_ts.items()
            if now - ts > self.cooldown_seconds
        ]
        for user_id in expired:
            self.last_command_ts.pop(user_id, None)

    @staticmethod
    def _find_reply_url(message: Message) -> Optional[str]:
        replied = message.reply_to_message
        if replied is None:
            return None
        return find_first_url(replied.text or replied.caption or "")
