"""
Unit tests for the command and auto-download handler flow.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

from aiogram import Dispatcher
from aiogram.filters import CommandObject
from aiogram.fsm.storage.memory import MemoryStorage

from config import PENDING_REACTION, USAGE_TEXT
from handlers import BotHandlers
from storage import ThreadsData

BOT_ID = 4242


class _StubDownloadManager:
    def __init__(self, side_effect=None):
        self.download = AsyncMock(side_effect=side_effect)


def _make_handlers(admin_ids=(), side_effect=None, cooldown_seconds=0):
    manager = _StubDownloadManager(side_effect=side_effect)
    threads = ThreadsData(MemoryStorage(), bot_id=BOT_ID)
    handlers = BotHandlers(
        dp=Dispatcher(),
        download_manager=manager,
        threads_data=threads,
        bot_id=BOT_ID,
        admin_ids=frozenset(admin_ids),
        cooldown_seconds=cooldown_seconds,
    )
    return handlers, manager, threads


def _make_message(text="", user_id=1001, chat_type="group", member_status="member", reply_to=None):
    bot = SimpleNamespace(
        set_message_reaction=AsyncMock(),
        get_chat_member=AsyncMock(return_value=SimpleNamespace(status=member_status)),
    )
    return SimpleNamespace(
        text=text,
        caption=None,
        message_id=7,
        chat=SimpleNamespace(id=-100, type=chat_type),
        from_user=SimpleNamespace(id=user_id),
        reply_to_message=reply_to,
        bot=bot,
        reply=AsyncMock(),
        answer=AsyncMock(),
    )


def _command(args=None):
    return CommandObject(prefix=".", command="alldl", args=args)


def _replied_text(message):
    return message.reply.await_args.args[0]


def test_toggle_denied_for_regular_member():
    handlers, manager, threads = _make_handlers()
    message = _make_message(".alldl on")

    asyncio.run(handlers.handle_command(message, _command("on")))

    assert _replied_text(message) == "You don't have permission to toggle auto-download."
    assert asyncio.run(threads.get(-100)) == {"data": {}}
    manager.download.assert_not_awaited()


def test_toggle_allowed_for_chat_admin():
    handlers, _, threads = _make_handlers()
    message = _make_message(".alldl on", member_status="administrator")

    asyncio.run(handlers.handle_command(message, _command("on")))

    assert _replied_text(message) == "Auto-download has been turned on for this group."
    assert asyncio.run(threads.is_auto_download_enabled(-100)) is True


def test_toggle_off_by_bot_admin():
    handlers, _, threads = _make_handlers(admin_ids=[1001])
    asyncio.run(threads.set_auto_download(-100, True))
    message = _make_message(".alldl off")

    asyncio.run(handlers.handle_command(message, _command("off")))

    assert _replied_text(message) == "Auto-download has been turned off for this group."
    assert asyncio.run(threads.is_auto_download_enabled(-100)) is False
    message.bot.get_chat_member.assert_not_awaited()


def test_command_with_url_runs_pipeline():
    handlers, manager, _ = _make_handlers()
    message = _make_message(".alldl https://tiktok.com/x")

    asyncio.run(handlers.handle_command(message, _command("https://tiktok.com/x")))

    manager.download.assert_awaited_once()
    request = manager.download.await_args.args[0]
    assert request.source_url == "https://tiktok.com/x"
    assert request.thread_id == -100
    assert request.message_id == 7
    reaction = message.bot.set_message_reaction.await_args.kwargs
    assert reaction["message_id"] == 7
    assert reaction["reaction"][0].emoji == PENDING_REACTION


def test_command_falls_back_to_replied_message():
    replied = SimpleNamespace(text="look https://youtu.be/abc nice", caption=None)
    handlers, manager, _ = _make_handlers()
    message = _make_message(".alldl", reply_to=replied)

    asyncio.run(handlers.handle_command(message, _command()))

    assert manager.download.await_args.args[0].source_url == "https://youtu.be/abc"


def test_command_without_url_replies_usage():
    handlers, manager, _ = _make_handlers()
    message = _make_message(".alldl please")

    asyncio.run(handlers.handle_command(message, _command("please")))

    assert _replied_text(message) == USAGE_TEXT
    manager.download.assert_not_awaited()
    message.bot.set_message_reaction.assert_not_awaited()


def test_command_cooldown():
    handlers, manager, _ = _make_handlers(cooldown_seconds=5)

    async def run():
        first = _make_message(".alldl https://tiktok.com/x")
        second = _make_message(".alldl https://tiktok.com/y")
        await handlers.handle_command(first, _command("https://tiktok.com/x"))
        await handlers.handle_command(second, _command("https://tiktok.com/y"))
        return second

    second = asyncio.run(run())

    manager.download.assert_awaited_once()
    assert _replied_text(second).startswith("Please wait")


def test_observer_downloads_supported_link():
    handlers, manager, threads = _make_handlers()
    asyncio.run(threads.set_auto_download(-100, True))
    message = _make_message("check this http://youtu.be/abc")

    asyncio.run(handlers.handle_chat_message(message))

    manager.download.assert_awaited_once()
    assert manager.download.await_args.args[0].source_url == "http://youtu.be/abc"
    message.bot.set_message_reaction.assert_awaited_once()


def test_observer_ignores_unsupported_link():
    handlers, manager, threads = _make_handlers()
    asyncio.run(threads.set_auto_download(-100, True))
    message = _make_message("my post https://myblog.example.org/2024/video")

    asyncio.run(handlers.handle_chat_message(message))

    manager.download.assert_not_awaited()
    message.bot.set_message_reaction.assert_not_awaited()


def test_observer_inactive_when_disabled():
    handlers, manager, _ = _make_handlers()
    message = _make_message("check this http://youtu.be/abc")

    asyncio.run(handlers.handle_chat_message(message))

    manager.download.assert_not_awaited()


def test_observer_ignores_own_messages():
    handlers, manager, threads = _make_handlers()
    asyncio.run(threads.set_auto_download(-100, True))
    message = _make_message("http://youtu.be/abc", user_id=BOT_ID)

    asyncio.run(handlers.handle_chat_message(message))

    manager.download.assert_not_awaited()


def test_observer_swallows_errors():
    handlers, manager, threads = _make_handlers(side_effect=RuntimeError("boom"))
    asyncio.run(threads.set_auto_download(-100, True))
    message = _make_message("http://youtu.be/abc")

    asyncio.run(handlers.handle_chat_message(message))

    manager.download.assert_awaited_once()
