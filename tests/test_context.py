"""
Unit tests for the Telegram reply and reaction adapter.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError

from context import MessageContext


def _make_message(**overrides):
    message = SimpleNamespace(
        message_id=7,
        chat=SimpleNamespace(id=-100),
        bot=SimpleNamespace(set_message_reaction=AsyncMock()),
        reply=AsyncMock(),
        reply_audio=AsyncMock(),
        reply_video=AsyncMock(),
        reply_document=AsyncMock(),
    )
    for name, value in overrides.items():
        setattr(message, name, value)
    return message


def _media_file(tmp_path, name):
    path = tmp_path / name
    path.write_bytes(b"media")
    return str(path)


def test_plain_reply_without_attachment():
    message = _make_message()

    asyncio.run(MessageContext(message).reply("Unsupported link"))

    message.reply.assert_awaited_once()
    assert message.reply.await_args.args[0] == "Unsupported link"
    message.reply_video.assert_not_awaited()


def test_mp3_is_sent_as_audio(tmp_path):
    message = _make_message()
    path = _media_file(tmp_path, "1_Song.mp3")

    asyncio.run(MessageContext(message).reply("caption", attachment=path))

    message.reply_audio.assert_awaited_once()
    assert message.reply_audio.await_args.kwargs["caption"] == "caption"
    assert message.reply_audio.await_args.kwargs["audio"].path == path
    message.reply_video.assert_not_awaited()


def test_mp4_is_sent_as_video(tmp_path):
    message = _make_message()
    path = _media_file(tmp_path, "1_Funny_Clip.mp4")

    asyncio.run(MessageContext(message).reply("caption", attachment=path))

    message.reply_video.assert_awaited_once()
    assert message.reply_video.await_args.kwargs["video"].path == path
    message.reply_audio.assert_not_awaited()


def test_rejected_upload_falls_back_to_document(tmp_path):
    rejected = TelegramBadRequest(method=SimpleNamespace(), message="Bad Request: wrong file type")
    message = _make_message(reply_video=AsyncMock(side_effect=rejected))
    path = _media_file(tmp_path, "1_Clip.mp4")

    asyncio.run(MessageContext(message).reply("caption", attachment=path))

    message.reply_document.assert_awaited_once()
    assert message.reply_document.await_args.kwargs["caption"] == "caption"
    assert message.reply_document.await_args.kwargs["document"].path == path


def test_reaction_targets_message():
    message = _make_message()

    asyncio.run(MessageContext(message).reaction("👍", 7))

    kwargs = message.bot.set_message_reaction.await_args.kwargs
    assert kwargs["chat_id"] == -100
    assert kwargs["message_id"] == 7
    assert kwargs["reaction"][0].emoji == "👍"


def test_reaction_failure_is_swallowed():
    denied = TelegramForbiddenError(method=SimpleNamespace(), message="Forbidden: reactions are disabled")
    message = _make_message(bot=SimpleNamespace(set_message_reaction=AsyncMock(side_effect=denied)))

    asyncio.run(MessageContext(message).reaction("👎", 7))

    message.bot.set_message_reaction.assert_awaited_once()
