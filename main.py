"""
Starts the alldl bot: polling for Telegram updates plus a liveness endpoint.
"""

import asyncio
import logging
import os
import sys
from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiohttp import web
from dotenv import load_dotenv

load_dotenv()

from config import BOT_ID, LOG_FORMAT, LOG_LEVEL, require_bot_token  # noqa: E402
from errors import setup_logging  # noqa: E402
from handlers import BotHandlers  # noqa: E402
from managers import DownloadManager  # noqa: E402
from storage import ThreadsData  # noqa: E402

logger = logging.getLogger(__name__)


def build_liveness_app() -> web.Application:
    async def alive(request: web.Request) -> web.Response:
        return web.json_response({"bot": "alldl", "alive": True})

    app = web.Application()
    app.router.add_get("/", alive)
    app.router.add_get("/health", alive)
    return app


async def serve_liveness(stop: asyncio.Event) -> None:
    """Answer platform liveness checks on $PORT until ``stop`` is set."""
    port = int(os.getenv("PORT", "10000"))
    runner = web.AppRunner(build_liveness_app())
    await runner.setup()
    try:
        await web.TCPSite(runner, host="0.0.0.0", port=port).start()
        logger.info("Liveness endpoint listening on port %s", port)
        await stop.wait()
    finally:
        await runner.cleanup()


async def run_bot(bot: Bot) -> None:
    dispatcher = Dispatcher(storage=MemoryStorage())
    bot_id = BOT_ID if BOT_ID is not None else (await bot.me()).id

    BotHandlers(
        dp=dispatcher,
        download_manager=DownloadManager(),
        threads_data=ThreadsData(storage=dispatcher.storage, bot_id=bot_id),
        bot_id=bot_id,
    )
    logger.info("Polling as bot id %s", bot_id)
    await dispatcher.start_polling(bot)


async def main() -> None:
    setup_logging(level=LOG_LEVEL, format_string=LOG_FORMAT)

    stop = asyncio.Event()
    liveness: Optional[asyncio.Task] = None
    bot: Optional[Bot] = None
    try:
        bot = Bot(token=require_bot_token())
        liveness = asyncio.create_task(serve_liveness(stop))
        await run_bot(bot)
    except Exception:
        logger.exception("alldl bot stopped with an error")
        sys.exit(1)
    finally:
        stop.set()
        if liveness is not None:
            await asyncio.gather(liveness, return_exceptions=True)
        if bot is not None:
            await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
