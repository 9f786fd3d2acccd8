"""
Thread-scoped key/value data on top of the dispatcher's FSM storage.
"""

from typing import Any, Dict

from aiogram.fsm.storage.base import BaseStorage, StorageKey

AUTO_DOWNLOAD_KEY = "autoDownload"


class ThreadsData:
    """get/set of ``{"data": {...}}`` records keyed by chat (thread) id."""

    def __init__(self, storage: BaseStorage, bot_id: int):
        self.storage = storage
        self.bot_id = bot_id

    def _key(self, thread_id: int) -> StorageKey:
        # Chat-wide record: same key shape aiogram uses for FSMStrategy.CHAT.
        return StorageKey(bot_id=self.bot_id, chat_id=thread_id, user_id=thread_id)

    async def get(self, thread_id: int) -> Dict[str, Any]:
        data = await self.storage.get_data(key=self._key(thread_id))
        return {"data": dict(data or {})}

    async def set(self, thread_id: int, record: Dict[str, Any]) -> Dict[str, Any]:
        current = (await self.get(thread_id))["data"]
        current.update(record.get("data") or {})
        await self.storage.set_data(key=self._key(thread_id), data=current)
        return {"data": current}

    async def is_auto_download_enabled(self, thread_id: int) -> bool:
        record = await self.get(thread_id)
        return bool(record["data"].get(AUTO_DOWNLOAD_KEY))

    async def set_auto_download(self, thread_id: int, enabled: bool) -> None:
        await self.set(thread_id, {"data": {AUTO_DOWNLOAD_KEY: enabled}})
