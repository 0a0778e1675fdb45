from __future__ import annotations

from typing import Protocol

from chat_mirror.domain.entities.setting import Setting


class SettingReader(Protocol):
    async def get(self, key: str) -> Setting | None: ...


class SettingWriter(Protocol):
    async def set(self, key: str, value: str, now: str) -> None: ...
