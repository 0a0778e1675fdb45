from __future__ import annotations

from chat_mirror.application.ports.store import MessageStore

BACKGROUND_STREAMING_KEY = "backgroundBlazeEnabled"


async def is_background_streaming_enabled(store: MessageStore) -> bool:
    """Absent setting means enabled."""
    stored = await store.get_setting(BACKGROUND_STREAMING_KEY)
    if stored is None:
        return True
    return stored == "true"


async def set_background_streaming_enabled(store: MessageStore, enabled: bool) -> None:
    await store.set_setting(BACKGROUND_STREAMING_KEY, "true" if enabled else "false")
