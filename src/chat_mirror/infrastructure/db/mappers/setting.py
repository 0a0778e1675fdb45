from __future__ import annotations

from chat_mirror.domain.entities.setting import Setting
from chat_mirror.infrastructure.db.models.setting import SettingModel


def model_to_entity(model: SettingModel) -> Setting:
    return Setting(key=model.key, value=model.value, updated_at=model.updated_at)
