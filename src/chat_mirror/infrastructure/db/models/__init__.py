"""Import all models so ``Base.metadata.create_all`` sees every table."""
from chat_mirror.infrastructure.db.models.conversation import ConversationModel
from chat_mirror.infrastructure.db.models.message import MessageModel
from chat_mirror.infrastructure.db.models.setting import SettingModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "SettingModel",
]
