"""Front-end facing chat manager."""
from __future__ import annotations

from chat_lineage.manager.chat_manager import SETTLE_DELAY_SECONDS, ChatManager, ConfirmCallback

__all__ = ["SETTLE_DELAY_SECONDS", "ChatManager", "ConfirmCallback"]
