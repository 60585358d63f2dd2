"""
Conversation View Controller

Per-page selection state: the conversation list, or one open conversation
with per-message timestamp expansion.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from app.models.conversation import ViewState

logger = logging.getLogger(__name__)

OpenCallback = Callable[[str], Awaitable[None]]


class ConversationViewController:
    """ListView <-> OpenConversation(key) state machine"""

    def __init__(self, timestamps_collapsible: bool = True, on_open: Optional[OpenCallback] = None):
        self.timestamps_collapsible = timestamps_collapsible
        self.on_open = on_open
        self.selected: Optional[str] = None
        self._expanded: Dict[str, bool] = {}

    @property
    def state(self) -> ViewState:
        return ViewState.OPEN if self.selected else ViewState.LIST

    async def open(self, conversation_key: str) -> None:
        """Select a conversation; runs the on_open hook (mark read)"""
        if not conversation_key:
            return
        self.selected = conversation_key
        self._expanded = {}
        logger.debug(f"Opened conversation {conversation_key}")
        if self.on_open is not None:
            await self.on_open(conversation_key)

    def back(self) -> None:
        self.selected = None

    def toggle_timestamp(self, message_id) -> bool:
        """Flip the timestamp flag of one message and return the new value"""
        key = str(message_id)
        self._expanded[key] = not self._expanded.get(key, False)
        return self.is_expanded(key)

    def is_expanded(self, message_id) -> bool:
        if not self.timestamps_collapsible:
            return True
        return self._expanded.get(str(message_id), False)

    def reset(self) -> None:
        """Back to the initial state, as on remount"""
        self.selected = None
        self._expanded = {}
