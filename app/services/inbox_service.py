"""
Inbox Service

One PlatformInbox per chat platform, each owning its own message list and
unread counts. Selection, timestamp flags and the compose field are kept per
operator, so two signed-in operators never steer each other's page. Nothing is
shared between platforms; the registry only routes requests to the right inbox.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from app.config.settings import Settings, settings as default_settings
from app.models.conversation import (
    ConversationSummary,
    InboxView,
    PlatformOverview,
    ThreadMessage,
)
from app.models.message import Message
from app.services.composer import Composer, SendOutcome
from app.services.conversation_aggregator import (
    aggregate,
    build_conversations,
    display_name_for,
    is_admin_message,
    merge_messages,
    thread_for,
)
from app.services.message_store import MessageStoreError, MessageStoreReader
from app.services.platform_registry import (
    PlatformProfile,
    UnknownPlatformError,
    get_platform_profile,
)
from app.services.relay_client import BackendRelayClient
from app.services.unread_sync import UnreadCounterSync
from app.services.view_controller import ConversationViewController
from app.utils.timestamps import EPOCH, parse_timestamp

logger = logging.getLogger(__name__)

# Operator key used when the caller is not tied to a signed-in user
DEFAULT_OPERATOR = "local"


@dataclass
class OperatorState:
    """One operator's page state on one platform"""
    controller: ConversationViewController
    composer: Composer


class PlatformInbox:
    """Shared message list and unread badges, per-operator page state"""

    def __init__(
        self,
        profile: PlatformProfile,
        reader: MessageStoreReader,
        relay: BackendRelayClient,
        config: Optional[Settings] = None,
    ):
        config = config or default_settings
        self.profile = profile
        self.platform = profile.platform.value
        self.admin_identity = config.ADMIN_EMAIL
        self.reader = reader
        self.relay = relay

        self.messages: List[Message] = []
        self.loading = True
        self._loaded = False
        self.mounted = False

        self.unread = UnreadCounterSync(self.platform, relay, interval=config.UNREAD_POLL_INTERVAL)
        self._operators: Dict[str, OperatorState] = {}

    def operator_state(self, operator: str = DEFAULT_OPERATOR) -> OperatorState:
        """Selection and draft of one operator, created on first use"""
        state = self._operators.get(operator)
        if state is None:
            state = OperatorState(
                controller=ConversationViewController(
                    timestamps_collapsible=self.profile.timestamps_collapsible,
                    on_open=self._on_open,
                ),
                composer=Composer(
                    self.profile, self.relay, admin_email=self.admin_identity, on_sent=self.refresh
                ),
            )
            self._operators[operator] = state
        return state

    # ============ Lifecycle ============

    async def mount(self) -> None:
        """Initial load, then keep the unread badges polled until unmount"""
        if self.mounted:
            return
        self.mounted = True
        await self.refresh_messages()
        await self.unread.fetch_unread_counts()
        self.unread.start()

    async def unmount(self) -> None:
        await self.unread.stop()
        self._operators.clear()
        self.mounted = False

    # ============ Data refresh ============

    def _cursor(self) -> Optional[str]:
        if not self.messages:
            return None
        latest = parse_timestamp(self.messages[-1].created_at)
        if latest == EPOCH:
            return None
        return latest.isoformat()

    async def refresh_messages(self) -> List[Message]:
        """
        Pull new rows from the store.

        The first load fetches the whole platform; later loads fetch from the
        newest held created_at and merge by id. A failing store leaves the held
        list untouched.
        """
        cursor = self._cursor() if self._loaded else None
        try:
            if cursor:
                fresh = await self.reader.fetch_messages_since(self.platform, cursor)
                self.messages = merge_messages(self.messages, fresh)
            else:
                fresh = await self.reader.fetch_messages(self.platform)
                self.messages = merge_messages([], fresh)
            self._loaded = True
        except MessageStoreError as e:
            logger.error(f"Error fetching {self.platform} messages: {e}")
        finally:
            self.loading = False
        return self.messages

    async def refresh(self) -> None:
        """Refetch messages and unread counts"""
        await self.refresh_messages()
        await self.unread.fetch_unread_counts()

    async def _on_open(self, conversation_key: str) -> None:
        if await self.unread.mark_read(conversation_key):
            await self.refresh()

    # ============ Derived views ============

    def conversations(self) -> List[ConversationSummary]:
        grouped = aggregate(self.messages, self.admin_identity, self.profile)
        return build_conversations(grouped, self.profile, self.unread.counts, self.admin_identity)

    def has_conversation(self, conversation_key: str) -> bool:
        return conversation_key in aggregate(self.messages, self.admin_identity, self.profile).keys

    def thread(self, operator: str = DEFAULT_OPERATOR) -> List[ThreadMessage]:
        controller = self.operator_state(operator).controller
        key = controller.selected
        if not key:
            return []

        return [
            ThreadMessage(
                id=msg.id,
                message=msg.message or "",
                is_admin=is_admin_message(msg, self.admin_identity),
                media_url=msg.media_url,
                attachment_kind=msg.attachment_kind,
                created_at=str(msg.created_at) if msg.created_at is not None else None,
                timestamp_visible=(
                    controller.is_expanded(msg.id)
                    if msg.id is not None
                    else not self.profile.timestamps_collapsible
                ),
            )
            for msg in thread_for(self.messages, key, self.admin_identity)
        ]

    def view(self, operator: str = DEFAULT_OPERATOR) -> InboxView:
        state = self.operator_state(operator)
        selected = state.controller.selected
        selected_name = None
        if selected:
            grouped = aggregate(self.messages, self.admin_identity, self.profile)
            selected_name = display_name_for(selected, grouped, self.profile)

        return InboxView(
            platform=self.platform,
            label=self.profile.label,
            state=state.controller.state,
            selected=selected,
            selected_display_name=selected_name,
            loading=self.loading,
            conversations=self.conversations(),
            thread=self.thread(operator),
            draft=state.composer.draft,
        )

    # ============ Operator actions ============

    async def open_conversation(self, conversation_key: str, operator: str = DEFAULT_OPERATOR) -> None:
        await self.operator_state(operator).controller.open(conversation_key)

    def back(self, operator: str = DEFAULT_OPERATOR) -> None:
        self.operator_state(operator).controller.back()

    def toggle_timestamp(self, message_id: str, operator: str = DEFAULT_OPERATOR) -> bool:
        return self.operator_state(operator).controller.toggle_timestamp(message_id)

    def set_draft(self, text: str, operator: str = DEFAULT_OPERATOR) -> None:
        self.operator_state(operator).composer.set_draft(text)

    async def send(self, text: Optional[str] = None, operator: str = DEFAULT_OPERATOR) -> SendOutcome:
        state = self.operator_state(operator)
        return await state.composer.send(state.controller.selected, text)


class InboxRegistry:
    """Routes requests to the inbox of each enabled platform"""

    def __init__(
        self,
        config: Optional[Settings] = None,
        reader: Optional[MessageStoreReader] = None,
        relay: Optional[BackendRelayClient] = None,
    ):
        self.config = config or default_settings
        self.reader = reader or MessageStoreReader(self.config)
        self.relay = relay or BackendRelayClient(self.config)
        self.inboxes: Dict[str, PlatformInbox] = {}

        for name in self.config.ENABLED_PLATFORMS:
            try:
                profile = get_platform_profile(name)
            except UnknownPlatformError:
                logger.warning(f"Ignoring unknown platform in ENABLED_PLATFORMS: {name}")
                continue
            self.inboxes[profile.platform.value] = PlatformInbox(profile, self.reader, self.relay, self.config)

    def get(self, platform: str) -> PlatformInbox:
        profile = get_platform_profile(platform)
        inbox = self.inboxes.get(profile.platform.value)
        if inbox is None:
            raise UnknownPlatformError(f"Platform not enabled: {platform}")
        return inbox

    async def mount_all(self) -> None:
        for inbox in self.inboxes.values():
            await inbox.mount()

    async def unmount_all(self) -> None:
        for inbox in self.inboxes.values():
            await inbox.unmount()

    def overview(self) -> List[PlatformOverview]:
        return [
            PlatformOverview(
                platform=inbox.platform,
                label=inbox.profile.label,
                badge_color=inbox.profile.badge_color,
                unread_total=inbox.unread.total(),
            )
            for inbox in self.inboxes.values()
        ]


# Singleton
_registry: Optional[InboxRegistry] = None


def get_inbox_registry() -> InboxRegistry:
    global _registry
    if _registry is None:
        _registry = InboxRegistry()
    return _registry
