"""
Conversation Aggregator

Turns the flat, chronologically ordered message list of one platform into the
conversation list shown by the inbox:

- the distinct conversation keys, in first-seen order, originated by
  non-admin messages only
- a metadata row per key (the message carrying the richest display fields)
- the latest message per key (admin replies included)

Everything here is a pure function of its inputs; it is recomputed in full on
every refresh.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from app.models.conversation import ConversationSummary
from app.models.message import Message
from app.services.platform_registry import PlatformProfile
from app.utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)


def is_admin_message(msg: Message, admin_identity: Optional[str]) -> bool:
    return bool(admin_identity) and msg.sender == admin_identity


def conversation_key(msg: Message, admin_identity: Optional[str] = None) -> str:
    """
    Grouping key of a message.

    platform_user_id when present, otherwise the recipient of an
    admin-authored row, otherwise the raw sender.
    """
    if msg.platform_user_id:
        return msg.platform_user_id
    if msg.recipient and is_admin_message(msg, admin_identity):
        return msg.recipient
    return msg.sender or ""


@dataclass
class ConversationSet:
    """Result of aggregating one platform's messages"""
    keys: List[str] = field(default_factory=list)
    metadata: Dict[str, Message] = field(default_factory=dict)
    last_message: Dict[str, Message] = field(default_factory=dict)


def _should_replace_metadata(current: Message, candidate: Message, profile: PlatformProfile) -> bool:
    candidate_has = profile.has_display_fields(candidate)
    current_has = profile.has_display_fields(current)

    if candidate_has and not current_has:
        return True
    if candidate_has and current_has:
        return parse_timestamp(candidate.created_at) > parse_timestamp(current.created_at)
    return False


def aggregate(
    messages: Iterable[Message],
    admin_identity: Optional[str],
    profile: PlatformProfile,
) -> ConversationSet:
    """
    Group messages by conversation key.

    Ties on created_at (equal or both unparsable) resolve to the message seen
    later in input order, so the result only depends on the input sequence.
    """
    result = ConversationSet()
    seen_keys = set()

    for msg in messages:
        key = conversation_key(msg, admin_identity)
        if not key:
            continue

        if not is_admin_message(msg, admin_identity) and key not in seen_keys:
            seen_keys.add(key)
            result.keys.append(key)

        holder = result.metadata.get(key)
        if holder is None or _should_replace_metadata(holder, msg, profile):
            result.metadata[key] = msg

        latest = result.last_message.get(key)
        if latest is None or parse_timestamp(msg.created_at) >= parse_timestamp(latest.created_at):
            result.last_message[key] = msg

    return result


def display_name_for(key: str, conversations: ConversationSet, profile: PlatformProfile) -> str:
    meta = conversations.metadata.get(key)
    if meta is None:
        return key
    return profile.display_name(meta, key)


def build_conversations(
    conversations: ConversationSet,
    profile: PlatformProfile,
    unread_counts: Optional[Mapping[str, int]] = None,
    admin_identity: Optional[str] = None,
) -> List[ConversationSummary]:
    """Join aggregation output with the relay's unread counts into list rows"""
    unread_counts = unread_counts or {}
    rows: List[ConversationSummary] = []

    for key in conversations.keys:
        meta = conversations.metadata.get(key)
        last = conversations.last_message.get(key)
        display_name = display_name_for(key, conversations, profile)

        rows.append(
            ConversationSummary(
                key=key,
                display_name=display_name,
                avatar_url=profile.avatar_url(meta) if meta else "",
                initial=(display_name or key)[:1].upper(),
                last_message=(last.message or "") if last else "",
                last_message_at=str(last.created_at) if last and last.created_at is not None else None,
                last_message_from_admin=bool(last) and is_admin_message(last, admin_identity),
                last_attachment_kind=last.attachment_kind if last else None,
                unread_count=int(unread_counts.get(key, 0) or 0),
            )
        )

    return rows


def thread_for(messages: Iterable[Message], key: str, admin_identity: Optional[str] = None) -> List[Message]:
    """All messages of one conversation, in input order"""
    return [msg for msg in messages if conversation_key(msg, admin_identity) == key]


def merge_messages(existing: List[Message], incoming: Iterable[Message]) -> List[Message]:
    """
    Merge freshly fetched rows into the held list.

    Rows are matched by id (rows without id are always appended), then the
    list is re-sorted by created_at. The sort is stable so equal timestamps
    keep their arrival order.
    """
    merged = list(existing)
    index_by_id = {msg.id: i for i, msg in enumerate(merged) if msg.id is not None}

    added = 0
    for msg in incoming:
        if msg.id is not None and msg.id in index_by_id:
            merged[index_by_id[msg.id]] = msg
            continue
        if msg.id is not None:
            index_by_id[msg.id] = len(merged)
        merged.append(msg)
        added += 1

    if added:
        logger.debug(f"Merged {added} new messages")
    merged.sort(key=lambda m: parse_timestamp(m.created_at))
    return merged
