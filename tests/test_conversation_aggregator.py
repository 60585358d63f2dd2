from app.models.message import Message
from app.services.conversation_aggregator import (
    aggregate,
    build_conversations,
    conversation_key,
    merge_messages,
    thread_for,
)
from app.services.platform_registry import get_platform_profile

ADMIN = "admin@pony.test"
TELEGRAM = get_platform_profile("telegram")
FACEBOOK = get_platform_profile("facebook")


def _msg(id, sender, created_at, **fields):
    return Message(id=id, sender=sender, created_at=created_at, **fields)


def test_conversation_key_prefers_platform_user_id():
    msg = _msg("1", "someone", "2025-01-01T00:00:00Z", platform_user_id="u9")
    assert conversation_key(msg, ADMIN) == "u9"


def test_conversation_key_falls_back_to_sender():
    msg = _msg("1", "u1", "2025-01-01T00:00:00Z")
    assert conversation_key(msg, ADMIN) == "u1"


def test_admin_row_without_user_id_groups_by_recipient():
    msg = _msg("1", ADMIN, "2025-01-01T00:00:00Z", recipient="u1")
    assert conversation_key(msg, ADMIN) == "u1"


def test_admin_messages_never_originate_conversations():
    messages = [
        _msg("1", ADMIN, "2025-01-01T10:00:00Z", platform_user_id="ghost"),
        _msg("2", "u1", "2025-01-01T10:01:00Z"),
    ]

    result = aggregate(messages, ADMIN, TELEGRAM)

    assert result.keys == ["u1"]
    assert ADMIN not in result.keys


def test_keys_keep_first_seen_order():
    messages = [
        _msg("1", "u2", "2025-01-01T10:00:00Z"),
        _msg("2", "u1", "2025-01-01T10:01:00Z"),
        _msg("3", "u2", "2025-01-01T10:02:00Z"),
    ]

    assert aggregate(messages, ADMIN, TELEGRAM).keys == ["u2", "u1"]


def test_end_to_end_two_conversations_with_admin_reply_preview():
    messages = [
        _msg("1", "u1", "2025-01-01T10:00:00Z", platform_user_id="u1", message="hello"),
        _msg("2", "u1", "2025-01-01T10:01:00Z", platform_user_id="u1", message="anyone?"),
        _msg("3", "u2", "2025-01-01T10:02:00Z", platform_user_id="u2", message="hi"),
        _msg("4", ADMIN, "2025-01-01T10:03:00Z", platform_user_id="u1", message="yes, here"),
    ]

    result = aggregate(messages, ADMIN, TELEGRAM)

    assert result.keys == ["u1", "u2"]
    assert result.last_message["u1"].id == "4"
    assert result.last_message["u2"].id == "3"


def test_last_message_is_latest_regardless_of_input_order():
    t1 = _msg("a", "u1", "2025-01-01T10:00:00Z")
    t2 = _msg("b", "u1", "2025-01-01T11:00:00Z")
    t3 = _msg("c", "u1", "2025-01-01T12:00:00Z")

    for order in ([t1, t2, t3], [t3, t1, t2], [t2, t3, t1]):
        assert aggregate(order, ADMIN, TELEGRAM).last_message["u1"].id == "c"


def test_equal_timestamps_resolve_to_later_input():
    messages = [
        _msg("a", "u1", "2025-01-01T10:00:00Z"),
        _msg("b", "u1", "2025-01-01T10:00:00Z"),
    ]

    assert aggregate(messages, ADMIN, TELEGRAM).last_message["u1"].id == "b"


def test_malformed_timestamp_never_wins_over_valid_one():
    messages = [
        _msg("good", "u1", "2025-01-01T10:00:00Z"),
        _msg("bad", "u1", "not-a-date"),
        _msg("missing", "u1", None),
    ]

    assert aggregate(messages, ADMIN, TELEGRAM).last_message["u1"].id == "good"


def test_metadata_prefers_message_with_display_fields():
    messages = [
        _msg("a", "K", "2025-01-01T10:00:00Z", platform_user_id="K"),
        _msg("b", "K", "2025-01-01T11:00:00Z", platform_user_id="K", name="Alice"),
    ]

    result = aggregate(messages, ADMIN, FACEBOOK)
    rows = build_conversations(result, FACEBOOK)

    assert result.metadata["K"].id == "b"
    assert rows[0].display_name == "Alice"
    assert rows[0].initial == "A"


def test_metadata_keeps_newest_when_both_have_display_fields():
    messages = [
        _msg("a", "K", "2025-01-01T12:00:00Z", name="Alice Old"),
        _msg("b", "K", "2025-01-01T11:00:00Z", name="Alice Older"),
        _msg("c", "K", "2025-01-01T13:00:00Z", name="Alice New", profile_pic="https://cdn/p.png"),
    ]

    result = aggregate(messages, ADMIN, FACEBOOK)

    assert result.metadata["K"].id == "c"
    assert build_conversations(result, FACEBOOK)[0].avatar_url == "https://cdn/p.png"


def test_metadata_not_replaced_by_row_without_display_fields():
    messages = [
        _msg("a", "K", "2025-01-01T10:00:00Z", name="Alice"),
        _msg("b", "K", "2025-01-01T11:00:00Z"),
    ]

    assert aggregate(messages, ADMIN, FACEBOOK).metadata["K"].id == "a"


def test_telegram_display_name_rules():
    full = _msg("1", "u1", "2025-01-01T10:00:00Z", first_name="Alice", last_name="Smith", username="alice")
    handle = _msg("2", "u2", "2025-01-01T10:00:00Z", first_name="Bob", username="bobby")
    bare = _msg("3", "u3", "2025-01-01T10:00:00Z")

    rows = build_conversations(aggregate([full, handle, bare], ADMIN, TELEGRAM), TELEGRAM)

    assert [r.display_name for r in rows] == ["Alice Smith", "bobby", "u3"]


def test_aggregation_is_idempotent():
    messages = [
        _msg("1", "u1", "2025-01-01T10:00:00Z", name="A"),
        _msg("2", "u2", "bad"),
        _msg("3", ADMIN, "2025-01-01T10:05:00Z", platform_user_id="u1"),
    ]

    first = aggregate(messages, ADMIN, FACEBOOK)
    second = aggregate(messages, ADMIN, FACEBOOK)

    assert first == second


def test_unread_counts_only_badge_listed_conversations():
    messages = [
        _msg("1", "u1", "2025-01-01T10:00:00Z"),
        _msg("2", "u2", "2025-01-01T10:01:00Z"),
    ]

    rows = build_conversations(aggregate(messages, ADMIN, TELEGRAM), TELEGRAM, {"u1": 3})
    by_key = {r.key: r for r in rows}

    assert by_key["u1"].unread_count == 3
    assert by_key["u1"].has_badge
    assert by_key["u2"].unread_count == 0
    assert not by_key["u2"].has_badge


def test_preview_reports_attachment_kind():
    messages = [
        _msg("1", "u1", "2025-01-01T10:00:00Z", message="", media_url="https://cdn/a.jpg", message_type="image"),
        _msg("2", "u2", "2025-01-01T10:00:00Z", message="", media_url="https://cdn/a.pdf", message_type="document"),
    ]

    rows = build_conversations(aggregate(messages, ADMIN, TELEGRAM), TELEGRAM)

    assert [r.last_attachment_kind for r in rows] == ["image", "file"]


def test_thread_includes_admin_replies_in_order():
    messages = [
        _msg("1", "u1", "2025-01-01T10:00:00Z"),
        _msg("2", "u2", "2025-01-01T10:01:00Z"),
        _msg("3", ADMIN, "2025-01-01T10:02:00Z", recipient="u1"),
    ]

    assert [m.id for m in thread_for(messages, "u1", ADMIN)] == ["1", "3"]


def test_merge_replaces_known_ids_and_keeps_time_order():
    held = [
        _msg("1", "u1", "2025-01-01T10:00:00Z", message="first"),
        _msg("2", "u1", "2025-01-01T10:05:00Z", message="second"),
    ]
    fresh = [
        _msg("2", "u1", "2025-01-01T10:05:00Z", message="second"),
        _msg("3", "u1", "2025-01-01T10:03:00Z", message="late arrival"),
    ]

    merged = merge_messages(held, fresh)

    assert [m.id for m in merged] == ["1", "3", "2"]
