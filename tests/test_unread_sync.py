import asyncio

import pytest

from app.services.relay_client import RelayError
from app.services.unread_sync import UnreadCounterSync


class _GatedRelay:
    """Relay stub whose unread responses are released by the test"""

    def __init__(self):
        self.gates = []
        self.marked = []

    async def get_unread_counts(self, platform):
        gate = asyncio.Event()
        holder = {}
        self.gates.append((gate, holder))
        await gate.wait()
        if "error" in holder:
            raise holder["error"]
        return holder["counts"]

    def release(self, index, counts=None, error=None):
        gate, holder = self.gates[index]
        if error is not None:
            holder["error"] = error
        else:
            holder["counts"] = counts
        gate.set()

    async def mark_read(self, platform, key):
        self.marked.append((platform, key))


class _CountingRelay:
    def __init__(self, counts=None):
        self.counts = counts or {}
        self.calls = 0

    async def get_unread_counts(self, platform):
        self.calls += 1
        return dict(self.counts)


@pytest.mark.asyncio
async def test_fetch_applies_counts(relay, fake_relay):
    fake_relay.counts = {"telegram": {"u1": 3}}
    sync = UnreadCounterSync("telegram", relay)

    counts = await sync.fetch_unread_counts()

    assert counts == {"u1": 3}
    assert sync.count_for("u1") == 3
    assert sync.count_for("u2") == 0
    assert sync.total() == 3


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_counts(relay, fake_relay):
    fake_relay.counts = {"viber": {"u1": 2}}
    sync = UnreadCounterSync("viber", relay)
    await sync.fetch_unread_counts()

    fake_relay.fail_status = 500
    assert await sync.fetch_unread_counts() == {"u1": 2}

    fake_relay.fail_status = None
    fake_relay.unreachable = True
    assert await sync.fetch_unread_counts() == {"u1": 2}


@pytest.mark.asyncio
async def test_stale_poll_response_is_dropped():
    relay = _GatedRelay()
    sync = UnreadCounterSync("telegram", relay)

    first = asyncio.create_task(sync.fetch_unread_counts())
    second = asyncio.create_task(sync.fetch_unread_counts())
    await asyncio.sleep(0)

    relay.release(1, {"u1": 1})
    await second
    relay.release(0, {"u1": 9})
    await first

    assert sync.counts == {"u1": 1}


@pytest.mark.asyncio
async def test_slow_polls_still_apply_when_each_finishes_after_next_is_issued():
    relay = _GatedRelay()
    sync = UnreadCounterSync("telegram", relay)

    tasks = [asyncio.create_task(sync.fetch_unread_counts())]
    await asyncio.sleep(0)
    for i in range(4):
        tasks.append(asyncio.create_task(sync.fetch_unread_counts()))
        await asyncio.sleep(0)
        relay.release(i, {"u1": i + 1})
        await tasks[i]
        assert sync.counts == {"u1": i + 1}

    relay.release(4, {"u1": 5})
    await tasks[4]

    assert sync.counts == {"u1": 5}


@pytest.mark.asyncio
async def test_failed_latest_poll_does_not_clear_counts():
    relay = _GatedRelay()
    sync = UnreadCounterSync("telegram", relay)
    sync.counts = {"u1": 4}

    task = asyncio.create_task(sync.fetch_unread_counts())
    await asyncio.sleep(0)
    relay.release(0, error=RelayError("boom"))
    await task

    assert sync.counts == {"u1": 4}


@pytest.mark.asyncio
async def test_mark_read_does_not_touch_local_counts(relay, fake_relay):
    sync = UnreadCounterSync("facebook", relay)
    sync.counts = {"u1": 5}

    responded = await sync.mark_read("u1")

    assert responded is True
    assert sync.counts == {"u1": 5}
    assert fake_relay.requests[-1] == ("POST", "/facebook/mark-read", {"sender": "u1"})


@pytest.mark.asyncio
async def test_mark_read_reports_unreachable_relay(relay, fake_relay):
    fake_relay.unreachable = True
    sync = UnreadCounterSync("facebook", relay)

    assert await sync.mark_read("u1") is False


@pytest.mark.asyncio
async def test_timer_polls_until_stopped():
    relay = _CountingRelay({"u1": 1})
    sync = UnreadCounterSync("telegram", relay, interval=0.01)

    sync.start()
    sync.start()  # second start is a no-op
    await asyncio.sleep(0.06)

    assert sync.is_running
    assert relay.calls >= 2
    assert sync.counts == {"u1": 1}

    await sync.stop()
    await asyncio.sleep(0.005)
    calls_after_stop = relay.calls
    await asyncio.sleep(0.03)

    assert not sync.is_running
    assert relay.calls == calls_after_stop
