"""
Unread Counter Sync

Keeps the per-conversation unread badges of one platform in step with the
relay, which is the source of truth. Counts are never derived locally.

Polling runs on a fixed timer while the platform inbox is mounted. Each tick
fires a fetch without waiting for the previous one, like a browser interval,
so slow responses can overlap. Every fetch takes a sequence number and a
response is applied only if no later fetch has been applied before it.
"""
import asyncio
import logging
from typing import Dict, Optional, Set

from app.services.relay_client import BackendRelayClient, RelayError

logger = logging.getLogger(__name__)


class UnreadCounterSync:
    """Unread counts for one platform"""

    def __init__(self, platform: str, relay: BackendRelayClient, interval: float = 15.0):
        self.platform = platform
        self.relay = relay
        self.interval = interval
        self.counts: Dict[str, int] = {}

        self._issued = 0
        self._applied = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def count_for(self, conversation_key: str) -> int:
        return self.counts.get(conversation_key, 0)

    def total(self) -> int:
        return sum(self.counts.values())

    async def fetch_unread_counts(self) -> Dict[str, int]:
        """
        Fetch counts from the relay and apply them.

        On transport failure or a non-2xx answer the previously held counts
        are kept as they are.
        """
        self._issued += 1
        sequence = self._issued

        try:
            counts = await self.relay.get_unread_counts(self.platform)
        except RelayError as e:
            logger.error(f"Failed to fetch {self.platform} unread counts: {e}")
            return self.counts

        if sequence <= self._applied:
            logger.debug(
                f"Dropping stale {self.platform} unread counts (poll {sequence}, applied {self._applied})"
            )
            return self.counts

        self._applied = sequence
        self.counts = counts
        return self.counts

    async def mark_read(self, conversation_key: str) -> bool:
        """
        Tell the relay the operator opened a conversation.

        No local update is made; the badge changes on the next fetch.
        Returns False only when the relay could not be reached.
        """
        try:
            await self.relay.mark_read(self.platform, conversation_key)
        except RelayError as e:
            logger.error(f"Failed to mark {self.platform}/{conversation_key} read: {e}")
            return e.status_code is not None
        logger.info(f"Marked {self.platform}/{conversation_key} read")
        return True

    # ============ Timer ============

    def start(self) -> None:
        """Start the polling timer (no-op when already running)"""
        if self.is_running:
            return
        self._timer = asyncio.create_task(self._tick_loop())
        logger.info(f"Unread polling started for {self.platform} every {self.interval}s")

    async def stop(self) -> None:
        """Cancel the polling timer; fetches already in flight finish on their own"""
        timer = self._timer
        self._timer = None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass
        logger.info(f"Unread polling stopped for {self.platform}")

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            task = asyncio.create_task(self.fetch_unread_counts())
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
