"""
Message Store Reader

Reads the shared Supabase message table for one platform. The table is
append-only from the console's point of view.
"""
import asyncio
import logging
from typing import Any, List, Optional

from supabase import create_client, Client

from app.config.settings import Settings, settings as default_settings
from app.models.message import Message

logger = logging.getLogger(__name__)


class MessageStoreError(Exception):
    """Raised when the message table cannot be queried"""
    pass


class MessageStoreReader:
    """Supabase-backed reader for pony_messages"""

    def __init__(self, config: Optional[Settings] = None, client: Optional[Any] = None):
        self.config = config or default_settings
        self.table = self.config.MESSAGES_TABLE
        self._client = client

    @property
    def client(self) -> Client:
        """Get Supabase client with error handling"""
        if self._client is None:
            if not self.config.is_supabase_configured:
                raise MessageStoreError("Supabase client not initialized. Check configuration.")
            self._client = create_client(self.config.SUPABASE_URL, self.config.supabase_key)
        return self._client

    async def fetch_messages(self, platform: str) -> List[Message]:
        """
        Fetch every message of a platform, oldest first.

        Raises:
            MessageStoreError: If the query fails
        """
        return await self._run(platform, cursor=None)

    async def fetch_messages_since(self, platform: str, cursor: str) -> List[Message]:
        """
        Fetch messages with created_at >= cursor, oldest first.

        The bound is inclusive so rows sharing the cursor timestamp are not
        skipped; callers merge by id.
        """
        return await self._run(platform, cursor=cursor)

    async def _run(self, platform: str, cursor: Optional[str]) -> List[Message]:
        def query():
            builder = self.client.table(self.table).select("*").eq("platform", platform)
            if cursor:
                builder = builder.gte("created_at", cursor)
            return builder.order("created_at", desc=False).execute()

        try:
            response = await asyncio.to_thread(query)
        except MessageStoreError:
            raise
        except Exception as e:
            logger.error(f"Error fetching {platform} messages: {e}")
            raise MessageStoreError(f"Failed to fetch {platform} messages: {str(e)}")

        rows = response.data or []
        messages = []
        for row in rows:
            try:
                messages.append(Message(**row))
            except Exception as e:
                logger.warning(f"Skipping malformed {platform} row {row.get('id')}: {e}")

        logger.info(f"Fetched {len(messages)} {platform} messages" + (f" since {cursor}" if cursor else ""))
        return messages
