from __future__ import annotations

from collections.abc import AsyncGenerator

from rq import Queue

from core.db.session import get_async_session
from core.queue import get_queue


async def get_db_session() -> AsyncGenerator:
    async for session in get_async_session():
        yield session


def get_export_queue() -> Queue:
    return get_queue()
