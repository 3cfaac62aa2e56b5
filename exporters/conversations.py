from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Set

from .base import sanitize_filename
from .metadata import AttachmentRecord, FullRecord

logger = logging.getLogger(__name__)

SENT_DIRECTORY = "sent"
RECEIVED_DIRECTORY = "received"
DUPLICATE_NAME_SUFFIX = "(2)"


class ConversationRegistry:
    """Thread id to directory name mapping for a single export run.

    Each thread keeps the first name it was given, and no two threads share
    a name: a clash is resolved by appending "(2)" until the name is free.
    """

    def __init__(self) -> None:
        self._names: Dict[int, str] = {}
        self._used: Set[str] = set()

    def directory_name(self, thread_id: int, chatpartner: str | None) -> str:
        existing = self._names.get(thread_id)
        if existing is not None:
            return existing
        name = sanitize_filename(chatpartner)
        if not name:
            name = f"Contact {thread_id}"
        while name in self._used:
            name += DUPLICATE_NAME_SUFFIX
        self._names[thread_id] = name
        self._used.add(name)
        return name

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._names

    def __len__(self) -> int:
        return len(self._names)


def _ensure_directory(path: Path) -> None:
    if path.is_dir():
        return
    logger.debug(f"Creating directory '{path}'")
    path.mkdir()


def conversation_directory(base_dir: Path, registry: ConversationRegistry, record: AttachmentRecord) -> Path:
    """Return (creating as needed) the directory an attachment is written to.

    Records without conversation details go straight into base_dir.
    Raises OSError when a directory cannot be created.
    """
    if not isinstance(record, FullRecord) or not record.has_conversation:
        return base_dir

    name = registry.directory_name(record.thread_id, record.chatpartner)  # type: ignore[arg-type]
    conversation_dir = base_dir / name
    _ensure_directory(conversation_dir)

    target_dir = conversation_dir / (SENT_DIRECTORY if record.outgoing else RECEIVED_DIRECTORY)
    _ensure_directory(target_dir)
    return target_dir
