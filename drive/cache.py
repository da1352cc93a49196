"""Thread-safe LRU cache of resolved folder nodes keyed by normalized path."""

import threading
from collections import OrderedDict
from typing import Optional

from common.constants import DEFAULT_FOLDER_CACHE_SIZE
from common.logging_config import get_logger
from drive.models import Node

logger = get_logger(__name__)


class FolderCache:
    """
    Bounded cache of folder lookups.

    Entries are never updated in place: any mutation on the drive clears the
    whole cache so a lookup can never return a moved or trashed folder.
    """

    def __init__(self, max_size: int = DEFAULT_FOLDER_CACHE_SIZE):
        if max_size <= 0:
            raise ValueError(f"cache size must be positive, got {max_size}")
        self._max_size = max_size
        self._entries: "OrderedDict[str, Node]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[Node]:
        with self._lock:
            node = self._entries.get(path)
            if node is not None:
                self._entries.move_to_end(path)
            return node

    def put(self, path: str, node: Node) -> None:
        with self._lock:
            self._entries[path] = node
            self._entries.move_to_end(path)
            while len(self._entries) > self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted folder cache entry [path={evicted}]")

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.debug(f"Folder cache cleared [entries={count}]")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._entries
