"""Path resolution and serialized folder creation on top of the drive API."""

import posixpath
import threading
from typing import TYPE_CHECKING, Optional

from common.constants import ANY_KIND, API_GET_BY_PATH, FOLDER_KIND
from common.logging_config import get_logger
from drive.cache import FolderCache
from drive.exceptions import NotFoundError
from drive.models import Node

if TYPE_CHECKING:
    from drive.client import DriveClient

logger = get_logger(__name__)


def normalize_path(path: str) -> str:
    """
    Normalize a drive path: leading slash, no trailing slash except for root.

    Args:
        path: Slash-delimited path

    Returns:
        Normalized path
    """
    if not path.startswith('/'):
        path = '/' + path
    if len(path) > 1 and path.endswith('/'):
        path = path[:-1]
    return path


class PathResolver:
    """
    Resolves slash-delimited paths to nodes and creates folder chains.

    Folder lookups are cached by normalized path. The client calls
    ``invalidate`` after every rename, move or trash, which drops the whole
    cache.
    """

    def __init__(self, client: 'DriveClient', cache: FolderCache):
        self._client = client
        self.cache = cache
        self._create_lock = threading.Lock()

    def invalidate(self) -> None:
        self.cache.clear()

    def get_by_path(self, full_path: str, kind: str = FOLDER_KIND, cancel: Optional[threading.Event] = None) -> Node:
        """
        Resolve a path to a node of the given kind.

        The get_by_path endpoint cannot find names with surrounding spaces,
        so a miss falls back to scanning the parent folder's listing.

        Args:
            full_path: Drive path
            kind: 'folder', 'file' or 'any'
            cancel: Optional cancel event

        Returns:
            Matching node

        Raises:
            NotFoundError: If no node of that kind exists at the path
        """
        full_path = normalize_path(full_path)
        if full_path == '/':
            return self._client.root_node

        if kind == FOLDER_KIND:
            cached = self.cache.get(full_path)
            if cached is not None:
                return cached

        data = {'drive_id': self._client.drive_id, 'file_path': full_path}
        try:
            node = self._client._json_request(API_GET_BY_PATH, data, Node, cancel=cancel)
        except NotFoundError:
            node = None

        if node is None or not self._matches(node, kind):
            parent, name = posixpath.split(full_path)
            parent_node = self.get_by_path(parent, FOLDER_KIND, cancel=cancel)
            node = self.find_name_node(parent_node.file_id, name, kind, cancel=cancel)

        if node.is_directory:
            self.cache.put(full_path, node)
        return node

    def find_name_node(self, node_id: str, name: str, kind: str, cancel: Optional[threading.Event] = None) -> Node:
        """Scan a folder's children for a name of the given kind."""
        for child in self._client.list_all(node_id, cancel=cancel):
            if child.name == name and self._matches(child, kind):
                return child
        raise NotFoundError(f'can\'t find "{name}", kind: "{kind}" under "{node_id}"')

    @staticmethod
    def _matches(node: Node, kind: str) -> bool:
        return kind == ANY_KIND or node.type == kind

    def _create_folder_internal(self, parent: str, name: str, cancel: Optional[threading.Event]) -> str:
        with self._create_lock:
            target = posixpath.join(parent, name)
            try:
                return self.get_by_path(target, FOLDER_KIND, cancel=cancel).file_id
            except NotFoundError:
                pass

            parent_node = self.get_by_path(parent, FOLDER_KIND, cancel=cancel)
            folder_id = self._client.create_folder(parent_node.file_id, name, cancel=cancel)
            self.cache.put(target, Node(file_id=folder_id, name=name, type=FOLDER_KIND, parent_file_id=parent_node.file_id))
            return folder_id

    def create_folder_recursively(self, full_path: str, cancel: Optional[threading.Event] = None) -> str:
        """
        Create every missing folder along a path.

        The lock is held per path segment (existence check plus create), never
        across the whole chain.

        Args:
            full_path: Drive path of the deepest folder

        Returns:
            Id of the deepest folder
        """
        full_path = normalize_path(full_path)
        if full_path == '/':
            return self._client.root_node.file_id

        parent = '/'
        folder_id = self._client.root_node.file_id
        for segment in full_path.strip('/').split('/'):
            if not segment:
                continue
            folder_id = self._create_folder_internal(parent, segment, cancel)
            parent = posixpath.join(parent, segment)
        logger.debug(f"Ensured folder chain [path={full_path}, file_id={folder_id}]")
        return folder_id
