"""HTTP client for the drive API."""

import io
import threading
import time
import zipfile
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Dict, Iterator, List, Optional, Tuple, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from common.constants import (
    API_ALBUMS_INFO,
    API_CANCEL_SHARE_LINK,
    API_COPY,
    API_CREATE,
    API_CREATE_SHARE_LINK,
    API_GET,
    API_GET_DOWNLOAD_URL,
    API_GET_SHARE_LINK,
    API_GET_SHARE_LINK_BY_ANONYMOUS,
    API_GET_SHARE_TOKEN,
    API_LIST,
    API_LIST_SHARE_LINKS,
    API_MOVE,
    API_PERSONAL_INFO,
    API_TRASH,
    API_UPDATE,
    API_USER_INFO,
    FOLDER_KIND,
    LIST_PAGE_LIMIT,
    REFERER,
    ROOT_ID,
    USER_AGENT,
)
from common.logging_config import get_logger
from drive.cache import FolderCache
from drive.config import Config
from drive.credentials import CredentialHolder
from drive.exceptions import (
    AlreadyExistsError,
    AuthExpiredError,
    DriveError,
    HTTPStatusError,
    MissingFieldsError,
    NotFoundError,
    ProtocolError,
    RateLimitedError,
    RootOperationError,
    TransportError,
    check_cancelled,
)
from drive.models import (
    AlbumInfo,
    DownloadUrl,
    ListNodes,
    ListSharedFiles,
    Node,
    NodeId,
    PersonalInfo,
    PersonalSpaceInfo,
    SharedFile,
    ShareToken,
    UserInfo,
)
from drive.proof import calc_sha1, derive_proof
from drive.resolver import PathResolver
from drive.uploader import UploadOrchestrator

logger = get_logger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)

ProgressCallback = Callable[[int, int], None]


class Pager:
    """Walks a folder listing page by page using the list marker."""

    def __init__(self, client: 'DriveClient', node_id: str, limit: int = LIST_PAGE_LIMIT):
        self._client = client
        self._param = {
            'drive_id': client.drive_id,
            'parent_file_id': node_id,
            'limit': limit,
            'marker': '',
        }
        self._last: Optional[ListNodes] = None

    def has_next(self) -> bool:
        return self._last is None or self._last.next_marker != ''

    def next_page(self, cancel: Optional[threading.Event] = None) -> List[Node]:
        self._last = self._client._json_request(API_LIST, self._param, ListNodes, cancel=cancel)
        self._param['marker'] = self._last.next_marker
        return self._last.items

    def __iter__(self) -> Iterator[Node]:
        while self.has_next():
            yield from self.next_page()


class DriveClient:
    """HTTP client for the drive API with one-shot credential refresh."""

    def __init__(
        self,
        config: Config,
        session: Optional[httpx.Client] = None,
        credentials: Optional[CredentialHolder] = None,
    ):
        """
        Initialize drive client.

        Args:
            config: Configuration instance
            session: Optional HTTP client (tests inject a mock transport here)
            credentials: Optional credential holder; built from config by default
        """
        self.config = config
        self.session = session or httpx.Client(timeout=config.get_timeout())
        self.credentials = credentials or CredentialHolder(
            config.get_refresh_token() or '',
            on_refresh=config.set_refresh_token,
        )
        self.resolver = PathResolver(self, FolderCache(config.get_folder_cache_size()))
        self.drive_id = ''
        self.root_node = Node(file_id=ROOT_ID, name='root', type=FOLDER_KIND)
        logger.info(f"Initialized DriveClient [album={config.is_album()}]")

    def __str__(self) -> str:
        return f"DriveClient{{drive_id: {self.drive_id}}}"

    def connect(self, cancel: Optional[threading.Event] = None) -> str:
        """
        Resolve the drive id the rest of the API calls operate on.

        Returns:
            Drive id
        """
        try:
            if self.config.is_album():
                album = self._json_request(API_ALBUMS_INFO, {}, AlbumInfo, cancel=cancel)
                self.drive_id = album.data.drive_id
            else:
                user = self._json_request(API_USER_INFO, {}, UserInfo, cancel=cancel)
                self.drive_id = user.default_drive_id
        except DriveError as e:
            logger.error(f"Failed to get drive id: {e}")
            raise
        logger.info(f"Connected [drive_id={self.drive_id}]")
        return self.drive_id

    def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        cancel: Optional[threading.Event] = None,
        **kwargs,
    ) -> httpx.Response:
        """
        Send one HTTP request with the browser headers the backend expects.

        Raises:
            OperationCancelledError: If cancel is set
            TransportError: On connection or timeout failures
        """
        check_cancelled(cancel, f"{method} {url}")
        request_headers = {'Referer': REFERER, 'User-Agent': USER_AGENT}
        if headers:
            request_headers.update(headers)

        logger.debug(f"Making request: {method} {url}")
        try:
            response = self.session.request(method, url, headers=request_headers, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"Network error: {method} {url} error={type(e).__name__}")
            raise TransportError(f'failed to request "{url}": {e}') from e
        logger.debug(f"Response received: {method} {url} status={response.status_code}")
        return response

    def _json_request(
        self,
        url: str,
        payload: Union[dict, Callable[[str], dict], None],
        response_model: Optional[Type[ModelT]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[ModelT]:
        """
        POST a JSON body with the bearer credential and parse the response.

        The call is attempted at most twice: the second attempt only happens
        after a successful refresh triggered by a 401 on the first. A callable
        payload is rebuilt for every attempt from the access token sent with it.

        Args:
            url: Absolute API endpoint
            payload: JSON body, or a builder taking the access token
            response_model: Model to validate the response with, or None to ignore it
            cancel: Optional cancel event

        Returns:
            Parsed response model or None

        Raises:
            DriveError: Subclass matching the failure
        """
        if self.credentials.is_expired():
            self.credentials.refresh(self.session, timeout=self.config.get_timeout())

        def send() -> Tuple[str, httpx.Response]:
            token = self.credentials.access_token
            body = payload(token) if callable(payload) else payload
            response = self._request(
                'POST',
                url,
                headers={'Authorization': f'Bearer {token}'},
                json=body if body is not None else {},
                cancel=cancel,
            )
            return token, response

        token, response = send()
        if response.status_code == 401:
            logger.warning(f"Access token rejected, refreshing once [url={url}]")
            self.credentials.refresh(self.session, stale_token=token, timeout=self.config.get_timeout())
            _, response = send()

        # a second 401 maps to AuthExpiredError
        self._raise_for_status(response, url)
        if response_model is None:
            return None
        try:
            return response_model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ProtocolError(f'failed to parse response of "{url}": {e}') from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, url: str) -> None:
        """Map an error response to the matching DriveError."""
        status = response.status_code
        if status < 400:
            return

        code = None
        detail = response.text
        try:
            body = response.json()
            code = body.get('code')
            detail = body.get('message', detail)
        except (ValueError, AttributeError):
            pass

        message = f'failed to request "{url}", got "{status}"'
        if code:
            message = f"{message} ({code}: {detail})"
        logger.warning(f"Client error: POST {url} status={status} code={code}")

        if status == 401:
            raise AuthExpiredError(message, code=code)
        if status == 404:
            raise NotFoundError(message, code=code)
        if status == 409:
            raise AlreadyExistsError(message)
        if status == 429:
            raise RateLimitedError(message, code=code)
        raise HTTPStatusError(message, status, code)

    def _check_root(self, node_id: str) -> None:
        if not node_id:
            raise RootOperationError("empty node id")
        if node_id == ROOT_ID:
            raise RootOperationError("can't operate on root")

    def about(self, cancel: Optional[threading.Event] = None) -> PersonalSpaceInfo:
        result = self._json_request(API_PERSONAL_INFO, {}, PersonalInfo, cancel=cancel)
        return result.personal_space_info

    def get(self, node_id: str, cancel: Optional[threading.Event] = None) -> Node:
        """
        Get a node by id.

        Args:
            node_id: Node id

        Returns:
            Node metadata
        """
        data = {'drive_id': self.drive_id, 'file_id': node_id}
        return self._json_request(API_GET, data, Node, cancel=cancel)

    def get_by_path(self, full_path: str, kind: str = FOLDER_KIND, cancel: Optional[threading.Event] = None) -> Node:
        return self.resolver.get_by_path(full_path, kind, cancel=cancel)

    def list(self, node_id: str) -> Pager:
        return Pager(self, node_id)

    def list_all(self, node_id: str, cancel: Optional[threading.Event] = None) -> List[Node]:
        """
        List every child of a folder, following list markers.

        Args:
            node_id: Folder node id

        Returns:
            All child nodes
        """
        pager = self.list(node_id)
        nodes: List[Node] = []
        while pager.has_next():
            nodes.extend(pager.next_page(cancel=cancel))
        return nodes

    def create_folder(self, parent_id: str, name: str, cancel: Optional[threading.Event] = None) -> str:
        """
        Create a folder under a parent.

        Returns:
            New folder id

        Raises:
            MissingFieldsError: If parent_id or name is empty
        """
        if not parent_id or not name:
            raise MissingFieldsError()

        body = {
            'drive_id': self.drive_id,
            'check_name_mode': 'refuse',
            'name': name,
            'parent_file_id': parent_id,
            'type': FOLDER_KIND,
        }
        result = self._json_request(API_CREATE, body, NodeId, cancel=cancel)
        logger.info(f"Created folder [name={name}, parent={parent_id}, file_id={result.file_id}]")
        return result.file_id

    def create_folder_recursively(self, full_path: str, cancel: Optional[threading.Event] = None) -> str:
        return self.resolver.create_folder_recursively(full_path, cancel=cancel)

    def move(self, node_id: str, dst_parent_id: str, dst_name: str, cancel: Optional[threading.Event] = None) -> str:
        """Move (and optionally rename) a node. Returns the node id."""
        self._check_root(node_id)
        body = {
            'drive_id': self.drive_id,
            'file_id': node_id,
            'to_parent_file_id': dst_parent_id,
            'new_name': dst_name,
        }
        try:
            result = self._json_request(API_MOVE, body, NodeId, cancel=cancel)
        finally:
            self.resolver.invalidate()
        return result.file_id

    def copy(self, node_id: str, dst_parent_id: str, dst_name: str, cancel: Optional[threading.Event] = None) -> str:
        """Copy a node. Returns the new node id."""
        body = {
            'drive_id': self.drive_id,
            'file_id': node_id,
            'to_parent_file_id': dst_parent_id,
            'new_name': dst_name,
        }
        result = self._json_request(API_COPY, body, NodeId, cancel=cancel)
        return result.file_id

    def update(self, node_id: str, name: str, cancel: Optional[threading.Event] = None) -> str:
        """Rename a node. Returns the node id."""
        self._check_root(node_id)
        body = {'drive_id': self.drive_id, 'file_id': node_id, 'name': name}
        try:
            result = self._json_request(API_UPDATE, body, NodeId, cancel=cancel)
        finally:
            self.resolver.invalidate()
        return result.file_id

    def remove(self, node_id: str, cancel: Optional[threading.Event] = None) -> None:
        """Move a node to the recycle bin."""
        self._check_root(node_id)
        body = {'drive_id': self.drive_id, 'file_id': node_id}
        try:
            self._json_request(API_TRASH, body, None, cancel=cancel)
        finally:
            self.resolver.invalidate()
        logger.info(f"Trashed node [file_id={node_id}]")

    def _get_download_url(self, node_id: str, cancel: Optional[threading.Event] = None) -> DownloadUrl:
        data = {'drive_id': self.drive_id, 'file_id': node_id}
        return self._json_request(API_GET_DOWNLOAD_URL, data, DownloadUrl, cancel=cancel)

    def _stream_to(
        self,
        url: str,
        dest: BinaryIO,
        headers: Optional[Dict[str, str]],
        cancel: Optional[threading.Event],
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        check_cancelled(cancel, f"GET {url}")
        request_headers = {'Referer': REFERER, 'User-Agent': USER_AGENT}
        request_headers.update(headers or {})
        written = 0
        try:
            with self.session.stream('GET', url, headers=request_headers) as response:
                if response.status_code >= 400:
                    response.read()
                    self._raise_for_status(response, url)
                total = int(response.headers.get('Content-Length', 0))
                for chunk in response.iter_bytes():
                    check_cancelled(cancel, f"next chunk of {url}")
                    dest.write(chunk)
                    written += len(chunk)
                    if on_progress is not None:
                        on_progress(written, total)
        except httpx.TransportError as e:
            raise TransportError(f'failed to download "{url}": {e}') from e
        return written

    def download(
        self,
        node_id: str,
        dest: BinaryIO,
        headers: Optional[Dict[str, str]] = None,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Download a file's content into a writable binary stream.

        Live photos (.livp) have no single url; their streams are bundled
        into a zip archive written to dest.

        Args:
            node_id: File node id
            dest: Writable binary stream
            headers: Extra headers (e.g. Range)
            cancel: Optional cancel event
            on_progress: Called with (bytes_written, total_bytes)

        Returns:
            Number of bytes written
        """
        self._check_root(node_id)
        download_url = self._get_download_url(node_id, cancel=cancel)

        url = download_url.internal_url if self.config.use_internal_url() else download_url.url
        if url:
            return self._stream_to(url, dest, headers, cancel, on_progress)

        if download_url.streams_url:
            buffer = io.BytesIO()
            with zipfile.ZipFile(buffer, 'w') as archive:
                for stream_type, stream_url in download_url.streams_url.items():
                    entry = io.BytesIO()
                    self._stream_to(stream_url, entry, headers, cancel)
                    archive.writestr(f"output.{stream_type}", entry.getvalue())
            data = buffer.getvalue()
            dest.write(data)
            return len(data)

        raise ProtocolError(f'failed to open "{node_id}": no download url')

    def upload_part(
        self,
        url: str,
        content: Iterator[bytes],
        length: int,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        PUT one part's bytes to its pre-signed url.

        The url carries its own authorization, no bearer header is sent.

        Raises:
            TransportError: On network failure
            HTTPStatusError: On any non-2xx answer
        """
        check_cancelled(cancel, "part upload")
        try:
            response = self.session.put(
                url,
                content=content,
                headers={'Content-Length': str(length)},
                timeout=self.config.get_upload_timeout(),
            )
        except httpx.TransportError as e:
            raise TransportError(f"failed to upload part: {e}") from e
        if not 200 <= response.status_code < 300:
            logger.warning(f"Part upload rejected [status={response.status_code}]")
            raise HTTPStatusError(f'failed to upload part, got "{response.status_code}"', response.status_code)

    def create_file(
        self,
        parent_id: str,
        name: str,
        stream: BinaryIO,
        size: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Upload a file, trying rapid upload first.

        The content hash and proof code are computed from the stream; empty
        files skip both and always go through the part upload path. The proof
        is derived again for every handshake attempt from the access token
        that attempt carries.

        Args:
            parent_id: Destination folder id
            name: File name
            stream: Seekable binary stream positioned anywhere
            size: File size, measured from the stream when omitted
            cancel: Optional cancel event
            on_progress: Called with (bytes_uploaded, total_bytes)

        Returns:
            Created file id

        Raises:
            AlreadyExistsError: If the name is taken under parent_id
            DriveError: On any other failure
        """
        check_cancelled(cancel, f"upload of {name}")
        if size is None:
            size = stream.seek(0, io.SEEK_END)
            stream.seek(0)

        content_hash = ''
        proof_source = None
        if size > 0:
            content_hash = calc_sha1(stream)

            def proof_source(token: str) -> str:
                return derive_proof(token, size, stream).sample_b64

        orchestrator = UploadOrchestrator(
            self,
            parent_id=parent_id,
            name=name,
            stream=stream,
            size=size,
            content_hash=content_hash,
            proof_source=proof_source,
        )
        return orchestrator.run(cancel=cancel, on_progress=on_progress)

    def create_file_with_proof(
        self,
        parent_id: str,
        name: str,
        stream: BinaryIO,
        size: int,
        content_hash: str,
        proof_code: str,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Upload a file with a precomputed content hash and proof code."""
        orchestrator = UploadOrchestrator(
            self,
            parent_id=parent_id,
            name=name,
            stream=stream,
            size=size,
            content_hash=content_hash,
            proof_code=proof_code,
        )
        return orchestrator.run(cancel=cancel, on_progress=on_progress)

    def create_share_link(
        self,
        file_ids: List[str],
        pwd: str = '',
        expires_in: int = 0,
        cancel: Optional[threading.Event] = None,
    ) -> SharedFile:
        """
        Create a share link.

        Args:
            file_ids: Node ids to share
            pwd: Optional share password
            expires_in: Lifetime in seconds, 0 for no expiry

        Returns:
            Created share link
        """
        expiration = ''
        if expires_in > 0:
            expire_at = datetime.fromtimestamp(time.time() + expires_in, tz=timezone.utc)
            expiration = expire_at.strftime('%Y-%m-%dT%H:%M:%S') + '.999Z'
        body = {
            'share_pwd': pwd,
            'drive_id': self.drive_id,
            'file_id_list': list(file_ids),
            'expiration': expiration,
        }
        return self._json_request(API_CREATE_SHARE_LINK, body, SharedFile, cancel=cancel)

    def get_share_info(self, share_id: str, cancel: Optional[threading.Event] = None) -> SharedFile:
        return self._json_request(API_GET_SHARE_LINK, {'share_id': share_id}, SharedFile, cancel=cancel)

    def get_share_token(self, share_id: str, pwd: str = '', cancel: Optional[threading.Event] = None) -> str:
        body = {'share_id': share_id}
        if pwd:
            body['share_pwd'] = pwd
        result = self._json_request(API_GET_SHARE_TOKEN, body, ShareToken, cancel=cancel)
        return result.share_token

    def cancel_share_link(self, share_id: str, cancel: Optional[threading.Event] = None) -> None:
        self._json_request(API_CANCEL_SHARE_LINK, {'share_id': share_id}, None, cancel=cancel)
        logger.info(f"Cancelled share link [share_id={share_id}]")

    def get_share_link_by_anonymous(self, share_id: str, cancel: Optional[threading.Event] = None) -> Tuple[str, str]:
        """Returns (expiration, creator) of a share link."""
        result = self._json_request(API_GET_SHARE_LINK_BY_ANONYMOUS, {'share_id': share_id}, SharedFile, cancel=cancel)
        return result.expiration, result.creator

    def list_share_links(self, cancel: Optional[threading.Event] = None) -> List[SharedFile]:
        """List every share link of the user, following list markers."""
        body = {
            'limit': LIST_PAGE_LIMIT,
            'order_by': 'share_name',
            'order_direction': 'ASC',
            'include_cancelled': False,
        }
        links: List[SharedFile] = []
        while True:
            page = self._json_request(API_LIST_SHARE_LINKS, body, ListSharedFiles, cancel=cancel)
            links.extend(page.items)
            if not page.next_marker:
                break
            body['marker'] = page.next_marker
        return links

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
