"""Command handler functions for CLI operations."""

import functools
import os
import posixpath
from pathlib import Path
from typing import Callable, Optional

import httpx

from common.constants import ANY_KIND, FILE_KIND, FOLDER_KIND
from common.logging_config import get_logger
from cli.constants import SHARE_URL_PREFIX
from cli.models import (
    CopyCommand,
    GetCommand,
    InfoCommand,
    ListCommand,
    LoginCommand,
    MkdirCommand,
    MoveCommand,
    PutCommand,
    RemoveCommand,
    RenameCommand,
    ShareCommand,
)
from cli.utils import ProgressPrinter, format_file_size
from drive.client import DriveClient
from drive.config import Config
from drive.exceptions import (
    AlreadyExistsError,
    AuthExpiredError,
    DriveError,
    NotFoundError,
    OperationCancelledError,
    RateLimitedError,
    TransportError,
)

logger = get_logger(__name__)


_client: Optional[DriveClient] = None


def get_client() -> DriveClient:
    """
    Get or create the global connected DriveClient instance.

    Returns:
        DriveClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new DriveClient instance")
        client = DriveClient(Config())
        client.connect()
        _client = client
    return _client


def reset_client() -> None:
    """Drop the global client so the next command reconnects."""
    global _client
    if _client is not None:
        _client.close()
    _client = None


def format_error(error: Exception) -> str:
    """
    Map drive errors to user-friendly messages.

    Args:
        error: Exception raised by a drive call

    Returns:
        User-friendly error message
    """
    if isinstance(error, AuthExpiredError):
        return "Error: Not authenticated. Please run: login <refresh_token>"
    if isinstance(error, NotFoundError):
        return f"Error: Not found ({error})"
    if isinstance(error, AlreadyExistsError):
        return f"Error: Already exists ({error})"
    if isinstance(error, RateLimitedError):
        return "Error: Rate limited by the server. Please try again later."
    if isinstance(error, TransportError):
        return f"Error: Cannot reach the drive server ({error})"
    if isinstance(error, OperationCancelledError):
        return "Cancelled."
    return f"Error: {error}"


def _reports_errors(handler: Callable[..., str]) -> Callable[..., str]:
    """Turn drive and local IO failures into error strings."""

    @functools.wraps(handler)
    def wrapper(*args, **kwargs) -> str:
        try:
            return handler(*args, **kwargs)
        except DriveError as e:
            logger.warning(f"{handler.__name__} failed: {type(e).__name__}: {e}")
            return format_error(e)
        except OSError as e:
            logger.warning(f"{handler.__name__} failed with local IO error: {e}")
            return f"Error: {e}"

    return wrapper


def _split_remote(path: str) -> tuple[str, str]:
    """Split a drive path into (parent_dir, name)."""
    parent, name = posixpath.split(path.rstrip('/'))
    return parent or '/', name


@_reports_errors
def handle_login(cmd: LoginCommand, config: Optional[Config] = None, session: Optional[httpx.Client] = None) -> str:
    """
    Handle 'login' command.

    Args:
        cmd: LoginCommand with refresh token
        config: Optional Config for dependency injection (testing)
        session: Optional HTTP client for dependency injection (testing)

    Returns:
        Success or error message
    """
    global _client
    config = config or Config()
    config.set_refresh_token(cmd.refresh_token)
    reset_client()

    client = DriveClient(config, session=session)
    drive_id = client.connect()
    _client = client
    logger.info("Login successful")
    return f"Login successful!\nDrive ID: {drive_id}\nRefresh token saved to config."


@_reports_errors
def handle_list(cmd: ListCommand, client: Optional[DriveClient] = None) -> str:
    """
    Handle 'ls' command.

    Args:
        cmd: ListCommand with folder path
        client: Optional DriveClient for dependency injection (testing)

    Returns:
        Formatted folder listing
    """
    if client is None:
        client = get_client()
    folder = client.get_by_path(cmd.path, FOLDER_KIND)
    nodes = client.list_all(folder.file_id)
    if not nodes:
        return f"{cmd.path} is empty"

    output = [f"{len(nodes)} item(s) in {cmd.path}:"]
    for node in sorted(nodes, key=lambda n: (not n.is_directory, n.name)):
        if node.is_directory:
            output.append(f"  d  {'-':>12}  {node.name}/")
        else:
            output.append(f"  -  {format_file_size(node.size or 0):>12}  {node.name}")
    return '\n'.join(output)


@_reports_errors
def handle_info(cmd: InfoCommand, client: Optional[DriveClient] = None) -> str:
    if client is None:
        client = get_client()
    space = client.about()
    return f"Used: {format_file_size(space.used_size)} / {format_file_size(space.total_size)}"


@_reports_errors
def handle_mkdir(cmd: MkdirCommand, client: Optional[DriveClient] = None) -> str:
    if client is None:
        client = get_client()
    folder_id = client.create_folder_recursively(cmd.path)
    return f"Folder ready: {cmd.path} (ID: {folder_id[:8]}...)"


@_reports_errors
def handle_put(cmd: PutCommand, client: Optional[DriveClient] = None) -> str:
    """
    Handle 'put' command.

    Args:
        cmd: PutCommand with local file and destination folder
        client: Optional DriveClient for dependency injection (testing)

    Returns:
        Success or error message with upload details
    """
    local_path = Path(cmd.local_path).expanduser()
    if not local_path.is_file():
        return f"Error: File not found: {cmd.local_path}"
    if client is None:
        client = get_client()

    size = local_path.stat().st_size
    logger.info(f"Executing put command: {local_path} -> {cmd.remote_dir} [size={size}]")
    parent_id = client.create_folder_recursively(cmd.remote_dir)

    with open(local_path, 'rb') as f, ProgressPrinter("Uploading", local_path.name) as progress:
        file_id = client.create_file(parent_id, local_path.name, f, size=size, on_progress=progress)

    mode = "rapid upload, no data sent" if size > 0 and progress.transferred == 0 else "uploaded"
    return f"Added: {local_path.name} (ID: {file_id[:8]}..., Size: {format_file_size(size)}, {mode})"


@_reports_errors
def handle_get(cmd: GetCommand, client: Optional[DriveClient] = None) -> str:
    """
    Handle 'get' command.

    Args:
        cmd: GetCommand with drive path and optional local path
        client: Optional DriveClient for dependency injection (testing)

    Returns:
        Success or error message with download details
    """
    if client is None:
        client = get_client()
    node = client.get_by_path(cmd.remote_path, FILE_KIND)

    output_file = Path(cmd.local_path).expanduser() if cmd.local_path else Path.cwd() / node.name
    if output_file.is_dir():
        output_file = output_file / node.name
    output_file.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(output_file, 'wb') as f, ProgressPrinter("Downloading", node.name) as progress:
            written = client.download(node.file_id, f, on_progress=progress)
    except DriveError:
        if output_file.exists():
            os.remove(output_file)
        raise
    return f"Downloaded: {node.name} ({format_file_size(written)})\nSaved to: {output_file.absolute()}"


@_reports_errors
def handle_move(cmd: MoveCommand, client: Optional[DriveClient] = None) -> str:
    if client is None:
        client = get_client()
    node = client.get_by_path(cmd.path, ANY_KIND)
    dst = client.get_by_path(cmd.dst_dir, FOLDER_KIND)
    client.move(node.file_id, dst.file_id, cmd.new_name or node.name)
    return f"Moved: {cmd.path} -> {posixpath.join(cmd.dst_dir, cmd.new_name or node.name)}"


@_reports_errors
def handle_copy(cmd: CopyCommand, client: Optional[DriveClient] = None) -> str:
    if client is None:
        client = get_client()
    node = client.get_by_path(cmd.path, ANY_KIND)
    dst = client.get_by_path(cmd.dst_dir, FOLDER_KIND)
    new_id = client.copy(node.file_id, dst.file_id, cmd.new_name or node.name)
    return f"Copied: {cmd.path} -> {posixpath.join(cmd.dst_dir, cmd.new_name or node.name)} (ID: {new_id[:8]}...)"


@_reports_errors
def handle_rename(cmd: RenameCommand, client: Optional[DriveClient] = None) -> str:
    if client is None:
        client = get_client()
    node = client.get_by_path(cmd.path, ANY_KIND)
    client.update(node.file_id, cmd.new_name)
    parent, _ = _split_remote(cmd.path)
    return f"Renamed: {cmd.path} -> {posixpath.join(parent, cmd.new_name)}"


@_reports_errors
def handle_remove(cmd: RemoveCommand, client: Optional[DriveClient] = None) -> str:
    if client is None:
        client = get_client()
    node = client.get_by_path(cmd.path, ANY_KIND)
    client.remove(node.file_id)
    return f"Moved to recycle bin: {cmd.path}"


@_reports_errors
def handle_share(cmd: ShareCommand, client: Optional[DriveClient] = None) -> str:
    """
    Handle 'share' command.

    Args:
        cmd: ShareCommand with path, optional password and lifetime in days
        client: Optional DriveClient for dependency injection (testing)

    Returns:
        Share link details
    """
    if client is None:
        client = get_client()
    node = client.get_by_path(cmd.path, ANY_KIND)
    link = client.create_share_link([node.file_id], pwd=cmd.password, expires_in=cmd.days * 24 * 3600)

    output = [f"Shared: {cmd.path}", f"Link: {SHARE_URL_PREFIX}{link.share_id}"]
    if link.share_pwd:
        output.append(f"Password: {link.share_pwd}")
    output.append(f"Expires: {link.expiration or 'never'}")
    return '\n'.join(output)
