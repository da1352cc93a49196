"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class LoginCommand:
    """Save a refresh token and connect."""

    refresh_token: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class ListCommand:
    """List a drive folder."""

    path: str = "/"
    command: Literal["ls"] = "ls"


@dataclass(frozen=True)
class InfoCommand:
    """Show drive space usage."""

    command: Literal["info"] = "info"


@dataclass(frozen=True)
class MkdirCommand:
    """Create a folder chain."""

    path: str
    command: Literal["mkdir"] = "mkdir"


@dataclass(frozen=True)
class PutCommand:
    """Upload a local file into a drive folder."""

    local_path: str
    remote_dir: str = "/"
    command: Literal["put"] = "put"


@dataclass(frozen=True)
class GetCommand:
    """Download a drive file."""

    remote_path: str
    local_path: str | None = None
    command: Literal["get"] = "get"


@dataclass(frozen=True)
class MoveCommand:
    """Move a node into another folder."""

    path: str
    dst_dir: str
    new_name: str | None = None
    command: Literal["mv"] = "mv"


@dataclass(frozen=True)
class CopyCommand:
    """Copy a node into another folder."""

    path: str
    dst_dir: str
    new_name: str | None = None
    command: Literal["cp"] = "cp"


@dataclass(frozen=True)
class RenameCommand:
    """Rename a node in place."""

    path: str
    new_name: str
    command: Literal["rename"] = "rename"


@dataclass(frozen=True)
class RemoveCommand:
    """Trash a node."""

    path: str
    command: Literal["rm"] = "rm"


@dataclass(frozen=True)
class ShareCommand:
    """Create a share link for a node."""

    path: str
    password: str = ""
    days: int = 0
    command: Literal["share"] = "share"


CommandRequest = (
    LoginCommand
    | ListCommand
    | InfoCommand
    | MkdirCommand
    | PutCommand
    | GetCommand
    | MoveCommand
    | CopyCommand
    | RenameCommand
    | RemoveCommand
    | ShareCommand
)
