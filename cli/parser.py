"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0], tokens[1:]
    parser = _PARSERS.get(command_name)
    if parser is None:
        raise ParseError(f"Unknown command: {command_name}")
    return parser(args)


def _expect(name: str, args: list[str], minimum: int, maximum: int, usage: str) -> None:
    if not minimum <= len(args) <= maximum:
        raise ParseError(f"{name} usage: {name} {usage}")


def _parse_login(args: list[str]) -> LoginCommand:
    """Parse 'login <refresh_token>' command."""
    _expect("login", args, 1, 1, "<refresh_token>")
    return LoginCommand(refresh_token=args[0])


def _parse_ls(args: list[str]) -> ListCommand:
    """Parse 'ls [path]' command."""
    _expect("ls", args, 0, 1, "[path]")
    return ListCommand(path=args[0]) if args else ListCommand()


def _parse_info(args: list[str]) -> InfoCommand:
    _expect("info", args, 0, 0, "")
    return InfoCommand()


def _parse_mkdir(args: list[str]) -> MkdirCommand:
    """Parse 'mkdir <path>' command."""
    _expect("mkdir", args, 1, 1, "<path>")
    return MkdirCommand(path=args[0])


def _parse_put(args: list[str]) -> PutCommand:
    """Parse 'put <local_file> [remote_dir]' command."""
    _expect("put", args, 1, 2, "<local_file> [remote_dir]")
    if len(args) == 2:
        return PutCommand(local_path=args[0], remote_dir=args[1])
    return PutCommand(local_path=args[0])


def _parse_get(args: list[str]) -> GetCommand:
    """Parse 'get <remote_path> [local_path]' command."""
    _expect("get", args, 1, 2, "<remote_path> [local_path]")
    return GetCommand(remote_path=args[0], local_path=args[1] if len(args) > 1 else None)


def _parse_move(args: list[str]) -> MoveCommand:
    """Parse 'mv <path> <dst_dir> [new_name]' command."""
    _expect("mv", args, 2, 3, "<path> <dst_dir> [new_name]")
    return MoveCommand(path=args[0], dst_dir=args[1], new_name=args[2] if len(args) > 2 else None)


def _parse_copy(args: list[str]) -> CopyCommand:
    """Parse 'cp <path> <dst_dir> [new_name]' command."""
    _expect("cp", args, 2, 3, "<path> <dst_dir> [new_name]")
    return CopyCommand(path=args[0], dst_dir=args[1], new_name=args[2] if len(args) > 2 else None)


def _parse_rename(args: list[str]) -> RenameCommand:
    _expect("rename", args, 2, 2, "<path> <new_name>")
    if "/" in args[1]:
        raise ParseError("rename new name must not contain '/', use mv to move")
    return RenameCommand(path=args[0], new_name=args[1])


def _parse_remove(args: list[str]) -> RemoveCommand:
    _expect("rm", args, 1, 1, "<path>")
    if args[0].strip("/") == "":
        raise ParseError("rm cannot remove the root folder")
    return RemoveCommand(path=args[0])


def _parse_share(args: list[str]) -> ShareCommand:
    """Parse 'share <path> [password] [days]' command."""
    _expect("share", args, 1, 3, "<path> [password] [days]")
    password = args[1] if len(args) > 1 else ""
    days = 0
    if len(args) > 2:
        try:
            days = int(args[2])
        except ValueError:
            raise ParseError(f"share days must be an integer, got '{args[2]}'")
        if days < 0:
            raise ParseError("share days must not be negative")
    return ShareCommand(path=args[0], password=password, days=days)


_PARSERS = {
    "login": _parse_login,
    "ls": _parse_ls,
    "info": _parse_info,
    "mkdir": _parse_mkdir,
    "put": _parse_put,
    "get": _parse_get,
    "mv": _parse_move,
    "cp": _parse_copy,
    "rename": _parse_rename,
    "rm": _parse_remove,
    "share": _parse_share,
}
