"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    handle_copy,
    handle_get,
    handle_info,
    handle_list,
    handle_login,
    handle_mkdir,
    handle_move,
    handle_put,
    handle_remove,
    handle_rename,
    handle_share,
)
from cli.completer import DriveCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
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
from cli.parser import ParseError, parse_command

HANDLERS = {
    LoginCommand: handle_login,
    ListCommand: handle_list,
    InfoCommand: handle_info,
    MkdirCommand: handle_mkdir,
    PutCommand: handle_put,
    GetCommand: handle_get,
    MoveCommand: handle_move,
    CopyCommand: handle_copy,
    RenameCommand: handle_rename,
    RemoveCommand: handle_remove,
    ShareCommand: handle_share,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return handler(cmd_obj)


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    session: PromptSession = PromptSession(
        completer=DriveCompleter(), history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = session.prompt([("class:prompt", PROMPT_TEXT)]).strip()

            if not user_input:
                continue

            if user_input == "exit":
                print("Goodbye!")
                break

            if user_input == "help":
                print(HELP_TEXT)
                continue

            if user_input == "clear":
                clear_screen()
                show_welcome()
                continue

            cmd_obj = parse_command(user_input)
            print(dispatch_command(cmd_obj))

        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
