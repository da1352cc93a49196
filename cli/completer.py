"""Custom completer for the drive CLI with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class DriveCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the first argument of 'put'
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        if tokens[0].lower() != "put":
            return

        argument_index = len(tokens) - (0 if is_typing_new_token else 1)
        if argument_index != 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_local_paths(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_local_paths(self, partial: str) -> Iterable[Completion]:
        """
        Complete local paths relative to the working directory.

        Directories complete with a trailing slash so the user can descend.
        """
        if "/" in partial:
            head, _, prefix = partial.rpartition("/")
            base = Path(head or "/").expanduser()
            if not base.is_absolute():
                base = Path.cwd() / base
            shown_head = head + "/"
        else:
            base, prefix, shown_head = Path.cwd(), partial, ""

        if not base.is_dir():
            return

        for item in sorted(base.iterdir()):
            if not item.name.startswith(prefix):
                continue
            if item.name.startswith(".") and not prefix.startswith("."):
                continue
            suffix = "/" if item.is_dir() else ""
            yield Completion(shown_head + item.name + suffix, start_position=-len(partial))
