"""Utility functions for CLI operations."""

import sys
from typing import Optional, TextIO

from cli.constants import GREEN, RESET


class ProgressPrinter:
    """Transfer progress callback that redraws one status line."""

    def __init__(self, verb: str, filename: str, out: Optional[TextIO] = None):
        """
        Initialize the progress printer.

        Args:
            verb: Word shown before the file name (e.g. 'Uploading')
            filename: Display name for the file
            out: Stream the status line is written to
        """
        self.verb = verb
        self.filename = filename
        self.out = out if out is not None else sys.stdout
        self.transferred = 0
        self._drawn = False

    def __call__(self, transferred: int, total: int) -> None:
        """Record progress and redraw the status line."""
        self.transferred = transferred
        self._drawn = True
        if total > 0:
            progress = (transferred / total) * 100
            self.out.write(
                f"\r{self.verb} {self.filename}: {format_file_size(transferred)} / "
                f"{format_file_size(total)} ({GREEN}{progress:.1f}%{RESET})"
            )
        else:
            self.out.write(f"\r{self.verb} {self.filename}: {format_file_size(transferred)}")
        self.out.flush()

    def finish(self) -> None:
        """Terminate the status line if anything was drawn."""
        if self._drawn:
            self.out.write('\n')
            self.out.flush()
            self._drawn = False

    def __enter__(self) -> 'ProgressPrinter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.finish()


def format_file_size(size_bytes: int) -> str:
    """
    Format a size in bytes with binary units (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    size = size_bytes / 1024.0
    for unit in ('KiB', 'MiB', 'GiB', 'TiB'):
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
