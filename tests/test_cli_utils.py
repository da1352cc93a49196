"""Tests for CLI helpers and command dispatch."""

import io
from unittest.mock import Mock

import pytest

from cli import repl
from cli.models import ListCommand
from cli.utils import ProgressPrinter, format_file_size


@pytest.mark.parametrize('size,expected', [
    (0, '0 B'),
    (1023, '1023 B'),
    (1024, '1.00 KiB'),
    (1536, '1.50 KiB'),
    (5 * 1024 ** 2, '5.00 MiB'),
    (1024 ** 4, '1.00 TiB'),
    (1024 ** 5, '1.00 PiB'),
])
def test_format_file_size(size, expected):
    """Test binary unit formatting."""
    assert format_file_size(size) == expected


def test_progress_printer_redraws_line():
    """Test progress output and final newline."""
    out = io.StringIO()
    with ProgressPrinter('Uploading', 'a.bin', out=out) as progress:
        progress(512, 1024)
        progress(1024, 1024)

    text = out.getvalue()
    assert text.count('\r') == 2
    assert 'Uploading a.bin: 1.00 KiB / 1.00 KiB' in text
    assert '100.0%' in text
    assert text.endswith('\n')
    assert progress.transferred == 1024


def test_progress_printer_silent_when_unused():
    """Test nothing is printed when no progress was reported."""
    out = io.StringIO()
    with ProgressPrinter('Downloading', 'a.bin', out=out) as progress:
        pass

    assert out.getvalue() == ''
    assert progress.transferred == 0


def test_progress_printer_unknown_total():
    """Test progress without a known total shows bytes only."""
    out = io.StringIO()
    ProgressPrinter('Downloading', 'a.bin', out=out)(2048, 0)

    assert out.getvalue() == '\rDownloading a.bin: 2.00 KiB'


def test_dispatch_command_routes_by_type(monkeypatch):
    """Test parsed commands reach their handler."""
    handler = Mock(return_value='listed')
    monkeypatch.setitem(repl.HANDLERS, ListCommand, handler)

    assert repl.dispatch_command(ListCommand(path='/x')) == 'listed'
    handler.assert_called_once_with(ListCommand(path='/x'))


def test_dispatch_unknown_command():
    """Test an unregistered command type is reported."""
    assert repl.dispatch_command(object()).startswith('Unknown command type')


def test_progress_printer_follows_redirected_stdout(capsys):
    """Test the default stream is the stdout in effect when the printer is made."""
    with ProgressPrinter('Uploading', 'a.bin') as progress:
        progress(10, 10)

    assert 'Uploading a.bin: 10 B / 10 B' in capsys.readouterr().out
