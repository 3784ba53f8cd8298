from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import BinaryIO
import ctypes
import errno
import io
import os
import resource
import signal
import sys
import time

from .utils import parse_c_int, truncate_exit_status


TIMEOUT_SECONDS = 3.0
STDOUT_PREFIX = b"OUT: "
STDERR_PREFIX = b"ERR: "


@dataclass(frozen=True, slots=True)
class Streams:
    """The standard streams a behavior is allowed to touch."""

    stdin_fd: int
    stdout: BinaryIO
    stderr: BinaryIO

    @classmethod
    def from_sys(cls) -> "Streams":
        return cls(stdin_fd=0, stdout=_binary_stream(sys.stdout), stderr=_binary_stream(sys.stderr))


def _binary_stream(stream: object | None) -> BinaryIO:
    # Python sets sys.stdout/sys.stderr to None when the harness closed fd 1/2;
    # writes to a closed stream are discarded, as they would be in C.
    if stream is None:
        return io.BytesIO()
    return stream.buffer  # type: ignore[attr-defined]


def _write_flushed(stream: BinaryIO, *chunks: bytes) -> None:
    stream.write(b"".join(chunks))
    stream.flush()


def read_line_from_fd(fd: int) -> bytes:
    """Read up to and including the first newline, one byte at a time.

    Buffered readers would pull bytes past the newline out of the pipe; the
    harness expects everything after the first line to stay unread.
    """
    line = bytearray()
    while True:
        try:
            chunk = os.read(fd, 1)
        except OSError as exc:
            if exc.errno == errno.EBADF:
                break
            raise
        if not chunk:
            break
        line += chunk
        if chunk == b"\n":
            break
    return bytes(line)


def disable_core_dumps() -> None:
    try:
        _soft, hard = resource.getrlimit(resource.RLIMIT_CORE)
        resource.setrlimit(resource.RLIMIT_CORE, (0, hard))
    except (ValueError, OSError):
        return


def crash_null_deref(args: Sequence[str], streams: Streams) -> None:
    ctypes.string_at(0)
    # Only reached where address 0 is mapped.
    os.kill(os.getpid(), signal.SIGSEGV)


def crash_abort(args: Sequence[str], streams: Streams) -> None:
    os.abort()


def sleep_then_exit(args: Sequence[str], streams: Streams) -> None:
    time.sleep(TIMEOUT_SECONDS)


def no_op_signal(args: Sequence[str], streams: Streams) -> None:
    """Placeholder verb kept for harness compatibility.

    The name suggests delivering a user signal, but the behavior has always
    been empty. It stays an explicit no-op until the harness owners say what
    it should raise.
    """


def exit_with_code(args: Sequence[str], streams: Streams) -> None:
    raise SystemExit(truncate_exit_status(parse_c_int(args[0])))


def write_stderr(args: Sequence[str], streams: Streams) -> None:
    _write_flushed(streams.stderr, os.fsencode(args[0]), b"\n")


def write_both(args: Sequence[str], streams: Streams) -> None:
    message = os.fsencode(args[0])
    _write_flushed(streams.stdout, STDOUT_PREFIX, message, b"\n")
    _write_flushed(streams.stderr, STDERR_PREFIX, message, b"\n")


def echo_stdin_line(args: Sequence[str], streams: Streams) -> None:
    line = read_line_from_fd(streams.stdin_fd)
    if line:
        _write_flushed(streams.stdout, line)
