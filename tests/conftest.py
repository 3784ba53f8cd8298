from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
import io
import os
import subprocess
import sys

import pytest

from process_fixture.behaviors import Streams


SRC_DIR = Path(__file__).resolve().parent.parent / "src"

RunFixture = Callable[..., subprocess.CompletedProcess]


class Aborted(Exception):
    """Raised by the patched ``os.abort`` in in-process tests."""


@pytest.fixture
def make_streams() -> Iterator[Callable[[bytes], Streams]]:
    open_fds: list[int] = []

    def _make(stdin: bytes = b"") -> Streams:
        read_fd, write_fd = os.pipe()
        open_fds.append(read_fd)
        try:
            os.write(write_fd, stdin)
        finally:
            os.close(write_fd)
        return Streams(stdin_fd=read_fd, stdout=io.BytesIO(), stderr=io.BytesIO())

    yield _make
    for fd in open_fds:
        try:
            os.close(fd)
        except OSError:
            pass


@pytest.fixture
def aborts(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    calls: list[int] = []

    def fake_abort() -> None:
        calls.append(1)
        raise Aborted()

    monkeypatch.setattr(os, "abort", fake_abort)
    return calls


def fixture_env(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    env = {key: value for key, value in os.environ.items() if key != "PYTHONFAULTHANDLER"}
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(SRC_DIR) if not existing else os.pathsep.join([str(SRC_DIR), existing])
    if overrides:
        env.update(overrides)
    return env


@pytest.fixture
def run_fixture(tmp_path: Path) -> RunFixture:
    def _run(
        *args: str | bytes,
        stdin: bytes | int | None = b"",
        env: Mapping[str, str] | None = None,
        close_fds_in_child: tuple[int, ...] = (),
        timeout: float = 30.0,
    ) -> subprocess.CompletedProcess:
        command = [sys.executable, "-m", "process_fixture.main", *args]
        kwargs: dict[str, object] = {}
        if isinstance(stdin, bytes):
            kwargs["input"] = stdin
        else:
            kwargs["stdin"] = subprocess.DEVNULL if stdin is None else stdin
        if close_fds_in_child:

            def _close_inherited() -> None:
                for fd in close_fds_in_child:
                    os.close(fd)

            kwargs["preexec_fn"] = _close_inherited
        return subprocess.run(
            command,
            capture_output=True,
            env=fixture_env(env),
            cwd=tmp_path,
            timeout=timeout,
            **kwargs,
        )

    return _run
