from __future__ import annotations

from collections.abc import Sequence
from typing import NoReturn
import os
import sys

from .behaviors import Streams, disable_core_dumps
from .catalogue import FixtureMisuseError, parse_invocation


PROGRAM_NAME = "process-fixture"


def _fatal(streams: Streams | None, message: str) -> NoReturn:
    data = f"{PROGRAM_NAME}: {message}\n".encode(errors="backslashreplace")
    if streams is not None:
        streams.stderr.write(data)
        streams.stderr.flush()
    else:
        try:
            os.write(2, data)
        except OSError:
            # stderr may be closed; the abort below is what the harness observes.
            pass
    os.abort()
    # Only reached when os.abort is patched out.
    raise SystemExit(134)


def main(argv: Sequence[str] | None = None, *, streams: Streams | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        return 0

    try:
        invocation = parse_invocation(args)
    except FixtureMisuseError as exc:
        _fatal(streams, str(exc))

    if invocation is None:
        return 0

    if invocation.behavior.crashes:
        disable_core_dumps()
    invocation.run(Streams.from_sys() if streams is None else streams)
    return 0


if __name__ == "__main__":
    sys.exit(main())
