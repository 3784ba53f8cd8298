from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from . import behaviors
from .behaviors import Streams


Action = Callable[[Sequence[str], Streams], None]


class FixtureMisuseError(RuntimeError):
    """Raised when a verb is invoked with the wrong number of arguments."""


class Verb(str, Enum):
    CRASH_NULL_DEREF = "crash-null-deref"
    CRASH_ABORT = "crash-abort"
    TIMEOUT = "timeout"
    NO_OP_SIGNAL = "no-op-signal"
    EXIT_CODE = "exit-code"
    WRITE_STDERR = "write-stderr"
    WRITE_BOTH = "write-both"
    ECHO_STDIN_LINE = "echo-stdin-line"


@dataclass(frozen=True, slots=True)
class Behavior:
    verb: Verb
    arity: int
    action: Action
    crashes: bool = False

    def validate(self, args: Sequence[str]) -> tuple[str, ...]:
        """Return the arguments this behavior consumes.

        Verbs that take arguments need exactly ``arity`` of them; verbs that
        take none ignore whatever trails them.
        """
        if self.arity == 0:
            return ()
        if len(args) != self.arity:
            raise FixtureMisuseError(
                f"{self.verb.value} expects exactly {self.arity} argument(s), got {len(args)}"
            )
        return tuple(args)


@dataclass(frozen=True, slots=True)
class Invocation:
    behavior: Behavior
    args: tuple[str, ...]

    def run(self, streams: Streams) -> None:
        self.behavior.action(self.args, streams)


def _catalogue(*entries: Behavior) -> Mapping[str, Behavior]:
    table: dict[str, Behavior] = {}
    for entry in entries:
        if entry.verb.value in table:
            raise ValueError(f"Duplicate verb in catalogue: {entry.verb.value}")
        table[entry.verb.value] = entry
    return MappingProxyType(table)


CATALOGUE: Mapping[str, Behavior] = _catalogue(
    Behavior(Verb.CRASH_NULL_DEREF, 0, behaviors.crash_null_deref, crashes=True),
    Behavior(Verb.CRASH_ABORT, 0, behaviors.crash_abort, crashes=True),
    Behavior(Verb.TIMEOUT, 0, behaviors.sleep_then_exit),
    Behavior(Verb.NO_OP_SIGNAL, 0, behaviors.no_op_signal),
    Behavior(Verb.EXIT_CODE, 1, behaviors.exit_with_code),
    Behavior(Verb.WRITE_STDERR, 1, behaviors.write_stderr),
    Behavior(Verb.WRITE_BOTH, 1, behaviors.write_both),
    Behavior(Verb.ECHO_STDIN_LINE, 0, behaviors.echo_stdin_line),
)


def lookup(verb: str) -> Behavior | None:
    return CATALOGUE.get(verb)


def parse_invocation(argv: Sequence[str]) -> Invocation | None:
    """Resolve ``argv`` (without the program name) to an invocation.

    Returns ``None`` for a missing or unknown verb; raises
    :class:`FixtureMisuseError` when a known verb has the wrong argument count.
    """
    if not argv:
        return None
    behavior = lookup(argv[0])
    if behavior is None:
        return None
    return Invocation(behavior=behavior, args=behavior.validate(argv[1:]))
