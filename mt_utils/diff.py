"""Word-level diff of expected and actual values for failure messages."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from mt_utils.color import colorize

_TOKEN = re.compile(r"\w+|\W+")

Action = Literal["equal", "delete", "insert", "replace"]


@dataclass(frozen=True, kw_only=True)
class DiffViews:
    """Expected and actual text with changed runs highlighted."""

    expected: str
    actual: str


@dataclass(frozen=True, kw_only=True)
class Run:
    """Consecutive tokens sharing one alignment action."""

    action: Action
    old: Sequence[str] = ()
    new: Sequence[str] = ()


def tokenize(text: str) -> Sequence[str]:
    """Split text into alternating runs of word and non-word characters."""
    return _TOKEN.findall(text)


def align(a: Sequence[str], b: Sequence[str]) -> Sequence[Run]:
    """Align two token sequences on their longest common subsequence.

    Unmatched tokens between two matches become one ``replace`` run when
    both sides have some, otherwise a ``delete`` or ``insert`` run.
    """
    # suffix[i][j] is the LCS length of a[i:] and b[j:].
    suffix = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) - 1, -1, -1):
        for j in range(len(b) - 1, -1, -1):
            if a[i] == b[j]:
                suffix[i][j] = suffix[i + 1][j + 1] + 1
            else:
                suffix[i][j] = max(suffix[i + 1][j], suffix[i][j + 1])

    runs: list[Run] = []
    equal: list[str] = []
    deleted: list[str] = []
    inserted: list[str] = []

    def flush_changes() -> None:
        if deleted and inserted:
            runs.append(Run(action="replace", old=tuple(deleted), new=tuple(inserted)))
        elif deleted:
            runs.append(Run(action="delete", old=tuple(deleted)))
        elif inserted:
            runs.append(Run(action="insert", new=tuple(inserted)))
        deleted.clear()
        inserted.clear()

    def flush_equal() -> None:
        if equal:
            runs.append(Run(action="equal", old=tuple(equal), new=tuple(equal)))
        equal.clear()

    i = j = 0
    while i < len(a) or j < len(b):
        if i < len(a) and j < len(b) and a[i] == b[j]:
            flush_changes()
            equal.append(a[i])
            i += 1
            j += 1
            continue

        flush_equal()
        if j == len(b) or (i < len(a) and suffix[i + 1][j] >= suffix[i][j + 1]):
            deleted.append(a[i])
            i += 1
        else:
            inserted.append(b[j])
            j += 1

    flush_changes()
    flush_equal()
    return runs


def diff(expected: str, actual: str, *, colorize_output: bool = True) -> DiffViews:
    """Compare two representations token by token.

    Deleted runs are highlighted in the expected view, inserted runs in the
    actual view, and replaced runs in both.
    """
    exp_out: list[str] = []
    act_out: list[str] = []

    def deleted(text: str) -> str:
        return colorize(text, "red", bgcolor="red") if colorize_output else text

    def inserted(text: str) -> str:
        return colorize(text, "green", bgcolor="green") if colorize_output else text

    for run in align(tokenize(expected), tokenize(actual)):
        old = "".join(run.old)
        new = "".join(run.new)

        if run.action == "equal":
            exp_out.append(old)
            act_out.append(new)
        elif run.action == "delete":
            exp_out.append(deleted(old))
        elif run.action == "insert":
            act_out.append(inserted(new))
        else:
            exp_out.append(deleted(old))
            act_out.append(inserted(new))

    return DiffViews(expected="".join(exp_out), actual="".join(act_out))


def format_diff(expected: Any, actual: Any, *, colorize_output: bool = True) -> str:
    """Render a two-line expected/actual message for an equality failure."""
    views = diff(repr(expected), repr(actual), colorize_output=colorize_output)

    exp_label = "expected: "
    act_label = "  actual: "
    if colorize_output:
        exp_label = colorize(exp_label, "red")
        act_label = colorize(act_label, "red")

    return f"{exp_label} {views.expected}\n{act_label} {views.actual}"
