"""Expand command-line entries into test files and name filters."""

import glob
import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from mt_utils.config import IGNORE_FILE
from mt_utils.naming import identity, method_name

log = logging.getLogger(__name__)

DEFAULT_DIRS = ("test", "tests")
TEST_FILE_PATTERNS = ("*_test.py", "test_*.py")
SUITE_SUFFIXES = ("Test", "Tests")

_LINE_SUFFIX = re.compile(r"^(?P<path>.+):(?P<line>\d+)$")
_DESCRIBED_TEST = re.compile(r"""^@?(?:\w+\.)*test\(\s*(['"])(?P<description>.*?)\1\s*\)$""")
_NAMED_TEST = re.compile(r"^(?:async\s+)?def\s+(?P<name>test_\w+)\s*\(")
_SUITE_OPENING = re.compile(
    r"""^\s*(?:class\s+(?P<class>\w+)|.*\bSuite\(\s*['"](?P<suite>\w+)['"])"""
)


@dataclass(frozen=True, kw_only=True)
class ResolvedEntries:
    """Test files to load and identities selected by ``file:line``."""

    files: Sequence[str]
    only: Sequence[str]

    @property
    def name_filter(self) -> str | None:
        """Alternation filter matching every selected identity."""
        if not self.only:
            return None
        return f"/{'|'.join(self.only)}/"


def resolve_entries(entries: Sequence[str], *, root: Path) -> ResolvedEntries:
    """Resolve files, directories, globs and ``file:line`` entries.

    Args:
        entries: Entries given on the command line (may be empty)
        root: Project directory; relative entries and the ignore file are
            looked up from here

    Returns:
        Deduplicated, ignore-filtered files and the ``Suite#method``
        identities pinpointed by line numbers.

    """
    if not entries:
        entries = DEFAULT_DIRS

    ignored = load_ignore_list(root / IGNORE_FILE)
    only: list[str] = []
    files: dict[str, None] = {}

    for entry in entries:
        path, selected = extract_entry(entry, root=root)
        if selected is not None and selected not in only:
            only.append(selected)

        for file in expand_entry(path):
            if is_ignored(file, ignored):
                log.debug("Ignoring %s", file)
                continue
            files.setdefault(file, None)

    return ResolvedEntries(files=list(files), only=only)


def load_ignore_list(ignore_file: Path) -> Sequence[str]:
    """Read ignore substrings, skipping blank lines and ``#`` comments."""
    if not ignore_file.is_file():
        return ()

    return tuple(
        line
        for line in (raw.strip() for raw in ignore_file.read_text().splitlines())
        if line and not line.startswith("#")
    )


def is_ignored(file: str, ignored: Sequence[str]) -> bool:
    """Check if a path contains any ignore entry."""
    return any(entry in file for entry in ignored)


def expand_entry(path: str) -> Sequence[str]:
    """Expand a directory into its test files, or a file pattern via glob."""
    if os.path.isdir(path):
        return sorted(
            {
                match
                for pattern in TEST_FILE_PATTERNS
                for match in glob.glob(
                    os.path.join(glob.escape(path), "**", pattern), recursive=True
                )
            }
        )

    return sorted(glob.glob(path, recursive=True))


def extract_entry(entry: str, *, root: Path) -> tuple[str, str | None]:
    """Split off a ``:line`` suffix and find the test declared on that line.

    Returns the absolute file path and the ``Suite#method`` identity, or
    ``None`` when the line does not pinpoint a test in a known suite.
    """
    path = os.path.abspath(os.path.join(root, entry))

    if (match := _LINE_SUFFIX.match(path)) is None:
        return path, None

    path = match["path"]
    line = int(match["line"])
    if not os.path.isfile(path):
        return path, None

    lines = Path(path).read_text().splitlines()
    if not 1 <= line <= len(lines):
        return path, None

    name = declared_method(lines[line - 1])
    if name is None:
        log.debug("No test declared at %s:%d", path, line)
        return path, None

    suite = enclosing_suite(lines[: line - 1])
    if suite is None:
        log.debug("No suite found above %s:%d", path, line)
        return path, None

    return path, identity(suite, name)


def declared_method(text: str) -> str | None:
    """Return the method name declared by a line of source, if any."""
    text = text.strip()

    if match := _DESCRIBED_TEST.match(text):
        return method_name(match["description"])
    if match := _NAMED_TEST.match(text):
        return match["name"]
    return None


def enclosing_suite(preceding: Sequence[str]) -> str | None:
    """Find the nearest suite opening above a line."""
    for text in reversed(preceding):
        match = _SUITE_OPENING.match(text)
        if match is None:
            continue
        name = match["class"] or match["suite"]
        if name.endswith(SUITE_SUFFIXES):
            return name
    return None
