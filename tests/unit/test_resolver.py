"""Tests for command-line entry resolution."""

import os
from pathlib import Path

import pytest

from mt_utils.resolver import (
    declared_method,
    enclosing_suite,
    load_ignore_list,
    resolve_entries,
)

SAMPLE_SUITE = """\
from mt_utils import Suite, TestCase

suite = Suite("SampleTest")


@suite.test("it passes")
def _(t):
    t.assertTrue(True)


class OtherTest(TestCase):
    def test_it_works(self):
        self.assertTrue(True)

    def helper(self):
        pass
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a project with a couple of test files."""
    tests = tmp_path / "tests"
    (tests / "models").mkdir(parents=True)
    (tests / "fixtures").mkdir()
    (tests / "a_test.py").write_text(SAMPLE_SUITE)
    (tests / "models" / "test_user.py").write_text("")
    (tests / "fixtures" / "sample_test.py").write_text("")
    (tests / "helpers.py").write_text("")
    return tmp_path


def test_defaults_to_test_directories(project: Path) -> None:
    """Without entries, the conventional test directories are searched."""
    resolved = resolve_entries([], root=project)

    assert resolved.files == [
        str(project / "tests" / "a_test.py"),
        str(project / "tests" / "fixtures" / "sample_test.py"),
        str(project / "tests" / "models" / "test_user.py"),
    ]
    assert resolved.only == []
    assert resolved.name_filter is None


def test_honours_ignore_file(project: Path) -> None:
    """Paths containing an ignore entry are left out."""
    (project / ".minitestignore").write_text("# comment\n\ntests/fixtures\n")

    resolved = resolve_entries(["tests"], root=project)

    assert str(project / "tests" / "fixtures" / "sample_test.py") not in resolved.files
    assert len(resolved.files) == 2


def test_expands_globs(project: Path) -> None:
    """Glob entries expand relative to the project."""
    resolved = resolve_entries(["tests/**/test_*.py"], root=project)

    assert resolved.files == [str(project / "tests" / "models" / "test_user.py")]


def test_deduplicates_files(project: Path) -> None:
    """A file named twice is loaded once."""
    resolved = resolve_entries(["tests/a_test.py", "tests"], root=project)

    assert resolved.files.count(str(project / "tests" / "a_test.py")) == 1


def test_line_of_described_test_selects_it(project: Path) -> None:
    """file:line on a test(...) declaration selects that test."""
    resolved = resolve_entries(["tests/a_test.py:6"], root=project)

    assert resolved.files == [str(project / "tests" / "a_test.py")]
    assert resolved.only == ["SampleTest#test_it_passes"]
    assert resolved.name_filter == "/SampleTest#test_it_passes/"


def test_line_of_named_test_selects_it(project: Path) -> None:
    """file:line on a def test_* line selects that method."""
    resolved = resolve_entries(["tests/a_test.py:12"], root=project)

    assert resolved.only == ["OtherTest#test_it_works"]


def test_multiple_lines_build_alternation(project: Path) -> None:
    """Several file:line entries are combined into one filter."""
    resolved = resolve_entries(
        ["tests/a_test.py:6", "tests/a_test.py:12"], root=project
    )

    assert resolved.name_filter == "/SampleTest#test_it_passes|OtherTest#test_it_works/"


@pytest.mark.parametrize("line", [1, 15, 100])
def test_line_without_test_loads_whole_file(project: Path, line: int) -> None:
    """A line not declaring a test degrades to running the file."""
    resolved = resolve_entries([f"tests/a_test.py:{line}"], root=project)

    assert resolved.files == [str(project / "tests" / "a_test.py")]
    assert resolved.only == []


def test_missing_file_resolves_to_nothing(project: Path) -> None:
    """Entries matching no file add nothing."""
    resolved = resolve_entries(["tests/missing_test.py:3"], root=project)

    assert resolved.files == []
    assert resolved.only == []


def test_absolute_entries_are_kept(project: Path) -> None:
    """Absolute paths are not joined to the project root."""
    entry = os.path.join(project, "tests", "models")

    resolved = resolve_entries([entry], root=project)

    assert resolved.files == [str(project / "tests" / "models" / "test_user.py")]


def test_load_ignore_list_missing_file(tmp_path: Path) -> None:
    """No ignore file means nothing is ignored."""
    assert load_ignore_list(tmp_path / ".minitestignore") == ()


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ('@suite.test("it passes")', "test_it_passes"),
        ("    @suite.test('Some   TEST!')", "test_some_test"),
        ('suite.test("flunk test")', "test_flunk_test"),
        ("def test_it_works(self):", "test_it_works"),
        ("    async def test_async(self) -> None:", "test_async"),
        ("def helper(self):", None),
        ('print("test")', None),
    ],
)
def test_declared_method(line: str, expected: str | None) -> None:
    """Both declaration shapes map to method names."""
    assert declared_method(line) == expected


def test_enclosing_suite_uses_nearest_opening() -> None:
    """The closest suite opening above the line wins."""
    preceding = [
        "class FirstTest(TestCase):",
        "    pass",
        'suite = Suite("SecondTest")',
        "class Helper:",
        "    pass",
    ]

    assert enclosing_suite(preceding) == "SecondTest"
    assert enclosing_suite(["class Helper:"]) is None
