"""Tests for environment configuration."""

import pytest

from mt_utils.config import Environment


def test_from_environ_reads_flags() -> None:
    """Any non-empty value enables a flag."""
    env = Environment.from_environ(
        {
            "NO_COLOR": "1",
            "MT_RUN_SLOW_TESTS": "yes",
            "MT_TEST_COMMAND": "mt %{location}",
            "MT_LOG_LEVEL": "debug",
        }
    )

    assert env.no_color
    assert env.run_slow_tests
    assert not env.record_failures
    assert env.test_command == "mt %{location}"
    assert env.log_level == "DEBUG"


def test_from_environ_defaults() -> None:
    """An empty environment gives the defaults."""
    env = Environment.from_environ({"NO_COLOR": ""})

    assert env == Environment()


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1234", 1234), ("abc", 0), ("12abc", 12), (" -7", -7), ("", None)],
)
def test_seed_is_read_leniently(value: str, expected: int | None) -> None:
    """Seeds keep their leading integer; anything else becomes 0."""
    assert Environment.from_environ({"SEED": value}).seed == expected
