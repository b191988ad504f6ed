"""Configuration read from environment variables."""

import os
import re
from collections.abc import Mapping

from pydantic import Field, field_validator

from mt_utils.models.base import Model

DEFAULT_TEST_COMMAND = "mt %{location}:%{line} # %{description}"
IGNORE_FILE = ".minitestignore"
FAILURES_FILE = ".minitestfailures"

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


class Environment(Model):
    """Environment variables the runner reacts to."""

    no_color: bool = Field(default=False, description="NO_COLOR is set")
    run_slow_tests: bool = Field(
        default=False, description="MT_RUN_SLOW_TESTS is set"
    )
    test_command: str | None = Field(
        default=None, description="MT_TEST_COMMAND replay command template"
    )
    seed: int | None = Field(default=None, description="SEED for test ordering")
    record_failures: bool = Field(
        default=False, description="MT_RECORD_FAILURES is set"
    )
    log_level: str = Field(default="WARNING", description="MT_LOG_LEVEL")

    @field_validator("seed", mode="before")
    @classmethod
    def parse_seed(cls, v: object) -> object:
        """Read the leading integer of a seed string, 0 when there is none."""
        if not isinstance(v, str):
            return v
        match = _LEADING_INT.match(v)
        return int(match[0]) if match else 0

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "Environment":
        """Build the configuration from ``os.environ`` or a given mapping.

        Flags follow the ``NO_COLOR`` convention: any non-empty value
        enables them.
        """
        if environ is None:
            environ = os.environ

        return cls(
            no_color=bool(environ.get("NO_COLOR")),
            run_slow_tests=bool(environ.get("MT_RUN_SLOW_TESTS")),
            test_command=environ.get("MT_TEST_COMMAND") or None,
            seed=environ.get("SEED") or None,
            record_failures=bool(environ.get("MT_RECORD_FAILURES")),
            log_level=environ.get("MT_LOG_LEVEL", "WARNING").upper(),
        )
