"""Shared fixtures."""

from collections.abc import Callable
from io import StringIO

import pytest

from mt_utils.plugins import Capabilities
from mt_utils.registry import Registry
from mt_utils.runner import autorun


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove environment variables that change runner behaviour."""
    for name in (
        "NO_COLOR",
        "MT_RUN_SLOW_TESTS",
        "MT_TEST_COMMAND",
        "MT_RECORD_FAILURES",
        "SEED",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry() -> Registry:
    """Create an empty registry isolated from the process default."""
    return Registry()


@pytest.fixture
def run_suites(registry: Registry) -> Callable[..., tuple[int, str]]:
    """Return a function running the registry's suites into a buffer."""

    def _run(*argv: str) -> tuple[int, str]:
        stream = StringIO()
        exit_code = autorun(
            ["--seed", "42", *argv],
            registry=registry,
            stream=stream,
            capabilities=Capabilities(),
        )
        return exit_code, stream.getvalue()

    return _run
