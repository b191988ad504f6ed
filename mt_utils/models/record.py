"""Models for declared tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """Where a test was declared, relative to the working directory."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(kw_only=True)
class TestRecord:
    """Metadata for a declared test.

    Created when the test is declared; ``elapsed`` is filled in by the
    test's timing wrapper once it has run.
    """

    __test__ = False

    identity: str
    suite: str
    name: str
    description: str
    source_location: SourceLocation | None = None
    slow_threshold: float | None = None
    elapsed: float | None = None
