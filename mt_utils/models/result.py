"""Models for test execution results."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

Outcome = Literal["pass", "failure", "error", "skip"]

RESULT_CODES: dict[Outcome, str] = {
    "pass": ".",
    "failure": "F",
    "error": "E",
    "skip": "S",
}


@dataclass(frozen=True, kw_only=True)
class ResultEvent:
    """Outcome of a single executed test, as reported by the engine."""

    identity: str
    suite: str
    name: str
    outcome: Outcome
    message: str | None = None
    backtrace: Sequence[str] = ()
    assertions: int = 0
    elapsed: float = 0.0

    @property
    def result_code(self) -> str:
        """Single-character status code."""
        return RESULT_CODES[self.outcome]

    @property
    def failing(self) -> bool:
        """Whether the test failed or errored."""
        return self.outcome in {"failure", "error"}

    @property
    def skipped(self) -> bool:
        """Whether the test was skipped."""
        return self.outcome == "skip"
