"""Run options shared by the CLI and the engine."""

from collections.abc import Sequence

from pydantic import Field

from mt_utils.models.base import Model


class RunOptions(Model):
    """Options for a single test run, built once from command-line arguments."""

    seed: int = Field(..., description="Seed used to shuffle test order")
    name: str | None = Field(
        default=None, description="Run tests matching this name or /regexp/"
    )
    exclude: str | None = Field(
        default=None, description="Exclude tests matching this name or /regexp/"
    )
    slow: bool = Field(default=False, description="Run tests marked as slow")
    hide_slow: bool = Field(default=False, description="Hide the slow tests list")
    slow_threshold: float | None = Field(
        default=None, description="Seconds after which a test counts as slow"
    )
    no_color: bool = Field(default=False, description="Disable colored output")
    watch: bool = Field(default=False, description="Re-run tests on file changes")

    def to_args(self, *, seed: bool = True) -> Sequence[str]:
        """Render the options understood by the engine as command-line args.

        The order is stable so the run banner can be compared verbatim.
        """
        args = ["--seed", str(self.seed)] if seed else []
        if self.exclude:
            args += ["--exclude", self.exclude]
        if self.slow:
            args.append("--slow")
        if self.name:
            args += ["--name", self.name]
        if self.hide_slow:
            args.append("--hide-slow")
        if self.no_color:
            args.append("--no-color")
        if self.slow_threshold is not None:
            args += ["--slow-threshold", format_threshold(self.slow_threshold)]
        return args


def format_threshold(threshold: float) -> str:
    """Format a threshold without a meaningless fractional part."""
    text = str(threshold)
    if "." in text and "e" not in text:
        text = text.rstrip("0").removesuffix(".")
    return text
