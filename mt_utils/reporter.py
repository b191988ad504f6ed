"""Reporters consuming result events from the engine."""

import os
import re
import time
from collections.abc import Sequence
from typing import TextIO

from mt_utils.color import ColorName, color_enabled, colorize
from mt_utils.config import DEFAULT_TEST_COMMAND, Environment
from mt_utils.models.options import RunOptions
from mt_utils.models.record import TestRecord
from mt_utils.models.result import ResultEvent
from mt_utils.naming import describe_method
from mt_utils.registry import DEFAULT_REGISTRY, Registry

DEFAULT_SLOW_THRESHOLD = 0.1
SLOW_TESTS_LIMIT = 10

COLOR_FOR_RESULT_CODE: dict[str, ColorName] = {
    ".": "green",
    "E": "red",
    "F": "red",
    "S": "yellow",
}

_PLACEHOLDER = re.compile(r"%\{(\w+)\}")


def format_duration(duration_in_seconds: float) -> str:
    """Format a duration with a human unit.

    The unit is picked by magnitude in nanoseconds; a value on a boundary
    (e.g. exactly 1000ns) moves to the next unit up.

    >>> format_duration(0.00015)
    '150μs'
    """
    duration_ns = duration_in_seconds * 1_000_000_000

    if duration_ns < 1_000:
        number, unit = duration_ns, "ns"
    elif duration_ns < 1_000_000:
        number, unit = duration_ns / 1_000, "μs"
    elif duration_ns < 1_000_000_000:
        number, unit = duration_ns / 1_000_000, "ms"
    else:
        number, unit = duration_ns / 1_000_000_000, "s"

    text = f"{number:.2f}".rstrip("0").removesuffix(".")
    return f"{text}{unit}"


def pluralize(word: str, count: int) -> str:
    """Render a count with its noun: ``no runs``, ``1 run``, ``2 runs``."""
    if count == 0:
        return f"no {word}s"
    if count == 1:
        return f"1 {word}"
    return f"{count} {word}s"


def render_command(template: str, values: dict[str, object]) -> str:
    """Substitute ``%{name}`` placeholders, leaving unknown ones untouched."""
    return _PLACEHOLDER.sub(
        lambda match: str(values.get(match[1], match[0])), template
    )


class StatisticsReporter:
    """Collects counts and non-passing results over a run."""

    def __init__(self, io: TextIO, options: RunOptions) -> None:
        self.io = io
        self.options = options
        self.count = 0
        self.assertions = 0
        self.failures = 0
        self.errors = 0
        self.skips = 0
        self.results: list[ResultEvent] = []
        self.start_time = 0.0
        self.total_time = 0.0

    def start(self) -> None:
        self.start_time = time.perf_counter()

    def record(self, event: ResultEvent) -> None:
        self.count += 1
        self.assertions += event.assertions

        match event.outcome:
            case "failure":
                self.failures += 1
            case "error":
                self.errors += 1
            case "skip":
                self.skips += 1

        if event.outcome != "pass":
            self.results.append(event)

    def report(self) -> None:
        self.total_time = time.perf_counter() - self.start_time

    @property
    def passed(self) -> bool:
        return self.failures == 0 and self.errors == 0


class Reporter(StatisticsReporter):
    """Prints progress, failure details, replay commands and slow tests."""

    def __init__(
        self,
        io: TextIO,
        options: RunOptions,
        *,
        registry: Registry = DEFAULT_REGISTRY,
        filters: Sequence[re.Pattern[str]] = (),
        show_slow_on_failure: bool = False,
    ) -> None:
        super().__init__(io, options)
        self.registry = registry
        self.filters = tuple(filters)
        self.show_slow_on_failure = show_slow_on_failure
        self.root = os.getcwd()
        self.color_enabled = color_enabled(no_color=options.no_color, stream=io)

    def start(self) -> None:
        super().start()
        self.io.write(f"Run options: {' '.join(self.options.to_args())}\n")

    def record(self, event: ResultEvent) -> None:
        super().record(event)
        code = event.result_code
        self.io.write(self.color(code, COLOR_FOR_RESULT_CODE[code]))
        self.io.flush()

    def report(self) -> None:
        super().report()

        failing_results = [r for r in self.results if r.failing]
        skipped_results = [r for r in self.results if r.skipped]

        status: ColorName = "green"
        if skipped_results:
            status = "yellow"
        if failing_results:
            status = "red"

        for index, result in enumerate(failing_results, start=1):
            self.display_failing(result, index)
        for index, result in enumerate(skipped_results, start=len(failing_results) + 1):
            self.display_skipped(result, index)

        self.io.write("\n\n")
        self.io.write(f"{self.statistics()}\n")
        self.io.write(f"{self.color(self.summary(), status)}\n")

        if failing_results:
            self.io.write("\nFailed Tests:\n")
            for result in failing_results:
                self.display_replay_command(result)
            self.io.write("\n\n")

        if not failing_results or self.show_slow_on_failure:
            self.print_slow_results()

        self.io.flush()

    def statistics(self) -> str:
        total_time = self.total_time
        runs_per_second = self.count / total_time if total_time else 0.0
        assertions_per_second = self.assertions / total_time if total_time else 0.0
        return (
            f"Finished in {total_time:.6f}s, {runs_per_second:.4f} runs/s, "
            f"{assertions_per_second:.4f} assertions/s."
        )

    def summary(self) -> str:
        return ", ".join(
            [
                pluralize("run", self.count),
                pluralize("assertion", self.assertions),
                pluralize("failure", self.failures),
                pluralize("error", self.errors),
                pluralize("skip", self.skips),
            ]
        )

    def slow_threshold_for(self, record: TestRecord) -> float:
        if record.slow_threshold is not None:
            return record.slow_threshold
        if self.options.slow_threshold is not None:
            return self.options.slow_threshold
        return DEFAULT_SLOW_THRESHOLD

    def slow_tests(self) -> Sequence[TestRecord]:
        """Timed tests slower than their threshold, slowest first."""
        return sorted(
            (
                record
                for record in self.registry
                if record.elapsed is not None
                and record.elapsed > self.slow_threshold_for(record)
            ),
            key=lambda record: record.elapsed or 0.0,
            reverse=True,
        )

    def print_slow_results(self) -> None:
        if self.options.hide_slow:
            return

        records = self.slow_tests()[:SLOW_TESTS_LIMIT]
        if not records:
            return

        self.io.write("\nSlow Tests:\n")
        for index, record in enumerate(records, start=1):
            prefix = f"{index}) "
            padding = " " * len(prefix)
            duration = format_duration(record.elapsed or 0.0)
            location = str(record.source_location or "")

            self.io.write(
                self.color(f"{prefix}{record.description} ({duration})", "red") + "\n"
            )
            self.io.write(self.color(f"{padding}{location}", "blue") + "\n")
            self.io.write("\n")

    def display_failing(self, result: ResultEvent, index: int) -> None:
        record = self.find_test_info(result)
        message = result.message or ""
        backtrace = self.format_backtrace(result.backtrace)

        output = ["\n\n"]
        output.append(self.color(f"{index:4d}) {record.description}"))
        output.append("\n" + self.color(indent(message), "red"))
        output.append("\n" + self.color(backtrace, "blue"))
        self.io.write("".join(output))

    def display_skipped(self, result: ResultEvent, index: int) -> None:
        record = self.find_test_info(result)
        location = str(record.source_location or "")

        output = ["\n\n"]
        output.append(self.color(f"{index:4d}) {record.description} [SKIPPED]", "yellow"))
        output.append("\n" + indent(self.color(f"Reason: {result.message}", "yellow")))
        output.append("\n" + indent(self.color(location, "yellow")))
        self.io.write("".join(output))

    def display_replay_command(self, result: ResultEvent) -> None:
        record = self.find_test_info(result)
        if record.source_location is None:
            return

        command = self.build_test_command(record, result)
        self.io.write("\n" + self.color(command, "red"))

    def build_test_command(self, record: TestRecord, result: ResultEvent) -> str:
        template = Environment.from_environ().test_command or DEFAULT_TEST_COMMAND
        location = record.source_location
        return render_command(
            template,
            {
                "location": location.path if location else "",
                "line": location.line if location else "",
                "description": record.description,
                "name": result.name,
            },
        )

    def find_test_info(self, result: ResultEvent) -> TestRecord:
        """Look up the declared test, falling back to what the event knows."""
        if (record := self.registry.get(result.identity)) is not None:
            return record
        return TestRecord(
            identity=result.identity,
            suite=result.suite,
            name=result.name,
            description=describe_method(result.name),
        )

    def filter_backtrace(self, backtrace: Sequence[str]) -> Sequence[str]:
        """Keep frames under the working directory not matched by a filter."""
        return [
            line
            for line in backtrace
            if not any(pattern.search(line) for pattern in self.filters)
            and line.startswith(self.root)
        ]

    def format_backtrace(self, backtrace: Sequence[str]) -> str:
        lines = [self.location(line) for line in self.filter_backtrace(backtrace)]
        if not lines:
            return ""
        return re.sub(r"^(\s+)", r"\1# ", indent("\n".join(lines)), flags=re.MULTILINE)

    def location(self, frame: str) -> str:
        """Render a ``path:line...`` frame relative to the working directory.

        Frames that cannot be parsed are returned unchanged.
        """
        if match := re.match(r"^(<.*?>)", frame):
            return match[1]

        match = re.match(r"^(.+?:\d+)", frame)
        if match is None:
            return frame

        path = os.path.abspath(match[1])
        if not path.startswith(self.root):
            return frame
        return path.removeprefix(f"{self.root}{os.sep}")

    def color(self, text: str, color: ColorName = "default") -> str:
        if not self.color_enabled or not text:
            return text
        return colorize(text, color)


def indent(text: str) -> str:
    """Indent every line by six spaces."""
    return re.sub(r"^", "      ", text, flags=re.MULTILINE)
