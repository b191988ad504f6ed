"""Engine glue: runs declared suites with ``unittest`` and feeds reporters."""

import argparse
import logging
import random
import re
import sys
import time
import traceback
import unittest
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Any, TextIO

from mt_utils.config import FAILURES_FILE, Environment
from mt_utils.failures import save_failures
from mt_utils.models.options import RunOptions
from mt_utils.models.result import Outcome, ResultEvent
from mt_utils.naming import identity
from mt_utils.plugins import Capabilities, detect_capabilities
from mt_utils.registry import DEFAULT_REGISTRY, Registry
from mt_utils.reporter import Reporter, StatisticsReporter

log = logging.getLogger(__name__)

ExcInfo = tuple[type[BaseException], BaseException, TracebackType | None]

PACKAGE_DIR = Path(__file__).resolve().parent


def new_seed() -> int:
    """Seed from ``SEED`` or a random value, kept below 0xFFFF."""
    seed = Environment.from_environ().seed
    if seed is None:
        seed = random.getrandbits(32)
    return seed % 0xFFFF


def add_engine_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the options understood by the engine."""
    parser.add_argument(
        "-n", "--name", metavar="PATTERN", help="Run tests that match this name."
    )
    parser.add_argument("-s", "--seed", type=int, help="Sets fixed seed.")
    parser.add_argument("--slow", action="store_true", help="Run slow tests.")
    parser.add_argument(
        "--hide-slow", action="store_true", help="Hide list of slow tests."
    )
    parser.add_argument(
        "--slow-threshold",
        type=float,
        metavar="SECONDS",
        help="Set the slow threshold (in seconds).",
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output."
    )
    parser.add_argument(
        "-e",
        "--exclude",
        metavar="PATTERN",
        help="Exclude /regexp/ or string from run.",
    )


def options_from_namespace(args: argparse.Namespace) -> RunOptions:
    """Build run options from parsed arguments."""
    return RunOptions(
        seed=args.seed if args.seed is not None else new_seed(),
        name=args.name,
        exclude=args.exclude,
        slow=args.slow,
        hide_slow=args.hide_slow,
        slow_threshold=args.slow_threshold,
        no_color=args.no_color,
        watch=getattr(args, "watch", False),
    )


def parse_engine_args(argv: Sequence[str]) -> RunOptions:
    """Parse the arguments handed to ``autorun``."""
    parser = argparse.ArgumentParser(prog="mt", add_help=False)
    add_engine_arguments(parser)
    return options_from_namespace(parser.parse_args(argv))


def matches(pattern: str, suite: str, name: str) -> bool:
    """Match a ``/regexp/`` or exact name against a test.

    Both the method name and the ``Suite#method`` identity are tried.
    """
    candidates = (name, identity(suite, name))
    if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
        regex = re.compile(pattern[1:-1])
        return any(regex.search(candidate) for candidate in candidates)
    return pattern in candidates


def selected(options: RunOptions, suite: str, name: str) -> bool:
    if options.name and not matches(options.name, suite, name):
        return False
    if options.exclude and matches(options.exclude, suite, name):
        return False
    return True


def build_suite(registry: Registry, options: RunOptions) -> unittest.TestSuite:
    """Collect the selected tests, shuffling suites and methods by seed."""
    rng = random.Random(options.seed)
    loader = unittest.TestLoader()

    suites = list(registry.suites)
    rng.shuffle(suites)

    top = unittest.TestSuite()
    for suite in suites:
        names = [
            name
            for name in loader.getTestCaseNames(suite)
            if selected(options, suite.__name__, name)
        ]
        if not names:
            continue
        rng.shuffle(names)
        top.addTest(unittest.TestSuite(suite(name) for name in names))

    return top


def extract_backtrace(tb: TracebackType | None) -> Sequence[str]:
    """Render traceback frames innermost first as ``path:line:in name``.

    Frames of modules flagged with ``__unittest`` are left out.
    """
    frames = [
        f"{frame.f_code.co_filename}:{lineno}:in {frame.f_code.co_name}"
        for frame, lineno in traceback.walk_tb(tb)
        if "__unittest" not in frame.f_globals
    ]
    return frames[::-1]


class EngineResult(unittest.TestResult):
    """Translates ``unittest`` callbacks into result events."""

    def __init__(self, reporters: Sequence[StatisticsReporter]) -> None:
        super().__init__()
        self.reporters = reporters
        self._started = 0.0

    def startTest(self, test: unittest.TestCase) -> None:
        super().startTest(test)
        self._started = time.perf_counter()

    def addSuccess(self, test: unittest.TestCase) -> None:
        super().addSuccess(test)
        self._emit(test, "pass")

    def addFailure(self, test: unittest.TestCase, err: ExcInfo) -> None:
        super().addFailure(test, err)
        self._emit(test, "failure", message=str(err[1]), err=err)

    def addError(self, test: unittest.TestCase, err: ExcInfo) -> None:
        super().addError(test, err)
        message = "".join(traceback.format_exception_only(err[0], err[1])).strip()
        self._emit(test, "error", message=message, err=err)

    def addSkip(self, test: unittest.TestCase, reason: str) -> None:
        super().addSkip(test, reason)
        self._emit(test, "skip", message=reason)

    def addExpectedFailure(self, test: unittest.TestCase, err: ExcInfo) -> None:
        super().addExpectedFailure(test, err)
        self._emit(test, "pass")

    def addUnexpectedSuccess(self, test: unittest.TestCase) -> None:
        super().addUnexpectedSuccess(test)
        self._emit(test, "failure", message="Unexpected success")

    def addSubTest(
        self, test: unittest.TestCase, subtest: Any, err: ExcInfo | None
    ) -> None:
        super().addSubTest(test, subtest, err)
        if err is None:
            return
        outcome: Outcome = (
            "failure" if issubclass(err[0], test.failureException) else "error"
        )
        message = f"{subtest._subDescription()}\n{err[1]}"
        self._emit(test, outcome, message=message, err=err)

    def _emit(
        self,
        test: Any,
        outcome: Outcome,
        *,
        message: str | None = None,
        err: ExcInfo | None = None,
    ) -> None:
        name = getattr(test, "_testMethodName", None)
        if name is None:
            # Class and module fixture errors carry only a description.
            suite = ""
            name = key = str(test)
        else:
            suite = type(test).__name__
            key = identity(suite, name)

        event = ResultEvent(
            identity=key,
            suite=suite,
            name=name,
            outcome=outcome,
            message=message,
            backtrace=extract_backtrace(err[2]) if err else (),
            assertions=getattr(test, "assertions", 0),
            elapsed=time.perf_counter() - self._started,
        )
        for reporter in self.reporters:
            reporter.record(event)


def autorun(
    argv: Sequence[str] | None = None,
    *,
    registry: Registry = DEFAULT_REGISTRY,
    stream: TextIO | None = None,
    capabilities: Capabilities | None = None,
) -> int:
    """Run every declared suite and return the process exit code.

    Args:
        argv: Engine arguments; defaults to ``sys.argv[1:]``
        registry: Registry holding the declared suites
        stream: Where reporters write; defaults to stdout
        capabilities: Enabled integrations; detected when omitted

    Returns:
        0 when no test failed or errored, 1 otherwise.

    """
    if argv is None:
        argv = sys.argv[1:]
    if stream is None:
        stream = sys.stdout

    options = parse_engine_args(argv)
    registry.options = options

    if capabilities is None:
        capabilities = detect_capabilities()
    capabilities.setup(options)

    reporter = Reporter(
        stream,
        options,
        registry=registry,
        filters=[re.compile(f"^{re.escape(str(PACKAGE_DIR))}")],
    )
    reporters = [reporter, *capabilities.reporters(stream, options)]

    suite = build_suite(registry, options)
    log.debug("Running %d test(s) with seed %d", suite.countTestCases(), options.seed)

    for each in reporters:
        each.start()
    suite.run(EngineResult(reporters))
    for each in reporters:
        each.report()

    if Environment.from_environ().record_failures:
        failing = [result.identity for result in reporter.results if result.failing]
        save_failures(Path.cwd() / FAILURES_FILE, failing)

    return 0 if all(each.passed for each in reporters) else 1
