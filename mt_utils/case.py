"""Base test case with registration, timing and friendlier assertions."""

import functools
import inspect
import linecache
import os
import re
import sys
import time
import unittest
from collections.abc import Callable
from types import CodeType
from typing import Any, ClassVar

from mt_utils.color import color_enabled
from mt_utils.config import Environment
from mt_utils.diff import format_diff
from mt_utils.models.record import SourceLocation, TestRecord
from mt_utils.naming import TEST_PREFIX, describe_method, identity
from mt_utils.registry import DEFAULT_REGISTRY, Registry

# Hide frames of this module from reported backtraces.
__unittest = True

Hook = Callable[[Any], None]

_DEFINITION = re.compile(r"^\s*(?:async\s+)?def\s")


def source_location(path: str, line: int) -> SourceLocation:
    """Build a location relative to the current working directory."""
    return SourceLocation(path=os.path.relpath(path, os.getcwd()), line=line)


def definition_line(code: CodeType) -> int:
    """Line of the ``def`` statement, past any decorators above it."""
    lines = linecache.getlines(code.co_filename)
    for lineno in range(code.co_firstlineno, len(lines) + 1):
        if _DEFINITION.match(lines[lineno - 1]):
            return lineno
    return code.co_firstlineno


def _timed(
    registry: Registry, key: str, method: Callable[[Any], Any]
) -> Callable[[Any], Any]:
    @functools.wraps(method)
    def wrapper(self: unittest.TestCase) -> Any:
        started = time.perf_counter()
        try:
            return method(self)
        finally:
            registry.record_elapsed(key, time.perf_counter() - started)

    wrapper.__timed__ = True  # type: ignore[attr-defined]
    return wrapper


class TestCase(unittest.TestCase):
    """A ``unittest.TestCase`` that registers and times its tests.

    Subclasses are declared as suites of ``registry``; every ``test_*``
    method defined on them gets a record and a timing wrapper.
    """

    registry: ClassVar[Registry] = DEFAULT_REGISTRY
    slow_threshold: ClassVar[float | None] = None
    setups: ClassVar[tuple[Hook, ...]] = ()
    teardowns: ClassVar[tuple[Hook, ...]] = ()

    assertions: int = 0
    _asserting: bool = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry = cls.registry

        for name, value in list(vars(cls).items()):
            if not name.startswith(TEST_PREFIX) or not callable(value):
                continue
            if getattr(value, "__timed__", False):
                continue

            key = identity(cls.__name__, name)
            if key not in registry:
                code = getattr(inspect.unwrap(value), "__code__", None)
                location = None
                if code is not None:
                    location = source_location(
                        code.co_filename, definition_line(code)
                    )
                registry.declare(
                    TestRecord(
                        identity=key,
                        suite=cls.__name__,
                        name=name,
                        description=describe_method(name),
                        source_location=location,
                        slow_threshold=cls.slow_threshold,
                    )
                )

            setattr(cls, name, _timed(registry, key, value))

        registry.add_suite(cls)

    def setUp(self) -> None:
        super().setUp()
        for hook in self.setups:
            hook(self)

    def tearDown(self) -> None:
        for hook in self.teardowns:
            hook(self)
        super().tearDown()

    @property
    def _colorize(self) -> bool:
        options = self.registry.options
        no_color = options.no_color if options else False
        return color_enabled(no_color=no_color, stream=sys.stdout)

    def slow_test(self) -> None:
        """Skip the current test unless slow tests were requested."""
        options = self.registry.options
        if Environment.from_environ().run_slow_tests or (options and options.slow):
            return
        self.skipTest("slow test")

    def assertTrue(self, expr: Any, msg: Any = None) -> None:
        if not expr:
            message = msg or f"expected: truthy value\ngot: {expr!r}"
            raise self.failureException(message)

    def assertFalse(self, expr: Any, msg: Any = None) -> None:
        if expr:
            message = msg or f"expected: falsy value\ngot: {expr!r}"
            raise self.failureException(message)

    def assertEqual(self, first: Any, second: Any, msg: Any = None) -> None:
        if first == second:
            return
        if isinstance(first, str) and isinstance(second, str):
            if "\n" in first or "\n" in second:
                # Multi-line text reads better as unittest's line diff.
                super().assertEqual(first, second, msg)
                return

        standard = format_diff(first, second, colorize_output=self._colorize)
        raise self.failureException(self._formatMessage(msg, standard))


def _counted(method: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(method)
    def wrapper(self: TestCase, *args: Any, **kwargs: Any) -> Any:
        if self._asserting:
            return method(self, *args, **kwargs)

        self.assertions += 1
        self._asserting = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._asserting = False

    return wrapper


_ASSERTION = re.compile(r"^assert[A-Z]\w*$")

for _name in dir(unittest.TestCase):
    if _ASSERTION.match(_name) or _name == "fail":
        setattr(TestCase, _name, _counted(getattr(TestCase, _name)))

del _name
