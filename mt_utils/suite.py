"""Explicit registration API for described tests."""

import functools
import sys
from collections.abc import Callable
from typing import Any

from mt_utils.case import Hook, TestCase, source_location
from mt_utils.models.record import TestRecord
from mt_utils.naming import identity, method_name
from mt_utils.registry import ConfigurationError, Registry

Body = Callable[[Any], Any]


class ReservedNameError(ConfigurationError):
    """Raised when a helper would shadow a test or an existing attribute."""


class SuiteBuiltError(ConfigurationError):
    """Raised when a suite is changed after its test case was built."""


class Suite:
    """Builder for a ``TestCase`` subclass made of described tests.

    Example:
        >>> suite = Suite("UserTest")
        >>> @suite.test("validates the email")
        ... def _(t):
        ...     t.assertTrue(User(email="a@b.c").valid)
        >>> UserTest = suite.build()

    Tests are declared in the registry as soon as ``test`` is called, so a
    duplicate description fails at import time.
    """

    def __init__(
        self,
        name: str,
        *,
        base: type[TestCase] = TestCase,
        registry: Registry | None = None,
        slow_threshold: float | None = None,
    ) -> None:
        self.name = name
        self.base = base
        self.registry = registry if registry is not None else base.registry
        self.slow_threshold = (
            slow_threshold if slow_threshold is not None else base.slow_threshold
        )
        self._tests: dict[str, Body] = {}
        self._lets: dict[str, Body] = {}
        self._setups: list[Hook] = []
        self._teardowns: list[Hook] = []
        self._built: type[TestCase] | None = None

    def test(self, description: str) -> Callable[[Body], Body]:
        """Declare a test and return a decorator installing its body.

        A declaration that is never decorated stays a test that always
        fails as not implemented.
        """
        self._ensure_open(f"add test {description!r}")
        name = method_name(description)
        key = identity(self.name, name)

        caller = sys._getframe(1)
        self.registry.declare(
            TestRecord(
                identity=key,
                suite=self.name,
                name=name,
                description=description,
                source_location=source_location(
                    caller.f_code.co_filename, caller.f_lineno
                ),
                slow_threshold=self.slow_threshold,
            )
        )
        self._tests[name] = _not_implemented(name)

        def decorator(body: Body) -> Body:
            self._ensure_open(f"add a body to {name}")
            self._tests[name] = body
            return body

        return decorator

    def setup(self, hook: Hook) -> Hook:
        """Run ``hook`` before each test, after previously added hooks."""
        self._ensure_open("add a setup hook")
        self._setups.append(hook)
        return hook

    def teardown(self, hook: Hook) -> Hook:
        """Run ``hook`` after each test, after previously added hooks."""
        self._ensure_open("add a teardown hook")
        self._teardowns.append(hook)
        return hook

    def let(self, factory: Body) -> Body:
        """Define a memoized per-test accessor named after ``factory``."""
        name = factory.__name__
        self._ensure_open(f"define let({name!r})")
        message = f"Cannot define let({name!r});"

        if name.startswith("test"):
            raise ReservedNameError(f"{message} method cannot begin with 'test'.")

        if name in self._lets:
            raise ReservedNameError(f"{message} method already defined by {self.name}.")

        for klass in self.base.__mro__:
            if name in vars(klass):
                raise ReservedNameError(
                    f"{message} method already defined by {klass.__name__}."
                )

        self._lets[name] = factory
        return factory

    def build(self) -> type[TestCase]:
        """Create the ``TestCase`` subclass for this suite."""
        if self._built is not None:
            return self._built

        namespace: dict[str, Any] = {
            "__module__": sys._getframe(1).f_globals.get("__name__", __name__),
            "__qualname__": self.name,
            "registry": self.registry,
            "slow_threshold": self.slow_threshold,
            "setups": self.base.setups + tuple(self._setups),
            "teardowns": self.base.teardowns + tuple(self._teardowns),
        }
        for name, factory in self._lets.items():
            namespace[name] = functools.cached_property(factory)
        namespace.update(self._tests)

        self._built = type(self.name, (self.base,), namespace)
        return self._built

    def _ensure_open(self, action: str) -> None:
        if self._built is not None:
            raise SuiteBuiltError(
                f"Cannot {action}; {self.name} was already built."
            )

    def __repr__(self) -> str:
        return f"Suite({self.name!r}, tests={len(self._tests)})"


def _not_implemented(name: str) -> Body:
    def test(self: TestCase) -> None:
        self.fail(f"No implementation provided for {name}")

    test.__name__ = name
    return test
