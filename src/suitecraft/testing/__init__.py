"""Running declarative suites in process.

Provides suite discovery, fixture injection and the bundled runner.
"""

from .models import RunResult, SuiteResult, TestResult, TestStatus
from .resources import FixtureResolver, Scope, fixture
from .discovery import collect
from .runner import SuiteRunner, run


__all__ = [
    "FixtureResolver",
    "RunResult",
    "Scope",
    "SuiteResult",
    "SuiteRunner",
    "TestResult",
    "TestStatus",
    "collect",
    "fixture",
    "run",
]
