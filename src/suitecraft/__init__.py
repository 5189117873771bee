"""suitecraft - declarative test suites assembled from decorated classes."""

from .context import TestInfo, get_test_info
from .declarative import (
    after,
    after_all,
    after_each,
    annotate,
    assemble,
    attach,
    before,
    before_all,
    before_each,
    fixme,
    param,
    register,
    skip,
    slow,
    step,
    suite,
    tag,
    test,
    timeout,
)
from .outcomes import fail
from .templating import Labeled, labeled, render
from .testing import SuiteRunner, fixture
from .tracing import init_tracing, trace_step
from .version import __version__


__all__ = [
    # Declaring suites
    "suite",
    "test",
    "param",
    "step",
    "before_all",
    "before_each",
    "after_each",
    "after_all",
    "before",
    "after",
    # Side tables
    "tag",
    "skip",
    "fixme",
    "slow",
    "annotate",
    "attach",
    "timeout",
    # Values and names
    "Labeled",
    "labeled",
    "render",
    # Running
    "assemble",
    "register",
    "SuiteRunner",
    "fixture",
    "fail",
    "TestInfo",
    "get_test_info",
    # Tracing
    "init_tracing",
    "trace_step",
]
