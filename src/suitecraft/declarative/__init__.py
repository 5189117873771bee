from .decorators import after, after_all, after_each, before, before_all, before_each, test
from .driver import (
    Registrar,
    SuiteOptions,
    SuitePlan,
    TestMarks,
    UnitPlan,
    assemble,
    is_suite,
    register,
    suite,
    suite_options,
)
from .expansion import ResolvedTestUnit, expand
from .lifecycle import SuiteLifecycle, UnitLifecycle
from .marks import annotate, attach, fixme, skip, slow, tag, timeout
from .metadata import ClassMetadata, aggregate, ancestor_chain
from .parameters import param
from .steps import step

__all__ = [
    "ClassMetadata",
    "Registrar",
    "ResolvedTestUnit",
    "SuiteLifecycle",
    "SuiteOptions",
    "SuitePlan",
    "TestMarks",
    "UnitLifecycle",
    "UnitPlan",
    "after",
    "after_all",
    "after_each",
    "aggregate",
    "ancestor_chain",
    "annotate",
    "assemble",
    "attach",
    "before",
    "before_all",
    "before_each",
    "expand",
    "fixme",
    "is_suite",
    "param",
    "register",
    "skip",
    "slow",
    "step",
    "suite",
    "suite_options",
    "tag",
    "test",
    "timeout",
]
