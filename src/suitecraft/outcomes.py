"""Ending a unit early from inside a suite method or hook.

The exceptions below derive from ``BaseException`` so that a broad
``except Exception`` in suite code does not swallow them. The runner maps
them onto result statuses; ``UnitLifecycle`` keeps running teardown hooks
after any of them.
"""

from typing import NoReturn


class UnitOutcome(BaseException):
    """Base for the exceptions that decide a unit's status.

    ``reason`` is the text shown next to the status in reports.
    """

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        super().__init__(reason)


class SkipTest(UnitOutcome):
    """Raised by ``TestInfo.skip``; the unit is reported as SKIPPED."""


class FixmeTest(UnitOutcome):
    """Raised by ``TestInfo.fixme`` for a unit known to be broken.

    Reported as SKIPPED, the same as a member carrying the ``@fixme`` mark.
    """


class FailTest(UnitOutcome):
    """Reported as FAILED with ``reason`` as the message, like a failed assert."""


def skip(reason: str = "") -> NoReturn:
    """Stop the running unit and report it as skipped."""
    raise SkipTest(reason)


def fixme(reason: str = "") -> NoReturn:
    """Stop the running unit and report it as skipped because it is broken."""
    raise FixmeTest(reason)


def fail(reason: str = "") -> NoReturn:
    """Stop the running unit and report it as failed with ``reason``."""
    raise FailTest(reason)
