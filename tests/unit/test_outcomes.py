"""Tests for suitecraft.outcomes module."""

import pytest

from suitecraft.outcomes import FailTest, FixmeTest, SkipTest, UnitOutcome, fail, fixme, skip


@pytest.mark.parametrize(
    ("helper", "exception"),
    [(skip, SkipTest), (fixme, FixmeTest), (fail, FailTest)],
)
def test_helpers_raise_with_reason(helper, exception):
    with pytest.raises(exception) as exc_info:
        helper("because")
    assert exc_info.value.reason == "because"


def test_outcomes_are_not_regular_exceptions():
    for exception in (SkipTest, FixmeTest, FailTest):
        assert not issubclass(exception, Exception)


def test_outcomes_share_a_base_with_reason():
    for exception in (SkipTest, FixmeTest, FailTest):
        assert issubclass(exception, UnitOutcome)
    assert str(FailTest("total mismatch")) == "total mismatch"
    assert UnitOutcome().reason == ""
