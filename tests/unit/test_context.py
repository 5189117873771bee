"""Tests for suitecraft.context module."""

import asyncio

import pytest

from suitecraft.context import (
    Annotation,
    TestInfo,
    get_test_info,
    step_depth_scope,
    test_info_scope,
)
from suitecraft.outcomes import FixmeTest, SkipTest


def new_info(timeout=None):
    return TestInfo(title="unit", suite="Suite", member="member", identity="id", timeout=timeout)


class TestTestInfo:
    def test_scope_sets_and_resets(self):
        info = new_info()
        assert get_test_info() is None
        with test_info_scope(info):
            assert get_test_info() is info
        assert get_test_info() is None

    def test_scope_helper_is_not_collected(self):
        assert test_info_scope.__test__ is False

    def test_step_depth(self):
        with step_depth_scope() as outer:
            with step_depth_scope() as inner:
                assert (outer, inner) == (0, 1)
        with step_depth_scope() as again:
            assert again == 0

    def test_skip_and_fixme_raise(self):
        info = new_info()
        with pytest.raises(SkipTest):
            info.skip("later")
        with pytest.raises(FixmeTest):
            info.fixme("broken")

    def test_annotate_and_attach(self):
        info = new_info()
        info.annotate("issue", "BUG-1")
        info.attach("log", body="text")

        assert info.annotations == [Annotation("issue", "BUG-1")]
        assert info.attachments[0].body == "text"
        with pytest.raises(ValueError):
            info.attach("empty")

    def test_slow_triples_timeout_once(self):
        info = new_info(timeout=2)
        info.slow("big")
        info.slow("again")

        assert info.timeout == 6
        assert info.slow_reason == "big"

    def test_slow_without_timeout(self):
        info = new_info()
        info.slow()
        assert info.is_slow
        assert info.timeout is None

    @pytest.mark.asyncio
    async def test_slow_reschedules_active_deadline(self):
        info = new_info(timeout=0.1)
        loop = asyncio.get_running_loop()

        async with asyncio.timeout(info.timeout) as deadline:
            info.bind_deadline(deadline, loop.time())
            info.slow()
            await asyncio.sleep(0.15)

        assert info.timeout == pytest.approx(0.3)
