"""Tests for suitecraft.declarative.metadata module."""

import logging

from suitecraft.declarative import (
    after,
    after_all,
    after_each,
    before,
    before_all,
    before_each,
    param,
    skip,
    tag,
    test,
    timeout,
)
from suitecraft.declarative.metadata import aggregate, ancestor_chain
from suitecraft.declarative.records import EntryKind


def noop(self):
    pass


class TestAncestorChain:
    def test_ancestor_first_without_object(self):
        class A:
            pass

        class B(A):
            pass

        assert ancestor_chain(B) == (A, B)


class TestHookTiers:
    """Hook tiers are concatenated ancestor first."""

    def test_ancestor_hook_runs_before_child_hook(self):
        class A:
            @before_each
            def h1(self):
                pass

        class B(A):
            @before_each
            def h2(self):
                pass

        assert aggregate(B).hooks.before_each == ("h1", "h2")
        assert aggregate(A).hooks.before_each == ("h1",)

    def test_declaration_order_within_a_class(self):
        class Suite:
            @after_each
            def second(self):
                pass

            @after_each
            def first(self):
                pass

        assert aggregate(Suite).hooks.after_each == ("second", "first")

    def test_all_tiers_are_collected(self):
        class Suite:
            @before_all
            @staticmethod
            def connect():
                pass

            @before_each
            def setup(self):
                pass

            @after_each
            def teardown(self):
                pass

            @after_all
            @classmethod
            def disconnect(cls):
                pass

        hooks = aggregate(Suite).hooks
        assert hooks.before_all == ("connect",)
        assert hooks.before_each == ("setup",)
        assert hooks.after_each == ("teardown",)
        assert hooks.after_all == ("disconnect",)

    def test_redeclared_hook_is_not_repeated(self):
        class A:
            @before_each
            def setup(self):
                pass

        class B(A):
            @before_each
            def setup(self):
                pass

        assert aggregate(B).hooks.before_each == ("setup",)

    def test_undecorated_override_keeps_hook_slot(self):
        class A:
            @before_each
            def setup(self):
                pass

        class B(A):
            def setup(self):
                pass

        assert aggregate(B).hooks.before_each == ("setup",)

    def test_non_callable_override_is_dropped(self, caplog):
        class A:
            @before_each
            def setup(self):
                pass

        class B(A):
            setup = None

        with caplog.at_level(logging.DEBUG, logger="suitecraft.declarative.metadata"):
            assert aggregate(B).hooks.before_each == ()
        assert "Dropping hook 'setup'" in caplog.text


class TestTests:
    """Test entries come from the nearest declaration."""

    def test_entries_in_member_order(self):
        class Suite:
            @test
            def first(self):
                pass

            @test.each([(1,), (2,)], "second $0")
            def second(self, value):
                pass

        tests = aggregate(Suite).tests
        assert [t.member for t in tests] == ["first", "second"]
        assert tests[0].kind is EntryKind.SINGLE
        assert tests[1].kind is EntryKind.STATIC_EACH

    def test_inherited_tests(self):
        class A:
            @test("from A")
            def a(self):
                pass

        class B(A):
            @test("from B")
            def b(self):
                pass

        assert [t.template for t in aggregate(B).tests] == ["from A", "from B"]

    def test_undecorated_override_keeps_inherited_test(self):
        class A:
            @test
            def a(self):
                pass

            @tag("auth")
            @test("checks login")
            def login(self):
                pass

        class B(A):
            def login(self):
                pass

        metadata = aggregate(B)
        assert [(t.member, t.template) for t in metadata.tests] == [("a", "a"), ("login", "checks login")]
        assert metadata.tags_for("login") == ("auth",)

    def test_redeclared_test_replaces_and_keeps_position(self):
        class A:
            @test("old a")
            def a(self):
                pass

            @test
            def b(self):
                pass

        class B(A):
            @test("new a")
            def a(self):
                pass

        assert [t.template for t in aggregate(B).tests] == ["new a", "b"]

    def test_entry_member_follows_attribute_name(self):
        def shared(self):
            pass

        class Suite:
            alias = test("shared test")(shared)

        assert aggregate(Suite).tests[0].member == "alias"


class TestParameters:
    def test_parameters_are_unioned(self):
        class A:
            env = param(default="dev")

        class B(A):
            user = param(default="ann")

        assert list(aggregate(B).parameters) == ["env", "user"]

    def test_child_definition_wins(self):
        class A:
            env = param(default="dev")

        class B(A):
            environment = param("env", default="prod")

        definition = aggregate(B).parameters["env"]
        assert definition.attribute == "environment"

    def test_redeclared_attribute_drops_ancestor_name(self):
        class A:
            env = param("environment", default="dev")

        class B(A):
            env = param("stage", default="dev")

        assert list(aggregate(B).parameters) == ["stage"]


class TestMarks:
    def test_member_marks_from_nearest_class(self):
        class A:
            @skip("flaky")
            @test
            def a(self):
                pass

        class B(A):
            @tag("smoke")
            @test
            def a(self):
                pass

        marks = aggregate(B).marks_for("a")
        assert marks.skip is None
        assert marks.tags == ("smoke",)

    def test_class_tags_concatenate_and_timeout_is_nearest(self):
        @tag("base")
        @timeout(5)
        class A:
            @tag("member")
            @test
            def a(self):
                pass

        @tag("child")
        @timeout(10)
        class B(A):
            pass

        metadata = aggregate(B)
        assert metadata.class_tags == ("base", "child")
        assert metadata.class_timeout == 10
        assert metadata.tags_for("a") == ("base", "child", "member")

    def test_member_timeout_beats_class_timeout(self):
        @timeout(5)
        class Suite:
            @timeout(1)
            @test
            def fast(self):
                pass

            @test
            def default(self):
                pass

        metadata = aggregate(Suite)
        assert metadata.timeout_for("fast") == 1
        assert metadata.timeout_for("default") == 5


class TestMemberHooks:
    def test_member_hooks_are_collected(self):
        class Suite:
            @before(noop)
            @after(noop)
            @test
            def a(self):
                pass

            @test
            def b(self):
                pass

        metadata = aggregate(Suite)
        assert metadata.hooks_for("a").before == (noop,)
        assert metadata.hooks_for("a").after == (noop,)
        assert metadata.hooks_for("b").before == ()
