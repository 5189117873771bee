"""Tests for suitecraft.declarative.driver module."""

import pytest

from suitecraft.context import TestInfo
from suitecraft.declarative import (
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
    is_suite,
    register,
    skip,
    slow,
    suite,
    suite_options,
    tag,
    test,
    timeout,
)
from suitecraft.errors import DecoratorUsageError, MissingParameterError
from suitecraft.outcomes import FixmeTest


class FakeRegistrar:
    """Records every registration call."""

    def __init__(self):
        self.calls = []
        self.tests = []
        self.hooks = {"before_all": [], "after_all": []}

    def describe(self, title, options, declare):
        self.calls.append(("describe", title))
        declare()

    def before_all(self, hook):
        self.calls.append(("before_all",))
        self.hooks["before_all"].append(hook)

    def after_all(self, hook):
        self.calls.append(("after_all",))
        self.hooks["after_all"].append(hook)

    def test(self, title, body, *, marks, fixtures):
        self.calls.append(("test", title))
        self.tests.append((title, body, marks, fixtures))


def new_info(title="unit", timeout=None):
    return TestInfo(title=title, suite="Suite", member="member", identity="id", timeout=timeout)


class TestSuiteDecorator:
    def test_bare(self):
        @suite
        class Smoke:
            pass

        assert is_suite(Smoke)
        assert suite_options(Smoke).title == "Smoke"

    def test_with_options(self):
        @suite("Checkout", mode="serial", retries=2, timeout=5, fixtures="api")
        class Checkout:
            pass

        options = suite_options(Checkout)
        assert options.title == "Checkout"
        assert options.mode == "serial"
        assert options.retries == 2
        assert options.timeout == 5
        assert options.fixtures == ("api",)

    def test_options_are_not_inherited(self):
        @suite
        class Base:
            pass

        class Child(Base):
            pass

        assert not is_suite(Child)

    @pytest.mark.parametrize(
        "kwargs",
        [{"mode": "random"}, {"retries": -1}, {"timeout": 0}],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(DecoratorUsageError):
            suite("Bad", **kwargs)


class TestConnectionScenario:
    """Suite hooks, per-test hooks and a data table working together."""

    @pytest.fixture
    def scenario(self):
        events = []

        def open_conn(self):
            events.append("open")

        def close_conn(self):
            events.append("close")

        @suite("Connections")
        class Connections:
            @before_all
            @staticmethod
            def start():
                events.append("start")

            @after_all
            @staticmethod
            def stop():
                events.append("stop")

            @before(open_conn)
            @after(close_conn)
            @test.each([(1, 2, 3), (2, 2, 4)], "$0+$1=$2")
            def add(self, a, b, expected):
                events.append(f"add:{a}+{b}")
                assert a + b == expected

            @before(open_conn)
            @after(close_conn)
            @test("throws")
            def throws(self):
                events.append("throws")
                raise RuntimeError("broken")

        return Connections, events

    def test_registration_order_and_names(self, scenario):
        Connections, _ = scenario
        registrar = FakeRegistrar()

        register(assemble(Connections), registrar)

        assert registrar.calls == [
            ("describe", "Connections"),
            ("before_all",),
            ("after_all",),
            ("test", "1+2=3"),
            ("test", "2+2=4"),
            ("test", "throws"),
        ]
        marks = registrar.tests[0][2]
        assert marks.member == "add"
        assert marks.arguments == (1, 2, 3)

    @pytest.mark.asyncio
    async def test_bodies_run_hooks_in_order(self, scenario):
        Connections, events = scenario
        registrar = FakeRegistrar()
        register(assemble(Connections), registrar)

        await registrar.hooks["before_all"][0]()
        for title, body, _, _ in registrar.tests[:2]:
            await body(new_info(title))
        with pytest.raises(RuntimeError, match="broken"):
            await registrar.tests[2][1](new_info("throws"))
        await registrar.hooks["after_all"][0]()

        assert events == [
            "start",
            "open",
            "add:1+2",
            "close",
            "open",
            "add:2+2",
            "close",
            "open",
            "throws",
            "close",
            "stop",
        ]


class TestAssemble:
    def test_empty_suite_hooks_are_not_registered(self):
        @suite
        class Plain:
            @test
            def check(self):
                pass

        registrar = FakeRegistrar()
        register(assemble(Plain), registrar)

        assert registrar.calls == [("describe", "Plain"), ("test", "check")]

    def test_assembly_error_names_the_suite(self):
        @suite("Broken")
        class Broken:
            @test("uses $missing")
            def check(self):
                pass

        with pytest.raises(MissingParameterError) as exc_info:
            assemble(Broken)
        assert any("while assembling suite 'Broken'" in note for note in exc_info.value.__notes__)

    def test_marks_carry_tags_skip_and_timeout(self):
        @suite(timeout=9)
        @tag("api")
        class Tagged:
            @tag("@smoke")
            @skip("not today")
            @test
            def skipped(self):
                pass

            @timeout(2)
            @test
            def quick(self):
                pass

            @test
            def default(self):
                pass

        marks = {m.member: m for m in (u.marks for u in assemble(Tagged).units)}
        assert marks["skipped"].tags == ("api", "smoke")
        assert marks["skipped"].skip == "not today"
        assert marks["quick"].timeout == 2.0
        assert marks["default"].timeout == 9

    def test_class_timeout_beats_suite_option(self):
        @suite(timeout=9)
        @timeout(4)
        class Timed:
            @test
            def check(self):
                pass

        [unit] = assemble(Timed).units
        assert unit.marks.timeout == 4.0


class TestUnitBody:
    @pytest.mark.asyncio
    async def test_fresh_instance_with_fixtures_and_info(self):
        seen = []

        @suite
        class Injected:
            @test
            def check(self):
                seen.append((self, self.api, self.test_info.title))

        registrar = FakeRegistrar()
        register(assemble(Injected), registrar)
        body = registrar.tests[0][1]

        for _ in range(2):
            info = new_info("check")
            info.fixtures = {"api": "client"}
            await body(info)

        assert seen[0][1:] == ("client", "check")
        assert seen[0][0] is not seen[1][0]

    @pytest.mark.asyncio
    async def test_annotations_attachments_and_slow(self):
        @suite
        class Marked:
            env = "staging"

            @annotate("issue", "BUG-7")
            @annotate(lambda self: [])
            @attach("log", body="hi")
            @attach(lambda self: None)
            @slow("big data")
            @test
            def check(self):
                pass

        registrar = FakeRegistrar()
        register(assemble(Marked), registrar)
        info = new_info("check", timeout=2)

        await registrar.tests[0][1](info)

        assert [a.type for a in info.annotations] == ["issue"]
        assert [a.name for a in info.attachments] == ["log"]
        assert info.is_slow
        assert info.timeout == 6

    @pytest.mark.asyncio
    async def test_matching_fixme_stops_the_unit(self):
        ran = []

        @suite
        class Fragile:
            region = "eu"

            @fixme(lambda self: self.region == "eu", "fails in the EU")
            @test
            def check(self):
                ran.append(True)

        registrar = FakeRegistrar()
        register(assemble(Fragile), registrar)

        with pytest.raises(FixmeTest, match="fails in the EU"):
            await registrar.tests[0][1](new_info("check"))
        assert ran == []


class TestInheritedHooksScenario:
    """Ancestor setup hook and child teardown hook around a data table."""

    @staticmethod
    def build(events, *, body_fails=False):
        class Base:
            @before_each
            def open_conn(self):
                events.append("openConn")

        @suite("Child")
        class Child(Base):
            @after_each
            def close_conn(self):
                events.append("closeConn")

            @test.each([[1, 2, 3], [2, 2, 4]], "$0+$1=$2")
            def add(self, a, b, expected):
                events.append(f"body {a}+{b}")
                if body_fails:
                    raise RuntimeError("body threw")
                assert a + b == expected

        return Child

    @pytest.mark.asyncio
    async def test_names_and_order(self):
        events = []
        registrar = FakeRegistrar()
        register(assemble(self.build(events)), registrar)

        assert [title for title, *_ in registrar.tests] == ["1+2=3", "2+2=4"]
        for title, body, _, _ in registrar.tests:
            await body(new_info(title))

        assert events == [
            "openConn",
            "body 1+2",
            "closeConn",
            "openConn",
            "body 2+2",
            "closeConn",
        ]

    @pytest.mark.asyncio
    async def test_teardown_runs_when_body_throws(self):
        events = []
        registrar = FakeRegistrar()
        register(assemble(self.build(events, body_fails=True)), registrar)

        for title, body, _, _ in registrar.tests:
            with pytest.raises(RuntimeError, match="body threw"):
                await body(new_info(title))

        assert events.count("closeConn") == 2
        assert events[-1] == "closeConn"


class TestUndecoratedOverrides:
    @pytest.mark.asyncio
    async def test_override_keeps_test_and_runs_as_body(self):
        events = []

        class Base:
            @before_each
            def setup(self):
                events.append("base setup")

            @test("checks login")
            def login(self):
                events.append("base login")

        @suite
        class Child(Base):
            def setup(self):
                events.append("child setup")

            def login(self):
                events.append("child login")

        registrar = FakeRegistrar()
        register(assemble(Child), registrar)

        assert [title for title, *_ in registrar.tests] == ["checks login"]
        await registrar.tests[0][1](new_info("checks login"))
        assert events == ["child setup", "child login"]
