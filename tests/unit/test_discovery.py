"""Tests for suitecraft.testing.discovery module."""

import textwrap

import pytest

from suitecraft.testing.discovery import collect


SUITE_SOURCE = textwrap.dedent(
    """
    from suitecraft import suite, test

    @suite("{title}")
    class {name}:
        @test
        def check(self):
            pass

    class NotASuite:
        pass
    """
)


def write_suite(path, name, title):
    path.write_text(SUITE_SOURCE.format(name=name, title=title))
    return path


class TestCollect:
    def test_collects_directory_recursively_in_path_order(self, tmp_path):
        nested = tmp_path / "nested"
        nested.mkdir()
        write_suite(tmp_path / "suite_b.py", "BSuite", "B")
        write_suite(nested / "suite_a.py", "ASuite", "A")
        write_suite(tmp_path / "helpers.py", "Ignored", "Ignored")

        suites = collect(tmp_path)

        assert [cls.__name__ for cls in suites] == ["ASuite", "BSuite"]

    def test_collects_single_file(self, tmp_path):
        path = write_suite(tmp_path / "suite_single.py", "Single", "Single")

        assert [cls.__name__ for cls in collect(str(path))] == ["Single"]

    def test_ignores_non_suite_file(self, tmp_path):
        path = write_suite(tmp_path / "other.py", "Other", "Other")

        assert collect(path) == []

    def test_ignores_imported_suites(self, tmp_path, monkeypatch):
        monkeypatch.syspath_prepend(str(tmp_path))
        write_suite(tmp_path / "shared_suites.py", "Shared", "Shared")
        (tmp_path / "suite_imports.py").write_text("from shared_suites import Shared\n")

        assert collect(tmp_path) == []

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            collect(tmp_path / "missing")
