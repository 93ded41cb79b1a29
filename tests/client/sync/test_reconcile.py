"""Tests for reconciliation after a pull."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from actionsync.client.sync.reconcile import VERSION_WARNING, find_extra, reconcile


class TestFindExtra:
    """Tests for find_extra."""

    @pytest.mark.parametrize(
        ("local", "seen", "extra"),
        [
            ({"a", "b", "c"}, {"a", "b"}, ["c"]),
            ({"a", "b", "c"}, {"a", "b", "c"}, []),
            ({"a"}, {"a", "b", "c"}, []),
            ({"a", "b", "c"}, set(), ["a", "b", "c"]),
            (set(), {"a"}, []),
        ],
    )
    def test_set_difference(self, local: set[str], seen: set[str], extra: list[str]) -> None:
        """Extra files are the local files the server did not confirm."""
        assert find_extra(local, dict.fromkeys(seen, True)) == extra


class TestReconcile:
    """Tests for reconcile."""

    @pytest.fixture
    def project(self, tmp_path: Path) -> Path:
        """Create a project with three files."""
        for name in ("a.yaml", "b.yaml", "custom/c.yaml"):
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x: 1\n")
        return tmp_path

    def test_warns_without_clean(self, project: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Without clean, extra files are kept and reported."""
        with caplog.at_level(logging.WARNING):
            removed = reconcile(project, ["custom/c.yaml"], clean=False)
        assert removed == []
        assert (project / "custom/c.yaml").exists()
        assert "is not present in the draft of your Action" in caplog.text
        assert "run pull with --clean flag" in caplog.text

    def test_clean_removes(self, project: Path, caplog: pytest.LogCaptureFixture) -> None:
        """With clean, extra files are removed."""
        with caplog.at_level(logging.WARNING):
            removed = reconcile(project, ["custom/c.yaml"], clean=True)
        assert removed == [project / "custom" / "c.yaml"]
        assert not (project / "custom/c.yaml").exists()
        assert (project / "a.yaml").exists()
        assert "Removing" in caplog.text

    def test_clean_missing_file(self, project: Path) -> None:
        """A file already gone should not fail the pass."""
        removed = reconcile(project, ["gone.yaml"], clean=True)
        assert removed == [project / "gone.yaml"]

    def test_clean_directory(self, project: Path) -> None:
        """A directory entry should be removed recursively."""
        reconcile(project, ["custom"], clean=True)
        assert not (project / "custom").exists()

    def test_version_warning(self, project: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Pulling a version should mention the version in warnings."""
        with caplog.at_level(logging.WARNING):
            reconcile(project, ["a.yaml"], clean=False, warning=VERSION_WARNING)
        assert "is not present in the version of your Action" in caplog.text
