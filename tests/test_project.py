"""Tests for Maven project validation and source discovery."""

from pathlib import Path

import pytest

from chainscan.errors import InvalidProjectError, UnsupportedProjectError
from chainscan.exclusion import FileExcluder
from chainscan.project import check_single_module, find_java_files, validate_project


def make_project(root: Path) -> Path:
    """Create a minimal single-module Maven layout."""
    (root / "src" / "main" / "java").mkdir(parents=True)
    (root / "pom.xml").write_text("<project/>")
    return root


class TestValidateProject:
    """Tests for validate_project."""

    def test_valid_project(self, tmp_path: Path) -> None:
        validate_project(make_project(tmp_path))

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidProjectError, match="does not exist"):
            validate_project(tmp_path / "nope")

    def test_file_instead_of_directory(self, tmp_path: Path) -> None:
        file_path = tmp_path / "pom.xml"
        file_path.write_text("<project/>")

        with pytest.raises(InvalidProjectError, match="not a directory"):
            validate_project(file_path)

    def test_missing_pom(self, tmp_path: Path) -> None:
        (tmp_path / "src" / "main" / "java").mkdir(parents=True)

        with pytest.raises(InvalidProjectError, match="pom.xml"):
            validate_project(tmp_path)

    def test_missing_source_root(self, tmp_path: Path) -> None:
        (tmp_path / "pom.xml").write_text("<project/>")

        with pytest.raises(InvalidProjectError, match="src/main/java"):
            validate_project(tmp_path)


class TestCheckSingleModule:
    """Tests for multi-module rejection."""

    def test_single_module_passes(self, tmp_path: Path) -> None:
        """Copies of pom.xml under target/ do not make a module."""
        project = make_project(tmp_path)
        (project / "target").mkdir()
        (project / "target" / "pom.xml").write_text("<project/>")

        check_single_module(project)

    def test_sub_module_is_rejected(self, tmp_path: Path) -> None:
        project = make_project(tmp_path)
        (project / "core").mkdir()
        (project / "core" / "pom.xml").write_text("<project/>")

        with pytest.raises(UnsupportedProjectError, match="core"):
            check_single_module(project)

    def test_hidden_directories_are_ignored(self, tmp_path: Path) -> None:
        project = make_project(tmp_path)
        (project / ".mvn").mkdir()
        (project / ".mvn" / "pom.xml").write_text("<project/>")

        check_single_module(project)


class TestFindJavaFiles:
    """Tests for Java source discovery."""

    def test_finds_sorted_java_files(self, tmp_path: Path) -> None:
        root = make_project(tmp_path) / "src" / "main" / "java"
        (root / "b").mkdir()
        (root / "b" / "B.java").write_text("class B {}")
        (root / "A.java").write_text("class A {}")
        (root / "notes.txt").write_text("not java")

        assert find_java_files(root) == [root / "A.java", root / "b" / "B.java"]

    def test_excluder_is_applied(self, tmp_path: Path) -> None:
        project = make_project(tmp_path)
        root = project / "src" / "main" / "java"
        (root / "legacy").mkdir()
        (root / "legacy" / "Old.java").write_text("class Old {}")
        (root / "New.java").write_text("class New {}")

        excluder = FileExcluder(project, extra_excludes=["**/legacy/**"])

        assert find_java_files(root, excluder) == [root / "New.java"]
