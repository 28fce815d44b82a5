"""Tests for the exclusion module."""

from pathlib import Path

from chainscan.exclusion import DEFAULT_EXCLUDES, FileExcluder


class TestDefaultExcludes:
    """Tests for default exclusion patterns."""

    def test_default_excludes_list(self) -> None:
        """Verify DEFAULT_EXCLUDES contains build output directories."""
        assert "/target/" in DEFAULT_EXCLUDES
        assert "/build/" in DEFAULT_EXCLUDES
        assert "/.git/" in DEFAULT_EXCLUDES

    def test_excludes_target(self, tmp_path: Path) -> None:
        """Should exclude Maven build output at the project root."""
        excluder = FileExcluder(tmp_path)

        generated = tmp_path / "target" / "generated-sources" / "Gen.java"
        assert excluder.should_exclude(generated)

    def test_excludes_git(self, tmp_path: Path) -> None:
        excluder = FileExcluder(tmp_path)

        assert excluder.should_exclude(tmp_path / ".git" / "objects" / "pack" / "something")

    def test_does_not_exclude_source_files(self, tmp_path: Path) -> None:
        """Should not exclude normal source files."""
        excluder = FileExcluder(tmp_path)

        src_file = tmp_path / "src" / "main" / "java" / "app" / "Main.java"
        assert not excluder.should_exclude(src_file)

    def test_packages_named_like_build_dirs_are_kept(self, tmp_path: Path) -> None:
        """A Java package called build or out is source, not build output."""
        excluder = FileExcluder(tmp_path)

        for package in ("build", "out", "target"):
            path = tmp_path / "src" / "main" / "java" / "app" / package / "Step.java"
            assert not excluder.should_exclude(path)


class TestGitignorePatterns:
    """Tests for .gitignore pattern parsing."""

    def test_loads_gitignore_patterns(self, tmp_path: Path) -> None:
        """Should load patterns from .gitignore."""
        (tmp_path / ".gitignore").write_text("*.bak\ngenerated/\n# comment\n\n")

        excluder = FileExcluder(tmp_path)

        assert excluder.should_exclude(tmp_path / "src" / "Old.java.bak")
        assert excluder.should_exclude(tmp_path / "src" / "main" / "java" / "generated" / "A.java")
        assert "generated/" in excluder.patterns

    def test_gitignore_comments_ignored(self, tmp_path: Path) -> None:
        """Should ignore comments in .gitignore."""
        (tmp_path / ".gitignore").write_text("# *.java\nactual_pattern/\n")

        excluder = FileExcluder(tmp_path)

        assert not excluder.should_exclude(tmp_path / "src" / "Main.java")
        assert "# *.java" not in excluder.patterns

    def test_negation_pattern(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("*.java\n!Keep.java\n")

        excluder = FileExcluder(tmp_path)

        assert excluder.should_exclude(tmp_path / "src" / "Drop.java")
        assert not excluder.should_exclude(tmp_path / "src" / "Keep.java")


class TestConfiguredExcludes:
    """Tests for excludes from the sources config section."""

    def test_extra_excludes(self, tmp_path: Path) -> None:
        excluder = FileExcluder(tmp_path, extra_excludes=["**/legacy/**"])

        assert excluder.should_exclude(tmp_path / "src" / "main" / "java" / "legacy" / "Old.java")
        assert excluder.patterns[-1] == "**/legacy/**"

    def test_filter_files(self, tmp_path: Path) -> None:
        excluder = FileExcluder(tmp_path)
        keep = tmp_path / "src" / "main" / "java" / "A.java"
        drop = tmp_path / "target" / "classes" / "A.java"

        assert excluder.filter_files([keep, drop]) == [keep]

    def test_paths_outside_root_are_not_excluded(self, tmp_path: Path) -> None:
        excluder = FileExcluder(tmp_path / "project")

        assert not excluder.should_exclude(tmp_path / "elsewhere" / "target" / "A.java")
