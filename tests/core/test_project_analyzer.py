"""Unit tests for ProjectAnalyzer."""

from pathlib import Path

from apitest_gen.core.project_analyzer import ProjectAnalyzer


def touch(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestFindSourceFiles:
    """Tests for find_source_files."""

    def test_finds_nested_python_files(self, temp_project_dir):
        """Test recursive discovery returns sorted .py files only."""
        touch(temp_project_dir, "app/controllers.py")
        touch(temp_project_dir, "app/api/users.py")
        touch(temp_project_dir, "README.md")
        touch(temp_project_dir, "main.py")

        files = ProjectAnalyzer().find_source_files(str(temp_project_dir))

        relative = [f.relative_to(temp_project_dir).as_posix() for f in files]
        assert relative == ["app/api/users.py", "app/controllers.py", "main.py"]

    def test_skips_hidden_and_excluded_dirs(self, temp_project_dir):
        touch(temp_project_dir, ".git/hooks/x.py")
        touch(temp_project_dir, "venv/lib/y.py")
        touch(temp_project_dir, "__pycache__/z.py")
        touch(temp_project_dir, "node_modules/pkg/w.py")
        touch(temp_project_dir, "app/keep.py")

        files = ProjectAnalyzer().find_source_files(str(temp_project_dir))

        assert [f.name for f in files] == ["keep.py"]

    def test_extra_excludes(self, temp_project_dir):
        touch(temp_project_dir, "migrations/0001.py")
        touch(temp_project_dir, "app/keep.py")

        files = ProjectAnalyzer(exclude=["migrations"]).find_source_files(str(temp_project_dir))

        assert [f.name for f in files] == ["keep.py"]

    def test_single_file(self, temp_project_dir):
        path = touch(temp_project_dir, "service.py")

        assert ProjectAnalyzer().find_source_files(str(path)) == [path]

    def test_single_non_python_file(self, temp_project_dir):
        path = touch(temp_project_dir, "notes.txt")

        assert ProjectAnalyzer().find_source_files(str(path)) == []

    def test_missing_directory(self, temp_project_dir):
        """Test a missing directory yields no files instead of raising."""
        assert ProjectAnalyzer().find_source_files(str(temp_project_dir / "nope")) == []


class TestFindTaggedFiles:
    """Tests for find_tagged_files."""

    def test_prefilters_on_marker(self, project_with_controller):
        files = ProjectAnalyzer().find_tagged_files(str(project_with_controller))

        assert [f.name for f in files] == ["controllers.py"]

    def test_no_tagged_files(self, temp_project_dir):
        touch(temp_project_dir, "plain.py", "x = 1\n")

        assert ProjectAnalyzer().find_tagged_files(str(temp_project_dir)) == []
