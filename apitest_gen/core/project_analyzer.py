"""Project analyzer for discovering tagged source modules.

This module scans project directories for Python source files that may
carry generation tags, so only candidate files are parsed.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

# Directories never scanned for sources
EXCLUDED_DIRS = {
    "node_modules",
    "__pycache__",
    "venv",
    "env",
    "build",
    "dist",
    "site-packages",
}

# Cheap textual prefilter; the scanner decides on the AST
TAG_MARKER = "generate_api_test"


class ProjectAnalyzer:
    """Analyzes projects to locate source files with tagged classes."""

    def __init__(self, exclude: Optional[Iterable[str]] = None) -> None:
        """Initialize analyzer.

        Args:
            exclude: Extra directory names to skip
        """
        self.excluded_dirs = EXCLUDED_DIRS | set(exclude or ())

    def find_source_files(self, project_path: str) -> list[Path]:
        """Find Python source files in a project directory.

        Hidden directories and common virtualenv/build directories are
        skipped. A single file path is returned as-is.

        Args:
            project_path: Root directory (or single file) to search

        Returns:
            Sorted list of ``.py`` files

        Raises:
            No exceptions raised - returns empty list on filesystem errors
        """
        root = Path(project_path)
        if root.is_file():
            return [root] if root.suffix == ".py" else []

        found: list[Path] = []
        self._search_directory(root, found)
        return sorted(found)

    def _search_directory(self, current_dir: Path, found: list[Path]) -> None:
        """Recursively collect source files.

        Args:
            current_dir: Current directory to search
            found: List to accumulate source files
        """
        try:
            for item in current_dir.iterdir():
                # Skip hidden entries and common exclude patterns
                if item.name.startswith(".") or item.name in self.excluded_dirs:
                    continue

                if item.is_dir():
                    self._search_directory(item, found)
                elif item.suffix == ".py":
                    found.append(item)

        except (OSError, PermissionError) as e:
            logger.warning(f"Skipping unreadable directory {current_dir}: {e}")

    def find_tagged_files(self, project_path: str) -> list[Path]:
        """Find source files that mention the generation marker.

        Args:
            project_path: Root directory (or single file) to search

        Returns:
            Sorted list of candidate files for scanning
        """
        candidates = []
        for path in self.find_source_files(project_path):
            try:
                if TAG_MARKER in path.read_text(encoding="utf-8", errors="ignore"):
                    candidates.append(path)
            except OSError as e:
                logger.warning(f"Cannot read {path}: {e}")
        logger.debug(f"Found {len(candidates)} tagged file(s) under {project_path}")
        return candidates
