"""Recursive source file discovery."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List

from .languages import language_for
from ..utils.logger import logger

# Dependency caches, bytecode caches and build output
EXCLUDED_DIRS = frozenset({'node_modules', '__pycache__', 'build', 'dist'})


@dataclass(frozen=True)
class SourceFile:
    path: Path
    language: str


class DirectoryScanner:
    """Enumerate supported source files below a root directory."""

    def __init__(self, root: str | Path):
        """Initialize scanner.

        Args:
            root: Directory to enumerate
        """
        self.root = Path(root)

    @staticmethod
    def is_ignored(name: str) -> bool:
        """Hidden entries and conventional ignore directories are skipped."""
        return name.startswith('.') or name in EXCLUDED_DIRS

    def scan(self) -> List[SourceFile]:
        """Return every supported file, depth first, in sorted name order.

        Unsupported files are omitted entirely. The order is deterministic
        so that progress reporting is stable between runs. Symbolic links to
        directories are never entered; any other entry with a supported
        extension is returned, even if it later turns out to be unreadable.
        """
        return list(self._walk(self.root))

    def _walk(self, directory: Path) -> Iterator[SourceFile]:
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as exc:
            logger.warning("Cannot read directory {}: {}", directory, exc)
            return

        for entry in entries:
            if self.is_ignored(entry.name):
                continue

            path = Path(entry.path)
            try:
                # Symlinked directories are not followed
                is_directory = entry.is_dir(follow_symlinks=False)
            except OSError as exc:
                logger.warning("Cannot stat {}: {}", path, exc)
                continue

            if is_directory:
                yield from self._walk(path)
                continue

            language = language_for(path)
            if language:
                yield SourceFile(path=path, language=language)
