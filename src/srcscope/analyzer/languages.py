"""Language classification by file extension."""
from pathlib import Path
from typing import Optional

SUPPORTED_LANGUAGES = {
    '.c': 'c',
    '.h': 'c',
    '.cpp': 'cpp',
    '.cc': 'cpp',
    '.cxx': 'cpp',
    '.hpp': 'cpp',
    '.py': 'python',
}


def language_for(file_path: str | Path) -> Optional[str]:
    """Return the language for a path, or None if the extension is unsupported.

    Args:
        file_path: Path to determine language from

    Returns:
        One of 'c', 'cpp', 'python', or None
    """
    return SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())
