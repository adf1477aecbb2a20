"""Offset to (line, column) mapping for regex match positions."""
from bisect import bisect_left
from typing import List, Tuple


def line_and_column(text: str, offset: int) -> Tuple[int, int]:
    """Convert a zero-based offset into a 1-based (line, column) pair.

    The line is the number of newlines strictly before ``offset`` plus one.
    The column is ``offset`` minus the index of the preceding newline
    (-1 when there is none), so the first character of any line is column 1.

    Args:
        text: Full file text
        offset: Zero-based character offset into ``text``

    Returns:
        Tuple of (line, column)
    """
    before = text[:offset]
    line = before.count('\n') + 1
    column = offset - before.rfind('\n')
    return line, column


class LineIndex:
    """Cached newline positions for repeated lookups into the same text.

    Produces exactly the same results as :func:`line_and_column`.
    """

    def __init__(self, text: str):
        self.text = text
        self._newlines: List[int] = [i for i, ch in enumerate(text) if ch == '\n']

    def position(self, offset: int) -> Tuple[int, int]:
        # Newlines strictly before offset
        count = bisect_left(self._newlines, offset)
        previous = self._newlines[count - 1] if count else -1
        return count + 1, offset - previous
