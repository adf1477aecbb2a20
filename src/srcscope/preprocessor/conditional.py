"""Conditional-compilation block analysis.

A single top-to-bottom pass over the lines of one file keeps a stack of open
``#if``/``#ifdef``/``#ifndef`` frames and records a ConditionalBlock each time
a frame is closed by ``#else`` or ``#endif``. A second pass flags the content
lines of every inactive block.

Only ``defined``-style conditions are evaluated. Any other ``#if``
expression counts as true. Malformed input never raises: an ``#endif`` or
``#else`` with nothing open is ignored and frames left open at the end of
the text are dropped.

``#else`` inverts the branch it closes without re-checking the enclosing
frames, so inside an inactive parent the else branch of a nested block is
reported active. ``#elif`` is not recognised.
"""
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

ENDIF_PATTERN = re.compile(r'^#\s*endif\b')
ELSE_PATTERN = re.compile(r'^#\s*else\b')
OPEN_PATTERN = re.compile(r'^#\s*(?:if|ifdef|ifndef)\b')

IFDEF_PATTERN = re.compile(r'^#\s*ifdef\b\s+([A-Za-z_][A-Za-z0-9_]*)')
IFNDEF_PATTERN = re.compile(r'^#\s*ifndef\b\s+([A-Za-z_][A-Za-z0-9_]*)')
IF_DEFINED_PATTERN = re.compile(r'^#\s*if\b\s+defined\s*\(?\s*([A-Za-z_][A-Za-z0-9_]*)\s*\)?')
IF_NOT_DEFINED_PATTERN = re.compile(r'^#\s*if\b\s+!defined\s*\(?\s*([A-Za-z_][A-Za-z0-9_]*)\s*\)?')


@dataclass
class ConditionalBlock:
    """A closed branch of a conditional directive (1-based line numbers)."""
    start_line: int
    end_line: int
    is_active: bool
    content_start: int
    content_end: int

    @property
    def is_empty(self) -> bool:
        return self.content_start > self.content_end


@dataclass
class _Frame:
    start_line: int
    is_active: bool


@dataclass
class ConditionalAnalysis:
    """Result of analysing one text.

    ``inactive[i]`` is True when line ``i + 1`` lies inside an inactive block.
    """
    blocks: List[ConditionalBlock] = field(default_factory=list)
    inactive: List[bool] = field(default_factory=list)

    @property
    def line_count(self) -> int:
        return len(self.inactive)

    def is_inactive(self, line_number: int) -> bool:
        """Whether a 1-based line is flagged inactive."""
        return 1 <= line_number <= len(self.inactive) and self.inactive[line_number - 1]

    @property
    def inactive_lines(self) -> List[int]:
        """1-based numbers of all flagged lines, ascending."""
        return [i + 1 for i, flagged in enumerate(self.inactive) if flagged]


def evaluate_condition(directive: str, defines: Mapping[str, Optional[str]]) -> bool:
    """Local truth value of an opening directive (already left-stripped).

    ``#ifdef``/``defined`` test key presence only; values are ignored.
    Unrecognised ``#if`` expressions default to True.
    """
    match = IFDEF_PATTERN.match(directive)
    if match:
        return match.group(1) in defines

    match = IFNDEF_PATTERN.match(directive)
    if match:
        return match.group(1) not in defines

    match = IF_DEFINED_PATTERN.match(directive)
    if match:
        return match.group(1) in defines

    match = IF_NOT_DEFINED_PATTERN.match(directive)
    if match:
        return match.group(1) not in defines

    return True


class ConditionalBlockAnalyzer:
    """Decide which lines of a text are compiled out under a defines mapping."""

    def __init__(self, defines: Optional[Mapping[str, Optional[str]]] = None):
        self.defines = defines if defines is not None else {}

    def find_blocks(self, lines: List[str]) -> List[ConditionalBlock]:
        """First pass: pair directives into closed blocks, in closing order."""
        blocks: List[ConditionalBlock] = []
        stack: List[_Frame] = []

        for line_number, line in enumerate(lines, start=1):
            directive = line.lstrip()
            if not directive.startswith('#'):
                continue

            if ENDIF_PATTERN.match(directive):
                if stack:
                    frame = stack.pop()
                    blocks.append(ConditionalBlock(
                        start_line=frame.start_line,
                        end_line=line_number,
                        is_active=frame.is_active,
                        content_start=frame.start_line + 1,
                        content_end=line_number - 1,
                    ))
                continue

            if ELSE_PATTERN.match(directive):
                if stack:
                    frame = stack.pop()
                    # The #else line itself ends the previous branch
                    blocks.append(ConditionalBlock(
                        start_line=frame.start_line,
                        end_line=line_number - 1,
                        is_active=frame.is_active,
                        content_start=frame.start_line + 1,
                        content_end=line_number - 1,
                    ))
                    stack.append(_Frame(line_number, not frame.is_active))
                continue

            if OPEN_PATTERN.match(directive):
                parent_active = all(frame.is_active for frame in stack)
                is_active = parent_active and evaluate_condition(directive, self.defines)
                stack.append(_Frame(line_number, is_active))

        # Unclosed frames are dropped
        return blocks

    def analyze(self, text: str) -> ConditionalAnalysis:
        lines = text.split('\n')
        blocks = self.find_blocks(lines)

        inactive = [False] * len(lines)
        for block in blocks:
            if block.is_active or block.is_empty:
                continue
            for line_number in range(block.content_start, block.content_end + 1):
                inactive[line_number - 1] = True

        return ConditionalAnalysis(blocks=blocks, inactive=inactive)


def analyze(text: str, defines: Optional[Mapping[str, Optional[str]]] = None) -> ConditionalAnalysis:
    """Analyse one file's text under a defines mapping."""
    return ConditionalBlockAnalyzer(defines).analyze(text)
