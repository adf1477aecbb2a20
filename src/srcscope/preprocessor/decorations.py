"""Turn per-line inactivity flags into editor decorations and fold ranges."""
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from .conditional import analyze

# Class names applied by the editor to inactive lines
LINE_CLASS = 'inactive-ifdef-line'
TEXT_CLASS = 'inactive-ifdef-text'
GUTTER_CLASS = 'inactive-ifdef-gutter'
MARGIN_CLASS = 'inactive-ifdef-margin'


@dataclass(frozen=True)
class LineDecoration:
    """Whole-line decoration for one inactive line (1-based)."""
    line: int
    start_column: int = 1
    end_column: int = 1
    is_whole_line: bool = True
    class_name: str = LINE_CLASS
    inline_class_name: str = TEXT_CLASS
    lines_decorations_class_name: str = GUTTER_CLASS
    margin_class_name: str = MARGIN_CLASS


@dataclass(frozen=True)
class FoldRange:
    """Closed range of lines to hide as one collapsible region."""
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass
class DecorationPlan:
    """Everything an editor needs to present one analysis.

    ``clear_folds`` is set when folding is disabled: any hidden areas applied
    by a previous plan must be removed.
    """
    decorations: List[LineDecoration] = field(default_factory=list)
    folds: List[FoldRange] = field(default_factory=list)
    clear_folds: bool = False


def fold_ranges(inactive: Sequence[bool]) -> List[FoldRange]:
    """Coalesce maximal runs of flagged lines into closed 1-based ranges."""
    ranges: List[FoldRange] = []
    start = None
    for index, flagged in enumerate(inactive):
        line = index + 1
        if flagged:
            if start is None:
                start = line
        elif start is not None:
            ranges.append(FoldRange(start, line - 1))
            start = None
    if start is not None:
        ranges.append(FoldRange(start, len(inactive)))
    return ranges


def plan_decorations(inactive: Sequence[bool], fold: bool = False,
                     lines: Optional[Sequence[str]] = None) -> DecorationPlan:
    """Build decorations (and optionally folds) for flagged lines.

    Args:
        inactive: Flags where ``inactive[i]`` refers to line ``i + 1``
        fold: Whether to produce fold ranges for inactive runs
        lines: Line texts, used to compute each decoration's end column

    Returns:
        A complete plan; nothing is carried over from earlier plans
    """
    decorations = []
    for index, flagged in enumerate(inactive):
        if not flagged:
            continue
        end_column = len(lines[index]) + 1 if lines is not None and index < len(lines) else 1
        decorations.append(LineDecoration(line=index + 1, end_column=end_column))

    if not fold:
        return DecorationPlan(decorations=decorations, folds=[], clear_folds=True)

    return DecorationPlan(decorations=decorations, folds=fold_ranges(inactive))


class DecorationPlanner:
    """Recompute the plan for a file from (text, defines, fold flag)."""

    def __init__(self, fold: bool = False):
        self.fold = fold

    def plan(self, text: str, defines: Optional[Mapping[str, Optional[str]]] = None) -> DecorationPlan:
        analysis = analyze(text, defines)
        return plan_decorations(analysis.inactive, self.fold, text.split('\n'))
