"""Tests for conditional-compilation block analysis."""
import pytest

from srcscope.preprocessor.conditional import (
    ConditionalBlockAnalyzer,
    analyze,
    evaluate_condition,
)


def flagged_text(text, defines):
    """Return the stripped contents of every flagged line."""
    lines = text.split('\n')
    return [lines[n - 1].strip() for n in analyze(text, defines).inactive_lines]


class TestEvaluateCondition:
    """Local truth of opening directives."""

    @pytest.mark.parametrize("directive,expected", [
        ("#ifdef FOO", True),
        ("#ifdef BAR", False),
        ("#ifndef FOO", False),
        ("#ifndef BAR", True),
        ("#if defined(FOO)", True),
        ("#if defined FOO", True),
        ("#if defined( BAR )", False),
        ("#if !defined(FOO)", False),
        ("#if !defined(BAR)", True),
        ("# ifdef FOO", True),
        ("#if FOO > 2", True),
        ("#if 0", True),
        ("#if BAR", True),
    ])
    def test_directives(self, directive, expected):
        assert evaluate_condition(directive, {'FOO': None}) is expected

    def test_value_is_irrelevant(self):
        assert evaluate_condition("#ifdef FOO", {'FOO': '0'}) is True


class TestAnalyzer:
    """Block pairing and line flags."""

    def test_ifdef_else_with_define(self):
        text = "#ifdef FOO\nA\n#else\nB\n#endif"
        analysis = analyze(text, {'FOO': None})
        assert not analysis.is_inactive(2)
        assert analysis.is_inactive(4)
        assert flagged_text(text, {'FOO': None}) == ['B']

    def test_ifdef_else_without_define(self):
        text = "#ifdef FOO\nA\n#else\nB\n#endif"
        assert flagged_text(text, {}) == ['A']

    def test_nested_inactive_ancestor_dominates(self):
        text = "#ifdef FOO\n#ifdef BAR\nX\n#endif\n#endif"
        analysis = analyze(text, {'BAR': '1'})
        assert analysis.is_inactive(3)
        assert flagged_text(text, {'BAR': '1'}) == ['#ifdef BAR', 'X', '#endif']

    def test_nested_active(self):
        text = "#ifdef FOO\n#ifdef BAR\nX\n#endif\n#endif"
        assert flagged_text(text, {'FOO': None, 'BAR': None}) == []

    def test_bare_endif_is_ignored(self):
        text = "int a;\n#endif\nint b;\n"
        analysis = analyze(text, {})
        assert analysis.inactive_lines == []
        assert analysis.blocks == []

    def test_bare_else_is_ignored(self):
        analysis = analyze("#else\nX\n#endif\n", {})
        assert analysis.inactive_lines == []

    def test_unclosed_block_is_dropped(self):
        text = "#ifdef MISSING\nX\nY\n"
        analysis = analyze(text, {})
        assert analysis.blocks == []
        assert analysis.inactive_lines == []

    def test_ifndef_guard(self):
        text = "#ifndef GUARD_H\n#define GUARD_H\nint x;\n#endif\n"
        assert flagged_text(text, {}) == []
        assert flagged_text(text, {'GUARD_H': None}) == ['#define GUARD_H', 'int x;']

    def test_unevaluable_if_defaults_active(self):
        assert flagged_text("#if VERSION >= 3\nX\n#endif", {}) == []

    def test_empty_block_flags_nothing(self):
        analysis = analyze("#ifdef NOPE\n#endif\n", {})
        assert len(analysis.blocks) == 1
        assert analysis.blocks[0].is_empty
        assert analysis.inactive_lines == []

    def test_indented_directives(self):
        text = "  #  ifdef NOPE\n    X\n  #endif\n"
        assert flagged_text(text, {}) == ['X']

    def test_elif_is_not_a_directive(self):
        text = "#ifdef NOPE\nA\n#elif defined(FOO)\nB\n#endif"
        assert flagged_text(text, {'FOO': None}) == ['A', '#elif defined(FOO)', 'B']

    def test_line_count_matches_text(self):
        assert analyze("a\nb\nc\n", {}).line_count == 4
        assert analyze("", {}).line_count == 1

    def test_is_inactive_out_of_range(self):
        analysis = analyze("#ifdef NOPE\nX\n#endif", {})
        assert not analysis.is_inactive(0)
        assert not analysis.is_inactive(99)


class TestBlocks:
    """Recorded ConditionalBlock boundaries."""

    def test_endif_block(self):
        (block,) = analyze("x\n#ifdef FOO\na\nb\n#endif\n", {}).blocks
        assert (block.start_line, block.end_line) == (2, 5)
        assert (block.content_start, block.content_end) == (3, 4)
        assert block.is_active is False

    def test_else_splits_into_two_blocks(self):
        blocks = analyze("#ifdef FOO\nA\n#else\nB\n#endif", {'FOO': None}).blocks
        assert [(b.start_line, b.end_line, b.is_active) for b in blocks] == [
            (1, 2, True),
            (3, 5, False),
        ]
        # The #else line is never part of either branch's content
        assert [(b.content_start, b.content_end) for b in blocks] == [(2, 2), (4, 4)]

    def test_blocks_in_closing_order(self):
        text = "#ifdef A\n#ifdef B\n#endif\n#endif"
        blocks = analyze(text, {}).blocks
        assert [b.start_line for b in blocks] == [2, 1]


class TestElseInversion:
    """``#else`` inverts the closed branch without consulting enclosing frames."""

    def test_nested_else_inside_inactive_parent_is_reported_active(self):
        text = (
            "#ifdef OUTER\n"     # 1 inactive
            "#ifdef INNER\n"     # 2 inactive (ancestor)
            "a\n"                # 3
            "#else\n"            # 4 -> not False = active
            "b\n"                # 5
            "#endif\n"           # 6
            "#endif"             # 7
        )
        analysis = analyze(text, {})
        else_block = next(b for b in analysis.blocks if b.start_line == 4)
        assert else_block.is_active is True
        # Line 5 is still dimmed through the outer block's range
        assert analysis.is_inactive(5)

    def test_block_opened_after_nested_else_sees_inverted_frame(self):
        text = (
            "#ifdef OUTER\n"     # 1 inactive
            "#ifdef INNER\n"     # 2 inactive
            "#else\n"            # 3 frame becomes active
            "#ifdef OTHER\n"     # 4 parent check fails on frame 1
            "#endif\n"           # 5
            "#endif\n"           # 6
            "#endif"             # 7
        )
        blocks = {b.start_line: b for b in analyze(text, {'OTHER': None}).blocks}
        assert blocks[3].is_active is True
        assert blocks[4].is_active is False


def test_analyzer_object_reusable():
    analyzer = ConditionalBlockAnalyzer({'FOO': None})
    first = analyzer.analyze("#ifndef FOO\nX\n#endif")
    second = analyzer.analyze("#ifndef FOO\nX\n#endif")
    assert first.inactive == second.inactive == [False, True, False]
