"""Filtering and deduplication of raw extracted symbols.

Types and functions are collapsed differently. A typedef, class or struct is
one conceptual declaration per file, so only its earliest occurrence is
reported. A function name may recur at several positions in a file
(prototype and definition, or repeated mentions), and each of those stays
navigable; only the very same match reported twice is collapsed.
"""
from typing import Dict, Iterable, List, Tuple

from .extractor import Symbol

ALLOWED_KINDS = frozenset({'function', 'class', 'typedef', 'struct'})

TYPE_KINDS = frozenset({'typedef', 'class', 'struct'})

# Names the regex matchers are known to misdetect as declarations
INVALID_NAMES = frozenset({
    # Primitive and common fixed-width type names
    'void', 'int', 'char', 'float', 'double', 'long', 'short', 'unsigned',
    'signed', 'bool', 'size_t', 'u8', 'u16', 'u32', 's8', 's16', 's32',
    # Control keywords and qualifiers
    'if', 'volatile', '__volatile__',
    # Section-placement macros that look like return types
    'BCMPOST_TRAP_RODATA', 'BCMPOST_TRAP_TEXT', 'BCMPOSTTRAPFN', 'BCMRAMFN',
})


def is_candidate(symbol: Symbol) -> bool:
    """Whether a symbol passes the kind and blocklist filters."""
    return symbol.kind in ALLOWED_KINDS and symbol.name not in INVALID_NAMES


def filter_and_deduplicate(symbols: Iterable[Symbol]) -> List[Symbol]:
    """Collapse raw symbols into the canonical set.

    Args:
        symbols: Raw symbols from one or more files

    Returns:
        Canonical symbols, in order of first appearance of each group
    """
    kept: Dict[Tuple, Symbol] = {}

    for symbol in symbols:
        if not is_candidate(symbol):
            continue

        if symbol.kind in TYPE_KINDS:
            key = (symbol.name, symbol.kind, symbol.file_path)
            existing = kept.get(key)
            # Strictly smaller: on a tie the first seen stays
            if existing is None or symbol.line < existing.line:
                kept[key] = symbol
            continue

        key = (symbol.name, symbol.kind, symbol.file_path, symbol.line, symbol.column)
        if key not in kept:
            kept[key] = symbol

    return list(kept.values())
