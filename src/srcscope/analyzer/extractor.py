"""Symbol extraction from source text.

Extraction is lexical: each language has an ordered list of regular
expressions applied to the whole file text. Comments, string literals and
multi-line signatures are not excluded, so false positives are expected and
are cleaned up afterwards by the deduplicator's blocklist. Patterns are
compiled with ``re.ASCII``: identifiers are ASCII words, and non-ASCII
letters in comments or strings never form a name.

Every extractor implements ``extract(text, file_path) -> List[Symbol]`` and
is registered by language name, so a parser-based extractor can replace a
regex one without touching callers.
"""
import re
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from .languages import language_for
from .position import LineIndex
from ..utils.logger import logger

SYMBOL_KINDS = ('function', 'class', 'struct', 'typedef', 'variable', 'method', 'enum')


@dataclass
class Symbol:
    """A named declaration found by text matching."""
    name: str
    kind: str  # one of SYMBOL_KINDS
    file_path: str
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None
    signature: Optional[str] = None  # typedef: full declaration

    def to_dict(self) -> Dict:
        return asdict(self)


# A matcher turns one regex match into a (name, kind, signature) triple
Matcher = Tuple[Pattern, Callable[[re.Match], Tuple[str, str, Optional[str]]]]


class SymbolExtractor:
    """Base class for per-language regex extractors."""

    language: str = ''
    matchers: List[Matcher] = []

    def extract(self, text: str, file_path: str) -> List[Symbol]:
        """Run every matcher over the text, in order.

        Each matcher independently finds all non-overlapping matches, so the
        result is grouped by matcher and ordered by position within a group.

        Args:
            text: Full file text
            file_path: Path recorded on every symbol

        Returns:
            Raw, unfiltered symbols
        """
        index = LineIndex(text)
        symbols = []
        for pattern, build in self.matchers:
            for match in pattern.finditer(text):
                name, kind, signature = build(match)
                line, column = index.position(match.start())
                symbols.append(Symbol(
                    name=name,
                    kind=kind,
                    file_path=str(file_path),
                    line=line,
                    column=column,
                    signature=signature,
                ))
        return symbols


class CFamilyExtractor(SymbolExtractor):
    """Functions, classes/structs and typedefs in C and C++ sources."""

    # [qualifiers] return_type[*|&][::scope] name(
    FUNCTION_PATTERN = re.compile(
        r'^[ \t]*(?:(?:static|inline|extern|virtual|explicit)\s+)*'
        r'(?:\w+(?:\s*\*|\s*&)?(?:\s*::\s*\w+)?)\s+(\w+)\s*\(',
        re.MULTILINE | re.ASCII,
    )
    AGGREGATE_PATTERN = re.compile(r'^[ \t]*(class|struct)\s+(\w+)', re.MULTILINE | re.ASCII)
    # typedef <type expression> name;  (single line only)
    TYPEDEF_PATTERN = re.compile(r'^[ \t]*typedef\s+(.+?)\s+(\w+)\s*;', re.MULTILINE | re.ASCII)

    def __init__(self, language: str = 'c'):
        self.language = language
        self.matchers = [
            (self.FUNCTION_PATTERN, lambda m: (m.group(1), 'function', None)),
            (self.AGGREGATE_PATTERN, lambda m: (m.group(2), m.group(1), None)),
            (self.TYPEDEF_PATTERN, lambda m: (
                m.group(2), 'typedef', f"typedef {m.group(1)} {m.group(2)};"
            )),
        ]


class PythonExtractor(SymbolExtractor):
    """``def`` and ``class`` statements in Python sources."""

    language = 'python'

    FUNCTION_PATTERN = re.compile(r'^[ \t]*def\s+(\w+)\s*\(', re.MULTILINE | re.ASCII)
    CLASS_PATTERN = re.compile(r'^[ \t]*class\s+(\w+)', re.MULTILINE | re.ASCII)

    def __init__(self):
        self.matchers = [
            (self.FUNCTION_PATTERN, lambda m: (m.group(1), 'function', None)),
            (self.CLASS_PATTERN, lambda m: (m.group(1), 'class', None)),
        ]


EXTRACTORS: Dict[str, Callable[[], SymbolExtractor]] = {
    'c': lambda: CFamilyExtractor('c'),
    'cpp': lambda: CFamilyExtractor('cpp'),
    'python': PythonExtractor,
}


def register_extractor(language: str, factory: Callable[[], SymbolExtractor]) -> None:
    """Register (or replace) the extractor used for a language."""
    EXTRACTORS[language] = factory


def get_extractor(language: str) -> Optional[SymbolExtractor]:
    """Create the extractor for a language, or None if unsupported."""
    factory = EXTRACTORS.get(language)
    return factory() if factory else None


def extract_file(file_path: str | Path, language: Optional[str] = None) -> List[Symbol]:
    """Read a file and extract its raw symbols.

    An unreadable file is logged and skipped (empty result), so a single bad
    file never aborts an indexing run.

    Args:
        file_path: Path to the source file
        language: Language override; detected from the extension when omitted

    Returns:
        Raw symbols, or an empty list for unsupported or unreadable files
    """
    file_path = Path(file_path)
    language = language or language_for(file_path)
    extractor = get_extractor(language) if language else None
    if extractor is None:
        return []

    try:
        text = file_path.read_text(encoding='utf-8', errors='replace')
    except OSError as exc:
        logger.warning("Skipping unreadable file {}: {}", file_path, exc)
        return []

    return extractor.extract(text, str(file_path))
