"""Indexing session: builds, persists and serves the symbol index.

A build runs four phases, reported through an optional progress callback:
1. scanning  - enumerate supported files
2. parsing   - extract raw symbols file by file, in scanner order
3. saving    - deduplicate and persist the canonical set
4. complete
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .dedup import filter_and_deduplicate
from .extractor import Symbol, extract_file
from .scanner import DirectoryScanner
from .store import SqliteSymbolStore, SymbolIndex, SymbolStore
from ..utils.logger import logger

PHASES = ('scanning', 'parsing', 'saving', 'complete')


@dataclass
class BuildProgress:
    """One progress event of a build."""
    phase: str  # one of PHASES
    current: int
    total: int
    current_file: Optional[str] = None


ProgressCallback = Callable[[BuildProgress], None]


def index_symbols(symbols: List[Symbol]) -> SymbolIndex:
    """Group symbols by name, preserving order."""
    index: SymbolIndex = {}
    for symbol in symbols:
        index.setdefault(symbol.name, []).append(symbol)
    return index


class IndexingSession:
    """Owns the in-memory symbol index and the store used to persist it."""

    def __init__(self, store: Optional[SymbolStore] = None):
        """Initialize session.

        Args:
            store: Storage backend; defaults to a SQLite store
        """
        self.store = store if store is not None else SqliteSymbolStore()
        self.symbol_index: SymbolIndex = {}
        self.project_path: Optional[Path] = None

    def find_by_name(self, name: str) -> List[Symbol]:
        """Return the definitions recorded for a name (empty list if none)."""
        return list(self.symbol_index.get(name, []))

    def get_all(self) -> SymbolIndex:
        return self.symbol_index

    def clear(self) -> None:
        self.symbol_index = {}

    def build_full(self, root: str | Path, on_progress: Optional[ProgressCallback] = None) -> None:
        """Scan, extract, deduplicate and persist the whole project.

        The in-memory index is replaced by the canonical set only after it
        has been saved.

        Args:
            root: Project root directory
            on_progress: Called with a BuildProgress for every phase step

        Raises:
            StoreError: If the store cannot be opened or written
        """
        def emit(phase: str, current: int, total: int, current_file: Optional[str] = None):
            if on_progress is not None:
                on_progress(BuildProgress(phase, current, total, current_file))

        root = Path(root)
        self.project_path = root
        self.clear()

        emit('scanning', 0, 0)
        files = DirectoryScanner(root).scan()
        total_files = len(files)

        all_symbols: List[Symbol] = []
        for i, source in enumerate(files):
            emit('parsing', i + 1, total_files, source.path.name)
            all_symbols.extend(extract_file(source.path, source.language))

        emit('saving', 0, len(all_symbols))
        canonical = filter_and_deduplicate(all_symbols)

        try:
            self.store.open(root)
            self.store.save_symbols(canonical, root)
        finally:
            self.store.close()

        self.symbol_index = index_symbols(canonical)
        logger.info(
            "Indexed {} files under {}: {} raw symbols, {} canonical",
            total_files, root, len(all_symbols), len(canonical),
        )

        emit('complete', len(all_symbols), len(all_symbols))

    def load_persisted(self, root: str | Path) -> bool:
        """Load a previously built index for a project.

        Each name's entries are passed through the deduplicator again.

        Returns:
            True if a store existed and was loaded
        """
        if not self.store.exists(root):
            return False

        try:
            loaded = self.store.load(root)
        finally:
            self.store.close()

        index: Dict[str, List[Symbol]] = {}
        for name, symbols in loaded.items():
            filtered = filter_and_deduplicate(symbols)
            if filtered:
                index[name] = filtered

        self.project_path = Path(root)
        self.symbol_index = index
        return True
