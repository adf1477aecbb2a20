"""Persistent, project-scoped symbol store.

Store Strategy:
- One SQLite file per project root (default: .sourceviewer.db)
- The file is loaded into an in-memory working database on open
- save_symbols replaces every record of a project, then writes the whole
  database to a temporary file and renames it over the backing file, so a
  failed save never leaves a half-written store behind
- A missing file is the "never built" state; a corrupt one is an error
"""
import os
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .extractor import Symbol
from ..utils.logger import logger

DEFAULT_DB_NAME = '.sourceviewer.db'

SymbolIndex = Dict[str, List[Symbol]]


class StoreError(Exception):
    """The symbol store could not be opened, initialised or written."""


class SymbolStore(ABC):
    """Storage interface for the canonical symbol set of a project."""

    @abstractmethod
    def open(self, project_path: str | Path) -> None:
        """Create or load the store for a project (idempotent)."""

    @abstractmethod
    def exists(self, project_path: str | Path) -> bool:
        """Whether a store was ever saved for a project. Never mutates state."""

    @abstractmethod
    def load(self, project_path: str | Path) -> SymbolIndex:
        """Open the store and rebuild the index of a project's records."""

    @abstractmethod
    def save_symbols(self, symbols: Iterable[Symbol], project_path: str | Path) -> None:
        """Replace all records of a project and flush durably."""

    @abstractmethod
    def close(self) -> None:
        """Release the store; safe when never opened."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def project_key(project_path: str | Path) -> str:
    """Normalise a project root into the value stored in ``projectPath``."""
    return str(Path(project_path).resolve())


class SqliteSymbolStore(SymbolStore):
    """SymbolStore backed by an embedded SQLite database file."""

    def __init__(self, db_name: str = DEFAULT_DB_NAME):
        """Initialize store.

        Args:
            db_name: File name of the store, created under each project root
        """
        self.db_name = db_name
        self.conn: Optional[sqlite3.Connection] = None
        self.db_path: Optional[Path] = None

    def get_db_path(self, project_path: str | Path) -> Path:
        return Path(project_path).resolve() / self.db_name

    def exists(self, project_path: str | Path) -> bool:
        return self.get_db_path(project_path).is_file()

    def open(self, project_path: str | Path) -> None:
        """Load the project's store into memory, or start an empty one.

        Raises:
            StoreError: If the backing file exists but cannot be read as a database
        """
        db_path = self.get_db_path(project_path)
        if self.conn is not None and self.db_path == db_path:
            return

        self.close()
        conn = sqlite3.connect(':memory:')
        try:
            if db_path.exists():
                self._read_into(db_path, conn)
            self._init_database(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StoreError(f"Cannot open symbol store {db_path}: {exc}") from exc

        self.conn = conn
        self.db_path = db_path
        logger.debug("Opened symbol store {}", db_path)

    @staticmethod
    def _read_into(db_path: Path, conn: sqlite3.Connection) -> None:
        source = sqlite3.connect(f"{db_path.as_uri()}?mode=ro", uri=True)
        try:
            # Forces the header to be read; raises on a non-database file
            source.execute('PRAGMA schema_version').fetchone()
            source.backup(conn)
        finally:
            source.close()

    @staticmethod
    def _init_database(conn: sqlite3.Connection) -> None:
        """Create the symbols table and its lookup indexes if they don't exist."""
        cursor = conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS symbols (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                kind TEXT NOT NULL,
                filePath TEXT NOT NULL,
                line INTEGER NOT NULL,
                column INTEGER NOT NULL,
                endLine INTEGER,
                endColumn INTEGER,
                signature TEXT,
                projectPath TEXT NOT NULL
            )
        ''')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_name ON symbols(name)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_kind ON symbols(kind)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_file ON symbols(filePath)')
        conn.commit()

    def _require_open(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StoreError("Symbol store is not open")
        return self.conn

    def load(self, project_path: str | Path) -> SymbolIndex:
        self.open(project_path)
        cursor = self.conn.execute('''
            SELECT name, kind, filePath, line, column, endLine, endColumn, signature
            FROM symbols
            WHERE projectPath = ?
            ORDER BY id
        ''', (project_key(project_path),))

        index: SymbolIndex = {}
        for row in cursor.fetchall():
            symbol = self._row_to_symbol(row)
            index.setdefault(symbol.name, []).append(symbol)
        return index

    def save_symbols(self, symbols: Iterable[Symbol], project_path: str | Path) -> None:
        """Replace every record of ``project_path`` with ``symbols``.

        Not a merge: callers must pass the complete canonical set.

        Raises:
            StoreError: If the store is not open or cannot be written
        """
        conn = self._require_open()
        key = project_key(project_path)
        rows = [
            (s.name, s.kind, s.file_path, s.line, s.column,
             s.end_line, s.end_column, s.signature, key)
            for s in symbols
        ]

        with conn:
            conn.execute('DELETE FROM symbols WHERE projectPath = ?', (key,))
            conn.executemany('''
                INSERT INTO symbols
                    (name, kind, filePath, line, column, endLine, endColumn, signature, projectPath)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', rows)

        self._persist()
        logger.debug("Saved {} symbols for {} to {}", len(rows), key, self.db_path)

    def _persist(self) -> None:
        """Write the working database to disk atomically."""
        tmp_path = self.db_path.with_name(self.db_path.name + '.tmp')
        try:
            if tmp_path.exists():
                tmp_path.unlink()
            target = sqlite3.connect(str(tmp_path))
            try:
                self.conn.backup(target)
            finally:
                target.close()
            os.replace(tmp_path, self.db_path)
        except (sqlite3.Error, OSError) as exc:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise StoreError(f"Cannot write symbol store {self.db_path}: {exc}") from exc

    def find_by_name(self, name: str) -> List[Symbol]:
        """Query the open store directly for symbols with the given name."""
        if self.conn is None:
            return []
        cursor = self.conn.execute('''
            SELECT name, kind, filePath, line, column, endLine, endColumn, signature
            FROM symbols
            WHERE name = ?
            ORDER BY id
        ''', (name,))
        return [self._row_to_symbol(row) for row in cursor.fetchall()]

    def get_stats(self) -> Dict:
        """Get store statistics.

        Returns:
            Dict with 'total_symbols' and a 'by_kind' count mapping
        """
        if self.conn is None:
            return {'total_symbols': 0, 'by_kind': {}}

        total = self.conn.execute('SELECT COUNT(*) FROM symbols').fetchone()[0]
        by_kind = dict(
            self.conn.execute('SELECT kind, COUNT(*) FROM symbols GROUP BY kind').fetchall()
        )
        return {'total_symbols': total, 'by_kind': by_kind}

    def remove(self, project_path: str | Path) -> bool:
        """Delete the backing file of a project's store.

        Returns:
            True if a file was deleted
        """
        db_path = self.get_db_path(project_path)
        if self.db_path == db_path:
            self.close()
        if not db_path.exists():
            return False
        db_path.unlink()
        return True

    @staticmethod
    def _row_to_symbol(row) -> Symbol:
        name, kind, file_path, line, column, end_line, end_column, signature = row
        return Symbol(
            name=name,
            kind=kind,
            file_path=file_path,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
            signature=signature,
        )

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
        self.conn = None
        self.db_path = None
