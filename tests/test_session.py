"""Integration tests for the indexing session (scan, extract, dedup, persist)."""
import os
import shutil
from pathlib import Path

import pytest

from srcscope.analyzer.extractor import Symbol
from srcscope.analyzer.session import IndexingSession
from srcscope.analyzer.store import DEFAULT_DB_NAME, SqliteSymbolStore, StoreError

FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'project'


@pytest.fixture
def project(tmp_path):
    """Writable copy of the fixture project."""
    root = tmp_path / 'project'
    shutil.copytree(FIXTURES_DIR, root)
    return root


class TestBuildFull:
    """Test the full build pipeline on the fixture project."""

    def test_builds_canonical_index(self, project):
        session = IndexingSession()
        session.build_full(project)

        index = session.get_all()
        assert sorted(index) == sorted([
            'wl_probe', 'wl_dump', 'wl_dump_stub', 'wl_attach',
            'wl_info', 'reg_t', 'wl_info_t',
            '__init__', 'run', 'main', 'Generator',
        ])

    def test_function_prototype_and_definition_both_navigable(self, project):
        session = IndexingSession()
        session.build_full(project)
        assert [s.line for s in session.find_by_name('wl_probe')] == [9, 11]

    def test_struct_reported_once_per_file(self, project):
        session = IndexingSession()
        session.build_full(project)
        structs = session.find_by_name('wl_info')
        assert sorted((Path(s.file_path).name, s.line) for s in structs) == [
            ('driver.c', 5),
            ('driver.h', 4),
        ]

    def test_false_positive_if_is_filtered(self, project):
        session = IndexingSession()
        session.build_full(project)
        assert session.find_by_name('if') == []

    def test_typedef_signature_kept(self, project):
        session = IndexingSession()
        session.build_full(project)
        (reg_t,) = session.find_by_name('reg_t')
        assert reg_t.signature == 'typedef unsigned int reg_t;'

    def test_progress_phases(self, project):
        events = []
        IndexingSession().build_full(project, events.append)

        phases = [e.phase for e in events]
        assert phases == ['scanning', 'parsing', 'parsing', 'parsing', 'saving', 'complete']

        parsing = [e for e in events if e.phase == 'parsing']
        assert [(e.current, e.total) for e in parsing] == [(1, 3), (2, 3), (3, 3)]
        assert [e.current_file for e in parsing] == ['driver.h', 'driver.c', 'gen.py']

        assert (events[0].current, events[0].total) == (0, 0)
        saving, complete = events[-2], events[-1]
        assert saving.current == 0
        assert complete.current == complete.total == saving.total

    def test_build_persists_store(self, project):
        IndexingSession().build_full(project)
        assert (project / DEFAULT_DB_NAME).is_file()

    def test_rebuild_replaces_previous_index(self, project):
        session = IndexingSession()
        session.build_full(project)
        (project / 'tools' / 'gen.py').unlink()
        session.build_full(project)

        assert session.find_by_name('Generator') == []
        reloaded = IndexingSession()
        assert reloaded.load_persisted(project)
        assert reloaded.find_by_name('Generator') == []

    def test_unreadable_file_does_not_abort(self, project):
        # Scanned like any other .c file, but reading it fails
        os.symlink(project / 'src' / 'gone.c', project / 'src' / 'broken.c')
        events = []
        session = IndexingSession()
        session.build_full(project, events.append)

        parsed = [e.current_file for e in events if e.phase == 'parsing']
        assert parsed == ['driver.h', 'broken.c', 'driver.c', 'gen.py']
        assert all(Path(s.file_path).name != 'broken.c'
                   for symbols in session.get_all().values() for s in symbols)
        assert session.find_by_name('wl_attach')
        assert session.find_by_name('Generator')

    def test_symlinked_directory_is_not_indexed_twice(self, project):
        os.symlink(project / 'include', project / 'include_alias')
        session = IndexingSession()
        session.build_full(project)
        assert [Path(s.file_path).parent.name for s in session.find_by_name('wl_attach')] == ['include']

    def test_store_failure_propagates(self, project):
        (project / DEFAULT_DB_NAME).write_bytes(b"garbage that is not sqlite" * 20)
        session = IndexingSession()
        with pytest.raises(StoreError):
            session.build_full(project)
        assert session.store.conn is None


class TestLookup:
    """Test the lookup interface."""

    def test_find_missing_name_returns_empty_list(self):
        assert IndexingSession().find_by_name('nothing') == []

    def test_find_returns_a_copy(self, project):
        session = IndexingSession()
        session.build_full(project)
        session.find_by_name('wl_probe').clear()
        assert len(session.find_by_name('wl_probe')) == 2

    def test_clear(self, project):
        session = IndexingSession()
        session.build_full(project)
        session.clear()
        assert session.get_all() == {}


class TestLoadPersisted:
    """Test reloading a previous build."""

    def test_no_store_returns_false(self, project):
        session = IndexingSession()
        assert session.load_persisted(project) is False
        assert session.get_all() == {}

    def test_reload_matches_build(self, project):
        built = IndexingSession()
        built.build_full(project)

        loaded = IndexingSession()
        assert loaded.load_persisted(project) is True

        def as_set(index):
            return {
                (s.name, s.kind, s.file_path, s.line, s.column, s.signature)
                for symbols in index.values() for s in symbols
            }

        assert as_set(loaded.get_all()) == as_set(built.get_all())

    def test_load_refilters_stored_records(self, project):
        store = SqliteSymbolStore()
        store.open(project)
        store.save_symbols([
            Symbol('int', 'function', 'a.c', 1, 1),
            Symbol('Box', 'class', 'a.cpp', 9, 1),
            Symbol('Box', 'class', 'a.cpp', 2, 1),
            Symbol('counter', 'variable', 'a.c', 4, 1),
        ], project)
        store.close()

        session = IndexingSession()
        assert session.load_persisted(project)
        assert list(session.get_all()) == ['Box']
        assert [s.line for s in session.find_by_name('Box')] == [2]
