"""Tests for recursive source discovery."""
import os
from pathlib import Path

from srcscope.analyzer.scanner import DirectoryScanner

FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'project'


def touch(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def relative_paths(root: Path, files):
    return [f.path.relative_to(root).as_posix() for f in files]


class TestDirectoryScanner:
    """Test ignore rules, classification and ordering."""

    def test_supported_files_only(self, tmp_path):
        touch(tmp_path, 'main.c')
        touch(tmp_path, 'README.md')
        touch(tmp_path, 'Makefile')
        touch(tmp_path, 'lib/util.py')

        files = DirectoryScanner(tmp_path).scan()
        assert relative_paths(tmp_path, files) == ['lib/util.py', 'main.c']
        assert [f.language for f in files] == ['python', 'c']

    def test_ignored_directories_and_hidden_entries(self, tmp_path):
        touch(tmp_path, 'keep.c')
        touch(tmp_path, '.git/hooks/pre-commit.py')
        touch(tmp_path, '.hidden.c')
        touch(tmp_path, 'node_modules/pkg/binding.c')
        touch(tmp_path, '__pycache__/mod.py')
        touch(tmp_path, 'build/gen.c')
        touch(tmp_path, 'dist/out.py')

        assert relative_paths(tmp_path, DirectoryScanner(tmp_path).scan()) == ['keep.c']

    def test_ignore_applies_at_any_depth(self, tmp_path):
        touch(tmp_path, 'src/build/gen.c')
        touch(tmp_path, 'src/real.c')
        assert relative_paths(tmp_path, DirectoryScanner(tmp_path).scan()) == ['src/real.c']

    def test_deterministic_sorted_order(self, tmp_path):
        for name in ('zeta.c', 'alpha.h', 'mid/beta.cpp', 'Mixed.hpp'):
            touch(tmp_path, name)

        first = relative_paths(tmp_path, DirectoryScanner(tmp_path).scan())
        second = relative_paths(tmp_path, DirectoryScanner(tmp_path).scan())
        assert first == second == ['Mixed.hpp', 'alpha.h', 'mid/beta.cpp', 'zeta.c']

    def test_fixture_project(self):
        files = DirectoryScanner(FIXTURES_DIR).scan()
        assert relative_paths(FIXTURES_DIR, files) == [
            'include/driver.h',
            'src/driver.c',
            'tools/gen.py',
        ]

    def test_missing_root_yields_nothing(self, tmp_path):
        assert DirectoryScanner(tmp_path / 'nope').scan() == []


class TestSymlinks:
    """Symbolic links to directories are never entered."""

    def test_symlink_loop_does_not_abort(self, tmp_path):
        touch(tmp_path, 'a.c')
        os.symlink('.', tmp_path / 'loop')
        assert relative_paths(tmp_path, DirectoryScanner(tmp_path).scan()) == ['a.c']

    def test_linked_directory_is_not_indexed_twice(self, tmp_path):
        touch(tmp_path, 'real/impl.c')
        os.symlink(tmp_path / 'real', tmp_path / 'alias')
        assert relative_paths(tmp_path, DirectoryScanner(tmp_path).scan()) == ['real/impl.c']

    def test_dangling_source_link_is_still_listed(self, tmp_path):
        os.symlink(tmp_path / 'missing.c', tmp_path / 'broken.c')
        files = DirectoryScanner(tmp_path).scan()
        assert relative_paths(tmp_path, files) == ['broken.c']
        assert files[0].language == 'c'
