"""Tests for database resolution and the package iterator"""

import gc
import gzip

import pytest

from pacdb.core.config import DatabaseConfig
from pacdb.core.database import Database, IteratorState, PackageIterator, resolve_db_path
from pacdb.core.desc import UnknownKeyPolicy
from pacdb.core.errors import (
    DatabaseIterationError,
    DatabaseLoadError,
    DatabaseNotFoundError,
    PacdbError,
    PackageNotFoundError,
    PackageParseSizeError,
    PackagePropertyMissingError,
    PackageUtf8ConversionError,
)
from pacdb.core.package import Package

from conftest import CURL_DESC, write_db


class TestPackageIterator:
    """Tests for the lazy package result sequence."""

    def test_two_packages(self, core_db):
        items = list(PackageIterator(core_db))
        assert all(isinstance(item, Package) for item in items)
        assert [pkg.name for pkg in items] == ['supertux', 'curl']

    def test_full_record(self, core_db):
        supertux = next(PackageIterator(core_db))
        assert supertux.version == '0.6.2-3'
        assert supertux.size == 157518488
        assert supertux.isize == 229551408
        assert supertux.licenses == ['GPL']
        assert supertux.depends == ['curl', 'openal', 'libvorbis', 'glew', 'sdl2_image']
        assert supertux.make_depends == ['cmake', 'boost']
        assert supertux.packager == 'Felix Yan <felixonmars@archlinux.org>'

    def test_states(self, core_db):
        it = PackageIterator(core_db)
        assert it.state is IteratorState.UNINITIALIZED
        next(it)
        assert it.state is IteratorState.STREAMING
        next(it)
        with pytest.raises(StopIteration):
            next(it)
        assert it.state is IteratorState.EXHAUSTED

    def test_exhausted_is_terminal(self, core_db):
        it = PackageIterator(core_db)
        assert len(list(it)) == 2
        for _ in range(3):
            with pytest.raises(StopIteration):
                next(it)
        assert list(it) == []

    def test_not_restartable(self, core_db):
        it = PackageIterator(core_db)
        list(it)
        assert list(it) == []
        assert len(list(PackageIterator(core_db))) == 2

    def test_missing_file(self, tmp_path):
        items = list(PackageIterator(tmp_path / 'missing.db'))
        assert len(items) == 1
        assert isinstance(items[0], DatabaseLoadError)

    def test_missing_file_is_not_opened_early(self, tmp_path):
        it = PackageIterator(tmp_path / 'missing.db')
        assert it.state is IteratorState.UNINITIALIZED
        assert isinstance(next(it), DatabaseLoadError)
        assert it.state is IteratorState.EXHAUSTED
        with pytest.raises(StopIteration):
            next(it)

    def test_not_an_archive(self, tmp_path):
        path = tmp_path / 'core.db'
        path.write_bytes(gzip.compress(b'not a tar archive'))
        items = list(PackageIterator(path))
        assert len(items) == 1
        assert isinstance(items[0], DatabaseIterationError)

    def test_truncated_archive(self, tmp_path):
        packages = {
            f'pkg{i}-1.0-1': {'desc': f'%NAME%\npkg{i}\n\n%DESC%\n{"x" * i}\n'}
            for i in range(200)
        }
        path = write_db(tmp_path / 'core.db', packages)
        data = path.read_bytes()
        path.write_bytes(data[:len(data) // 2])

        it = PackageIterator(path)
        items = list(it)
        assert isinstance(items[-1], DatabaseIterationError)
        assert all(isinstance(item, Package) for item in items[:-1])
        assert it.state is IteratorState.EXHAUSTED

    def test_local_failures_do_not_stop_iteration(self, tmp_path):
        packages = {
            'bad-key-1': {'desc': '%NAME%\nbad-key\n\n%CONFLICTS%\nfoo\n'},
            'bad-size-1': {'desc': '%NAME%\nbad-size\n\n%ISIZE%\n-12\n'},
            'bad-utf8-1': {'desc': b'%NAME%\nbad\xff\xfeutf8\n'},
            'curl-7.74.0-1': {'desc': CURL_DESC},
        }
        path = write_db(tmp_path / 'core.db', packages)
        items = list(PackageIterator(path))

        assert len(items) == 4
        assert isinstance(items[0], PackagePropertyMissingError)
        assert items[0].key == 'CONFLICTS'
        assert isinstance(items[1], PackageParseSizeError)
        assert isinstance(items[2], PackageUtf8ConversionError)
        assert items[2].package == 'bad-utf8-1'
        assert isinstance(items[3], Package)
        assert items[3].name == 'curl'

    def test_ignore_policy(self, tmp_path):
        packages = {'foo-1': {'desc': '%NAME%\nfoo\n\n%GROUPS%\nbase\n'}}
        path = write_db(tmp_path / 'core.db', packages)
        items = list(PackageIterator(path, UnknownKeyPolicy.IGNORE))
        assert items == [Package(name='foo')]

    def test_zstd_archive(self, tmp_path, two_packages):
        path = write_db(tmp_path / 'core.db', two_packages, 'zstd')
        assert [pkg.name for pkg in PackageIterator(path)] == ['supertux', 'curl']

    def test_close_early(self, core_db):
        it = PackageIterator(core_db)
        next(it)
        reader = it._reader
        it.close()
        assert reader.closed
        assert it.state is IteratorState.EXHAUSTED
        assert list(it) == []

    def test_context_manager(self, core_db):
        with PackageIterator(core_db) as it:
            next(it)
            reader = it._reader
        assert reader.closed

    def test_abandoned_iterator_releases_archive(self, core_db):
        it = PackageIterator(core_db)
        next(it)
        reader = it._reader
        del it
        gc.collect()
        assert reader.closed

    def test_packages_skips_local_failures(self, tmp_path):
        packages = {
            'bad-1': {'desc': '%NAME%\nbad\n\n%CSIZE%\nbig\n'},
            'curl-7.74.0-1': {'desc': CURL_DESC},
        }
        path = write_db(tmp_path / 'core.db', packages)
        assert [pkg.name for pkg in PackageIterator(path).packages()] == ['curl']

    def test_packages_raises_fatal(self, tmp_path):
        with pytest.raises(DatabaseLoadError):
            list(PackageIterator(tmp_path / 'missing.db').packages())


class TestDatabase:
    """Tests for database path resolution and lookup."""

    def test_load_sync_layout(self, db_dir):
        db = Database.load('core', db_dir=db_dir)
        assert db.name == 'core'
        assert db.path == db_dir / 'sync' / 'core.db'

    def test_load_flat_layout(self, tmp_path, two_packages):
        write_db(tmp_path / 'extra.db', two_packages)
        db = Database.load('extra', db_dir=tmp_path)
        assert db.path == tmp_path / 'extra.db'

    def test_name_lowercased(self, db_dir):
        db = Database.load('CORE', db_dir=db_dir)
        assert db.name == 'core'
        assert db.path.name == 'core.db'

    def test_not_found(self, tmp_path):
        with pytest.raises(DatabaseNotFoundError) as exc:
            Database.load('Community', db_dir=tmp_path)
        assert exc.value.name == 'community'

    def test_directory_is_not_a_database(self, tmp_path):
        (tmp_path / 'sync' / 'core.db').mkdir(parents=True)
        with pytest.raises(DatabaseNotFoundError):
            Database.load('core', db_dir=tmp_path)

    def test_default_dir(self):
        assert Database('core').path == resolve_db_path('core', '/var/lib/pacman')
        assert str(Database('core').config.db_dir) == '/var/lib/pacman'

    def test_with_dir(self, db_dir, tmp_path_factory):
        other = tmp_path_factory.mktemp('other')
        with pytest.raises(DatabaseNotFoundError):
            Database.load('core', db_dir=db_dir).with_dir(other)
        db = Database.load('core', db_dir=db_dir).with_dir(db_dir)
        assert db.path == db_dir / 'sync' / 'core.db'

    def test_packages_fresh_each_time(self, db_dir):
        db = Database.load('core', db_dir=db_dir)
        assert len(list(db.packages())) == 2
        assert len(list(db)) == 2

    def test_find(self, db_dir):
        db = Database.load('core', db_dir=db_dir)
        assert db.find('curl').version == '7.74.0-1'

    def test_find_missing(self, db_dir):
        db = Database.load('core', db_dir=db_dir)
        with pytest.raises(PackageNotFoundError) as exc:
            db.find('firefox')
        assert exc.value.name == 'firefox'

    def test_find_database_vanished(self, db_dir):
        db = Database.load('core', db_dir=db_dir)
        db.path.unlink()
        with pytest.raises(DatabaseLoadError):
            db.find('curl')

    def test_list_packages(self, db_dir):
        db = Database.load('core', db_dir=db_dir)
        assert [pkg.name for pkg in db.list_packages()] == ['supertux', 'curl']

    def test_config_policy(self, tmp_path):
        write_db(tmp_path / 'core.db', {'foo-1': {'desc': '%NAME%\nfoo\n\n%GROUPS%\nx\n'}})
        strict = Database.load('core', db_dir=tmp_path)
        assert isinstance(next(iter(strict)), PacdbError)

        config = DatabaseConfig().with_unknown_keys(UnknownKeyPolicy.IGNORE)
        lax = Database.load('core', db_dir=tmp_path, config=config)
        assert list(lax) == [Package(name='foo')]
