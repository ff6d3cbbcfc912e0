"""
Tests for the SQL snapshot repository, run against a temporary SQLite file.
"""
import pytest
from sqlalchemy.orm import sessionmaker

from core.errors import FormatError, NotFoundError
from database.connection import create_db_engine, init_db
from database.models import SnapshotRecord
from services import get_snapshot_repository
from services.database_store import DatabaseSnapshotRepository
from tests.conftest import customer, make_manifest


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'db' / 'snapshots.db'}")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def repository(session_factory):
    return DatabaseSnapshotRepository(session_factory)


class TestDatabaseRepository:

    def test_create_and_load(self, repository, shop_manifest):
        snapshot = repository.create(shop_manifest)

        loaded = repository.load("Shop", "1.0.0")

        assert loaded.hash == snapshot.hash
        assert loaded.created_at == snapshot.created_at
        assert loaded.manifest == snapshot.manifest

    def test_row_columns(self, repository, session_factory, shop_manifest):
        snapshot = repository.create(shop_manifest)

        db = session_factory()
        try:
            record = db.query(SnapshotRecord).one()
            assert record.name == "Shop"
            assert record.version == "1.0.0"
            assert record.hash == snapshot.hash
        finally:
            db.close()

    def test_save_replaces_existing(self, repository, session_factory):
        repository.create(make_manifest("1.0.0"))
        changed = repository.create(make_manifest("1.0.0", entities=[customer()]))

        db = session_factory()
        try:
            assert db.query(SnapshotRecord).count() == 1
        finally:
            db.close()
        assert repository.load("Shop", "1.0.0").hash == changed.hash

    def test_list_versions_and_latest(self, repository):
        for version in ("1.10.0", "1.2.0", "1.9.0"):
            repository.create(make_manifest(version))
        repository.create(make_manifest("3.0.0", name="Billing"))

        assert repository.list_versions("Shop") == ["1.2.0", "1.9.0", "1.10.0"]
        assert repository.get_latest("Shop").version == "1.10.0"
        assert repository.list_versions("Billing") == ["3.0.0"]

    def test_missing(self, repository):
        assert repository.exists("Shop", "1.0.0") is False
        with pytest.raises(NotFoundError):
            repository.load("Shop", "1.0.0")
        with pytest.raises(NotFoundError):
            repository.get_latest("Shop")

    def test_blank_stored_document(self, repository, session_factory, shop_manifest):
        repository.create(shop_manifest)

        db = session_factory()
        try:
            db.query(SnapshotRecord).one().document = "  "
            db.commit()
        finally:
            db.close()

        with pytest.raises(FormatError):
            repository.load("Shop", "1.0.0")

    def test_delete(self, repository, shop_manifest):
        repository.create(shop_manifest)

        assert repository.delete("Shop", "1.0.0") is True
        assert repository.exists("Shop", "1.0.0") is False
        assert repository.delete("Shop", "1.0.0") is False

    def test_factory(self, session_factory):
        repository = get_snapshot_repository("database", session_factory=session_factory)

        assert isinstance(repository, DatabaseSnapshotRepository)
