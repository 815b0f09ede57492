"""
Pytest configuration and fixtures for placemark tests.

Every test gets its own SQLite database under tmp_path, and the OS trash is
replaced by a temp directory so nothing lands in the user's real trash.
"""

import shutil
from pathlib import Path
from typing import Callable, List

import pytest
from sqlalchemy.orm import sessionmaker

from placemark.core.types import PhotoRef
from placemark.db.catalog import PhotoCatalog
from placemark.db.config import Settings
from placemark.db.connection import create_db_engine, init_db
from placemark.db.ledger import BatchLedger
from placemark.operations.executor import BatchExecutor
from placemark.operations.service import OperationsService
from placemark.operations.undo import UndoEngine


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "db" / "placemark.db"


@pytest.fixture
def session_factory(db_path):
    """Provide a session factory on a fresh SQLite database."""
    engine = create_db_engine(f"sqlite:///{db_path}")
    init_db(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def ledger(session_factory) -> BatchLedger:
    return BatchLedger(session_factory)


@pytest.fixture
def catalog(session_factory) -> PhotoCatalog:
    return PhotoCatalog(session_factory)


@pytest.fixture
def app_settings(tmp_path, db_path) -> Settings:
    return Settings(data_dir=tmp_path / "appdata", database_path=db_path)


@pytest.fixture
def executor(ledger, catalog) -> BatchExecutor:
    return BatchExecutor(ledger, catalog)


@pytest.fixture
def undo_engine(ledger, catalog) -> UndoEngine:
    return UndoEngine(ledger, catalog)


@pytest.fixture
def service(ledger, catalog, app_settings) -> OperationsService:
    return OperationsService(ledger, catalog, app_settings=app_settings)


@pytest.fixture
def source_dir(tmp_path) -> Path:
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path) -> Path:
    path = tmp_path / "backup"
    path.mkdir()
    return path


@pytest.fixture
def make_photo(catalog) -> Callable[..., PhotoRef]:
    """Create a file on disk and register it in the catalog."""

    def _make_photo(path: Path, content: bytes = b"photo bytes") -> PhotoRef:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return catalog.add_photo(path)

    return _make_photo


@pytest.fixture(autouse=True)
def fake_trash(tmp_path, monkeypatch) -> List[str]:
    """
    Replace send2trash with a move into tmp_path/.trash.

    Returns the list of trashed paths, in order.
    """
    trash_dir = tmp_path / ".trash"
    trash_dir.mkdir()
    trashed: List[str] = []

    def _send2trash(path):
        path = Path(path)
        target = trash_dir / f"{len(trashed)}_{path.name}"
        shutil.move(str(path), str(target))
        trashed.append(str(path))

    monkeypatch.setattr("placemark.operations.fileops.send2trash", _send2trash)
    return trashed
