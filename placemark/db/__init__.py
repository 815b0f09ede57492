"""Database module: batch ledger and photo catalog on SQLAlchemy."""

from .catalog import PhotoCatalog
from .config import Settings, settings
from .connection import create_db_engine, get_session_factory, init_db, session_scope
from .ledger import BatchLedger
from .models import Base, OperationBatchFileRecord, OperationBatchRecord, Photo

__all__ = [
    "Settings",
    "settings",
    "create_db_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
    "Base",
    "Photo",
    "OperationBatchRecord",
    "OperationBatchFileRecord",
    "BatchLedger",
    "PhotoCatalog",
]
