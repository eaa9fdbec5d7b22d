import os
import tempfile

# Keep the import-time globals (DB, logger) out of the working tree
_TMP = tempfile.mkdtemp(prefix="adhdo-tests-")
os.environ.setdefault("ADHDO_DB_PATH", os.path.join(_TMP, "global.db"))
os.environ.setdefault("ADHDO_LOG_FILE", os.path.join(_TMP, "adhdo.jsonl"))

import pytest

from adhdo.infrastructure.database import DatabaseManager
from adhdo.infrastructure.event_bus import EventBus
from adhdo.infrastructure.task_store import TaskStore
from adhdo.state import ViewState


@pytest.fixture()
def tmp_db(tmp_path):
    """Provides a DatabaseManager backed by a temporary SQLite file."""
    db_path = str(tmp_path / "test.db")
    db = DatabaseManager(db_path=db_path)
    yield db
    db.close()


@pytest.fixture()
def event_bus():
    """Provides a fresh EventBus instance."""
    return EventBus()


@pytest.fixture()
def store(tmp_db, event_bus):
    """Provides a TaskStore on a temporary database and a private event bus."""
    return TaskStore(tmp_db, event_bus)


@pytest.fixture()
def view_state():
    """Provides a fresh ViewState (not connected to global DB)."""
    return ViewState()

