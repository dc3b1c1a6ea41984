"""Remote store service for tasksync.

Serves one JSON document per collection over HTTP using FastAPI, persisted
in SQLite.
"""

from .app import create_app
from .document_store import DocumentStore

__all__ = ["DocumentStore", "create_app"]
