# =======================================================================================
# rfid_gate/services/store.py - Keyed Document Store
# =======================================================================================
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from ..database import DatabaseManager
from ..utils.exceptions import StoreError

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Minimal keyed-document contract the access core depends on:
    get-by-key and create/replace-by-key inside a named collection.
    Implementations raise StoreError for any backend failure and must
    tolerate concurrent calls from several reader threads.
    """

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def ping(self) -> None:
        """Raise StoreError if the backend is unreachable."""
        raise NotImplementedError


class SqlDocumentStore(DocumentStore):
    """Document store on top of the `documents` table."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            row = self.db.fetch_one(
                "SELECT data FROM documents WHERE collection=:c AND doc_id=:k",
                {"c": collection, "k": key},
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read {collection}/{key}: {e}") from e
        if not row:
            return None
        return json.loads(row["data"])

    def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        params = {
            "c": collection,
            "k": key,
            "d": json.dumps(data, default=str),
            "ts": datetime.now(timezone.utc).replace(tzinfo=None),
        }
        try:
            with self.db.get_connection() as conn:
                result = conn.execute(
                    text("""
                        UPDATE documents SET data=:d, updated_at=:ts
                        WHERE collection=:c AND doc_id=:k
                    """),
                    params,
                )
                if result.rowcount == 0:
                    conn.execute(
                        text("""
                            INSERT INTO documents (collection, doc_id, data, updated_at)
                            VALUES (:c, :k, :d, :ts)
                        """),
                        params,
                    )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write {collection}/{key}: {e}") from e

    def ping(self) -> None:
        try:
            self.db.fetch_one("SELECT 1")
        except SQLAlchemyError as e:
            raise StoreError(f"Database unreachable: {e}") from e


def build_store(backend: str, db_url: Optional[str] = None, credentials_path: Optional[str] = None) -> DocumentStore:
    """Create the configured store backend."""
    if backend == "sql":
        db = DatabaseManager(db_url)
        db.init_schema()
        return SqlDocumentStore(db)
    if backend == "firestore":
        from .firestore_store import FirestoreDocumentStore

        return FirestoreDocumentStore.from_credentials(credentials_path)
    raise ValueError(f"Unknown store backend: {backend!r}")
