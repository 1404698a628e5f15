# =======================================================================================
# rfid_gate/database.py - Database Management
# =======================================================================================
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from .config import config

metadata = MetaData()

# Every collection (residents, audit logs) lives in one keyed document table.
documents = Table(
    "documents",
    metadata,
    Column("collection", String(64), primary_key=True),
    Column("doc_id", String(191), primary_key=True),
    Column("data", Text, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, url: Optional[str] = None):
        url = url or config.DB_URL
        if url.startswith("sqlite"):
            # reader threads share the pool
            self.engine: Engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                future=True,
            )
        else:
            self.engine = create_engine(
                url,
                poolclass=QueuePool,
                pool_size=config.DB_POOL_SIZE,
                max_overflow=config.DB_MAX_OVERFLOW,
                pool_pre_ping=True,
                isolation_level="READ COMMITTED",
                future=True,
            )

    def init_schema(self) -> None:
        """Create the documents table if it does not exist."""
        metadata.create_all(self.engine)

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def fetch_all(self, query: str, params: dict = None):
        """Fetch all results."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().all()

    def dispose(self) -> None:
        self.engine.dispose()
