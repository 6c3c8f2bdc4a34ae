"""SQLite schema for the document store (code-first approach)."""

import logging

import aiosqlite

from freshcut.core.config import Constants


logger = logging.getLogger(__name__)


# Central list of all collections the store accepts
COLLECTIONS = [
    Constants.INVENTORY_COLLECTION,
    Constants.NEEDS_COLLECTION,
]

# Documents of every collection share one table; fields live in the JSON
# `data` column and `seq` is the server-assigned creation order.
DOCUMENTS_TABLE = """CREATE TABLE IF NOT EXISTS documents (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    data TEXT NOT NULL,
    UNIQUE (collection, id)
)"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_documents_collection_created ON documents (collection, created_at)",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """Create the documents table and its indexes if they do not exist."""
    await conn.execute(DOCUMENTS_TABLE)
    for index_sql in INDEXES:
        await conn.execute(index_sql)
    await conn.commit()
    logger.info("Document store schema ready", extra={"collections": COLLECTIONS})
