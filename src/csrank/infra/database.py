"""
CSRank Document Store.

A small key-document store on top of SQLAlchemy. Every document lives in one
``documents`` table, addressed by ``(collection, doc_id)``, with its body kept
in a JSON column. The ingestion pipeline and the login flow only need
get / set / update / query-by-field, so that is all this exposes.

Uses SQLite by default; any SQLAlchemy URL with JSON support works.
"""

import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from csrank.exceptions import DocumentNotFoundError


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


logger = logging.getLogger(__name__)

Base = declarative_base()


class _ServerTimestamp:
    """Placeholder replaced by the store's clock when a document is written."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


# =============================================================================
# Database Models
# =============================================================================


class Document(Base):
    """One JSON document in a named collection."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(64), nullable=False, index=True)
    doc_id = Column(String(200), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_document_key"),
        Index("idx_document_collection_key", "collection", "doc_id"),
    )

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the document body."""
        return dict(self.data or {})


def resolve_server_timestamps(data: Any, now: str) -> Any:
    """Replace every SERVER_TIMESTAMP in a (nested) value with ``now``."""
    if data is SERVER_TIMESTAMP:
        return now
    if isinstance(data, dict):
        return {k: resolve_server_timestamps(v, now) for k, v in data.items()}
    if isinstance(data, list):
        return [resolve_server_timestamps(v, now) for v in data]
    return data


# =============================================================================
# Document Store
# =============================================================================


class DocumentStore:
    """
    Key-document store backed by a single SQL table.

    Writes are last-writer-wins; there is no locking across sessions.
    """

    def __init__(self, db_path: Path | str | None = None, url: str | None = None):
        """Initialize database connection.

        Args:
            db_path: SQLite file path (defaults to config / CSRANK_DB_PATH)
            url: Full SQLAlchemy URL, takes precedence over db_path
        """
        if url is None:
            if db_path is None:
                from csrank.core.config import get_config

                db_path = os.environ.get("CSRANK_DB_PATH") or get_config().database.path
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{self.db_path}"
        else:
            self.db_path = None

        self.engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
        )
        self.SessionLocal = sessionmaker(bind=self.engine)
        Base.metadata.create_all(self.engine)

        logger.info(f"Document store initialized at: {url}")

    def get_session(self) -> Session:
        """Get a database session."""
        return self.SessionLocal()

    def _now(self) -> str:
        return _utc_now().isoformat()

    def _find(self, session: Session, collection: str, doc_id: str) -> Document | None:
        return (
            session.query(Document)
            .filter(Document.collection == collection, Document.doc_id == doc_id)
            .first()
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return the document body, or None if it does not exist."""
        session = self.get_session()
        try:
            doc = self._find(session, collection, doc_id)
            return doc.to_dict() if doc else None
        finally:
            session.close()

    def exists(self, collection: str, doc_id: str) -> bool:
        """Check whether a document exists."""
        session = self.get_session()
        try:
            return self._find(session, collection, doc_id) is not None
        finally:
            session.close()

    def query(self, collection: str, field: str, value: str) -> list[dict[str, Any]]:
        """
        Return every document in a collection whose top-level string field equals value.

        No pagination: all matches are loaded.
        """
        session = self.get_session()
        try:
            docs = (
                session.query(Document)
                .filter(
                    Document.collection == collection,
                    Document.data[field].as_string() == value,
                )
                .order_by(Document.id)
                .all()
            )
            return [doc.to_dict() for doc in docs]
        finally:
            session.close()

    def list_ids(self, collection: str) -> list[str]:
        """List document ids in a collection, in insertion order."""
        session = self.get_session()
        try:
            rows = (
                session.query(Document.doc_id)
                .filter(Document.collection == collection)
                .order_by(Document.id)
                .all()
            )
            return [row[0] for row in rows]
        finally:
            session.close()

    # =========================================================================
    # Writes
    # =========================================================================

    def set(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        """
        Create or replace a document.

        With merge=True the given top-level fields overwrite those of an
        existing document and all other fields are kept.
        """
        body = resolve_server_timestamps(data, self._now())
        session = self.get_session()
        try:
            doc = self._find(session, collection, doc_id)
            if doc is None:
                session.add(Document(collection=collection, doc_id=doc_id, data=body))
            elif merge:
                doc.data = {**(doc.data or {}), **body}
            else:
                doc.data = body
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to write {collection}/{doc_id}: {e}")
            raise
        finally:
            session.close()

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """
        Overwrite top-level fields of an existing document.

        Raises:
            DocumentNotFoundError: if the document does not exist
        """
        body = resolve_server_timestamps(fields, self._now())
        session = self.get_session()
        try:
            doc = self._find(session, collection, doc_id)
            if doc is None:
                raise DocumentNotFoundError(collection, doc_id)
            doc.data = {**(doc.data or {}), **body}
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns True if it existed."""
        session = self.get_session()
        try:
            doc = self._find(session, collection, doc_id)
            if doc is None:
                return False
            session.delete(doc)
            session.commit()
            return True
        finally:
            session.close()


# Global store instance (lazy initialization)
_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Get the global document store instance."""
    global _store
    if _store is None:
        _store = DocumentStore()
    return _store


def set_store(store: DocumentStore | None) -> None:
    """Replace the global document store (None resets to lazy default)."""
    global _store
    _store = store
