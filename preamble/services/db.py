# preamble/services/db.py
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Optional

import psycopg2
from psycopg2.extras import Json, RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from ..errors import DocumentNotFoundError, StorageError

log = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id               TEXT PRIMARY KEY,
    email            TEXT,
    full_name        TEXT,
    avatar_url       TEXT,
    generation_count INTEGER NOT NULL DEFAULT 0,
    created_at       TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS generated_docs (
    id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id    TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    repo_name  TEXT NOT NULL,
    content    TEXT NOT NULL,
    metadata   JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS generated_docs_user_created_idx
    ON generated_docs (user_id, created_at DESC);
"""

DOC_COLUMNS = "id, user_id, repo_name, content, metadata, created_at"


def _doc_from_row(row: dict) -> dict:
    doc = dict(row)
    doc["id"] = str(doc["id"])
    created = doc.get("created_at")
    if created is not None and hasattr(created, "isoformat"):
        doc["created_at"] = created.isoformat()
    doc["metadata"] = doc.get("metadata") or {}
    return doc


def _parse_doc_id(doc_id: str) -> str:
    try:
        return str(uuid.UUID(str(doc_id)))
    except ValueError:
        raise DocumentNotFoundError(str(doc_id)) from None


class DocumentStore:
    """
    Postgres access for users and generated documents.

    Built once by ``create_app`` and shared by every request. The connection
    pool opens on first use and is released by ``close()``.
    """

    def __init__(self, dsn: str, password: Optional[str] = None, maxconn: int = 5, pool=None):
        self.dsn = dsn
        self.password = password
        self.maxconn = maxconn
        self._pool = pool
        self._pool_lock = threading.Lock()

    @property
    def pool(self):
        with self._pool_lock:
            if self._pool is None:
                kwargs = {"password": self.password} if self.password else {}
                try:
                    self._pool = ThreadedConnectionPool(1, self.maxconn, self.dsn, **kwargs)
                except psycopg2.Error as e:
                    raise StorageError(f"Could not connect to Postgres: {e}") from e
            return self._pool

    def close(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None

    @contextmanager
    def _cursor(self):
        pool = self.pool
        try:
            conn = pool.getconn()
        except psycopg2.Error as e:
            # PoolError too: the threaded pool does not block when exhausted
            raise StorageError(f"No database connection available: {e}") from e
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    # ---- schema ----

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            cur.execute(SCHEMA_SQL)

    # ---- users ----

    def upsert_user(self, user: dict) -> int:
        """Insert or refresh the user row; returns its generation_count."""
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO users (id, email, full_name, avatar_url)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE
                   SET email = EXCLUDED.email,
                       full_name = EXCLUDED.full_name,
                       avatar_url = EXCLUDED.avatar_url
                RETURNING generation_count
                """,
                (str(user["id"]), user.get("email"), user.get("name"), user.get("avatar_url")),
            )
            row = cur.fetchone()
        return int((row or {}).get("generation_count") or 0)

    def _increment_generation_count(self, user_id: str) -> None:
        with self._cursor() as cur:
            cur.execute(
                "UPDATE users SET generation_count = generation_count + 1 WHERE id = %s",
                (user_id,),
            )

    # ---- documents ----

    def save_document(self, user: dict, repo_name: str, content: str, metadata: Optional[dict] = None) -> dict:
        user_id = str(user["id"])
        self.upsert_user(user)
        with self._cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO generated_docs (user_id, repo_name, content, metadata)
                VALUES (%s, %s, %s, %s)
                RETURNING {DOC_COLUMNS}
                """,
                (user_id, repo_name, content, Json(metadata or {})),
            )
            doc = _doc_from_row(cur.fetchone())

        try:
            self._increment_generation_count(user_id)
        except StorageError as e:
            log.warning("Could not update generation_count for %s: %s", user_id, e)
        return doc

    def list_documents(self, user_id: str) -> list[dict]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {DOC_COLUMNS} FROM generated_docs WHERE user_id = %s ORDER BY created_at DESC",
                (user_id,),
            )
            rows = cur.fetchall()
        return [_doc_from_row(r) for r in rows]

    def get_document(self, user_id: str, doc_id: str) -> dict:
        did = _parse_doc_id(doc_id)
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {DOC_COLUMNS} FROM generated_docs WHERE id = %s AND user_id = %s",
                (did, user_id),
            )
            row = cur.fetchone()
        if row is None:
            raise DocumentNotFoundError(did)
        return _doc_from_row(row)

    def update_document(self, user_id: str, doc_id: str, content: str) -> dict:
        """Replace the content wholesale and refresh the timestamp."""
        did = _parse_doc_id(doc_id)
        with self._cursor() as cur:
            cur.execute(
                f"""
                UPDATE generated_docs
                   SET content = %s, created_at = now()
                 WHERE id = %s AND user_id = %s
                RETURNING {DOC_COLUMNS}
                """,
                (content, did, user_id),
            )
            row = cur.fetchone()
        if row is None:
            raise DocumentNotFoundError(did)
        return _doc_from_row(row)

    def delete_document(self, user_id: str, doc_id: str) -> None:
        did = _parse_doc_id(doc_id)
        with self._cursor() as cur:
            cur.execute(
                "DELETE FROM generated_docs WHERE id = %s AND user_id = %s",
                (did, user_id),
            )
            deleted = cur.rowcount
        if not deleted:
            raise DocumentNotFoundError(did)


def get_store(app: Any) -> DocumentStore:
    return app.extensions["document_store"]
