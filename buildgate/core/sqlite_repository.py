"""SQLite-backed repository for the Product -> Version -> Deployment hierarchy.

Design:
- Three tables keyed (product_id), (product_id, version_id) and
  (product_id, version_id, ord), with ON DELETE CASCADE downwards.
- Explicit row <-> model mapping functions; the models carry no storage
  annotations.
- Conditional deployment updates are a single ``UPDATE ... WHERE status = ?``
  so two concurrent approvals cannot both succeed.
- Version positions are unique per product; appends take the write lock
  before reading the next position.
- Only duplicate-key failures are conflicts; other integrity failures are
  storage errors.
- WAL journal mode for concurrent readers.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from buildgate.core.repository import ConflictError, StorageError
from buildgate.models.hierarchy import Deployment, Product, ValidationError, Version
from buildgate.models.pipeline import DeploymentStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_PRODUCT = """
CREATE TABLE IF NOT EXISTS product (
    id          TEXT NOT NULL PRIMARY KEY,
    description TEXT NOT NULL DEFAULT ''
);
"""

_CREATE_VERSION = """
CREATE TABLE IF NOT EXISTS version (
    product_id  TEXT NOT NULL,
    id          TEXT NOT NULL,
    position    INTEGER NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (product_id, id),
    UNIQUE (product_id, position),
    FOREIGN KEY (product_id) REFERENCES product(id) ON DELETE CASCADE
);
"""

_CREATE_DEPLOYMENT = """
CREATE TABLE IF NOT EXISTS deployment (
    product_id  TEXT NOT NULL,
    version_id  TEXT NOT NULL,
    ord         INTEGER NOT NULL,
    environment TEXT NOT NULL,
    status      TEXT NOT NULL,
    granted_by  TEXT NOT NULL DEFAULT '',
    timestamp   TEXT,
    PRIMARY KEY (product_id, version_id, ord),
    FOREIGN KEY (product_id, version_id)
        REFERENCES version(product_id, id) ON DELETE CASCADE
);
"""

_DEPLOYMENT_COLUMNS = "ord, environment, status, granted_by, timestamp"


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def deployment_to_row(
    product_id: str, version_id: str, deployment: Deployment
) -> tuple:
    """Map a Deployment onto a ``deployment`` table row."""
    return (
        product_id,
        version_id,
        deployment.order,
        deployment.environment,
        deployment.status.value,
        deployment.granted_by,
        deployment.timestamp.isoformat() if deployment.timestamp else None,
    )


def row_to_deployment(row: tuple) -> Deployment:
    """Map a ``(ord, environment, status, granted_by, timestamp)`` row."""
    order, environment, status, granted_by, timestamp = row
    return Deployment(
        order=order,
        environment=environment,
        status=DeploymentStatus(status),
        granted_by=granted_by,
        timestamp=datetime.fromisoformat(timestamp) if timestamp else None,
    )


class SQLiteRepository:
    """Repository persisting the hierarchy in a SQLite database.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, translate driver errors."""
        conn = self._connect()
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            if _is_duplicate_key(exc):
                raise ConflictError(str(exc)) from exc
            logger.error("Integrity failure on %s: %s", self._db_path, exc)
            raise StorageError(str(exc)) from exc
        except sqlite3.Error as exc:
            logger.error("SQLite error on %s: %s", self._db_path, exc)
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._session() as conn:
            conn.execute(_CREATE_PRODUCT)
            conn.execute(_CREATE_VERSION)
            conn.execute(_CREATE_DEPLOYMENT)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_products(self) -> list[Product]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT id, description FROM product ORDER BY id"
            ).fetchall()
            return [self._load_product(conn, pid, desc) for pid, desc in rows]

    def find_product(self, product_id: str) -> Product | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT id, description FROM product WHERE id = ?",
                (product_id,),
            ).fetchone()
            return self._load_product(conn, *row) if row else None

    def find_version(self, product_id: str, version_id: str) -> Version | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT id, description FROM version "
                "WHERE product_id = ? AND id = ?",
                (product_id, version_id),
            ).fetchone()
            return self._load_version(conn, product_id, *row) if row else None

    def find_deployment(
        self, product_id: str, version_id: str, order: int
    ) -> Deployment | None:
        with self._session() as conn:
            row = conn.execute(
                f"SELECT {_DEPLOYMENT_COLUMNS} FROM deployment "
                "WHERE product_id = ? AND version_id = ? AND ord = ?",
                (product_id, version_id, order),
            ).fetchone()
        if row is None:
            return None
        with _decoding(f"{product_id}/{version_id}/{order}"):
            return row_to_deployment(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_deployment(
        self,
        product_id: str,
        version_id: str,
        deployment: Deployment,
        *,
        expected_status: DeploymentStatus | None = None,
    ) -> bool:
        _, _, order, environment, status, granted_by, timestamp = deployment_to_row(
            product_id, version_id, deployment
        )
        sql = (
            "UPDATE deployment SET environment = ?, status = ?, granted_by = ?, "
            "timestamp = ? WHERE product_id = ? AND version_id = ? AND ord = ?"
        )
        params: tuple = (
            environment, status, granted_by, timestamp, product_id, version_id, order,
        )
        if expected_status is not None:
            sql += " AND status = ?"
            params += (expected_status.value,)

        with self._session() as conn:
            updated = conn.execute(sql, params).rowcount
        logger.debug(
            "Saved deployment %s/%s/%d (rows=%d)",
            product_id, version_id, order, updated,
        )
        return updated == 1

    def insert_product(self, product: Product) -> None:
        with self._session() as conn:
            conn.execute(
                "INSERT INTO product (id, description) VALUES (?, ?)",
                (product.id, product.description),
            )
            for position, version in enumerate(product.versions):
                self._insert_version(conn, product.id, version, position)
        logger.info(
            "Inserted product %s with %d version(s)", product.id, len(product.versions)
        )

    def insert_version(self, product_id: str, version: Version) -> None:
        with self._session() as conn:
            # Position is read and written under one write lock.
            conn.execute("BEGIN IMMEDIATE")
            exists = conn.execute(
                "SELECT 1 FROM product WHERE id = ?", (product_id,)
            ).fetchone()
            if not exists:
                raise StorageError(f"Product {product_id!r} does not exist.")
            (position,) = conn.execute(
                "SELECT COALESCE(MAX(position) + 1, 0) FROM version "
                "WHERE product_id = ?",
                (product_id,),
            ).fetchone()
            self._insert_version(conn, product_id, version, position)
        logger.info("Inserted version %s/%s", product_id, version.id)

    def delete_product(self, product_id: str) -> bool:
        with self._session() as conn:
            deleted = conn.execute(
                "DELETE FROM product WHERE id = ?", (product_id,)
            ).rowcount
        if deleted:
            logger.info("Deleted product %s", product_id)
        return deleted == 1

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _insert_version(
        conn: sqlite3.Connection, product_id: str, version: Version, position: int
    ) -> None:
        conn.execute(
            "INSERT INTO version (product_id, id, position, description) "
            "VALUES (?, ?, ?, ?)",
            (product_id, version.id, position, version.description),
        )
        conn.executemany(
            "INSERT INTO deployment (product_id, version_id, ord, environment, "
            "status, granted_by, timestamp) VALUES (?, ?, ?, ?, ?, ?, ?)",
            [deployment_to_row(product_id, version.id, d) for d in version.deployments],
        )

    def _load_product(
        self, conn: sqlite3.Connection, product_id: str, description: str
    ) -> Product:
        rows = conn.execute(
            "SELECT id, description FROM version WHERE product_id = ? "
            "ORDER BY position",
            (product_id,),
        ).fetchall()
        versions = tuple(
            self._load_version(conn, product_id, vid, vdesc) for vid, vdesc in rows
        )
        with _decoding(product_id):
            return Product(id=product_id, description=description, versions=versions)

    def _load_version(
        self,
        conn: sqlite3.Connection,
        product_id: str,
        version_id: str,
        description: str,
    ) -> Version:
        rows = conn.execute(
            f"SELECT {_DEPLOYMENT_COLUMNS} FROM deployment "
            "WHERE product_id = ? AND version_id = ? ORDER BY ord",
            (product_id, version_id),
        ).fetchall()
        with _decoding(f"{product_id}/{version_id}"):
            return Version(
                id=version_id,
                description=description,
                deployments=tuple(row_to_deployment(row) for row in rows),
            )


def _is_duplicate_key(exc: sqlite3.IntegrityError) -> bool:
    """Primary-key and UNIQUE violations; not NOT NULL or foreign-key ones."""
    return "UNIQUE constraint failed" in str(exc)


@contextmanager
def _decoding(source: object) -> Iterator[None]:
    """Invariant failures on data read back from the store mean corruption."""
    try:
        yield
    except (ValidationError, ValueError) as exc:
        logger.error("Corrupt stored data at %s: %s", source, exc)
        raise StorageError(f"Corrupt stored data at {source}: {exc}") from exc
