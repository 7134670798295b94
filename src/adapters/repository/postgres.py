"""
PostgreSQL fact store adapter - Implements DatabaseConnection protocol.

This module provides the PostgreSQL implementation of the domain's
fact store port using psycopg3 with raw SQL.

Storage Design
--------------
Facts are never updated or deleted. Each accepted submission inserts one
row into `transactions` and one row per written fact into `facts`, so a
snapshot is simply the highest transaction id it can see:

1. **Single writer**: submit() takes a transaction-scoped advisory lock
   before reading the current basis. Writers are serialized, so tx ids
   are assigned in commit order and db_before is always the previous
   committed transaction.

2. **Placeholder resolution**: permanent entity ids come from
   `entity_id_seq`, allocated inside the writing transaction.

3. **Reads as of a snapshot**: facts with tx_id <= basis are replayed in
   order and reduced to the assertions still in effect.

4. **Value types**: values are stored as JSONB alongside the Python type
   name in `value_type`, since JSONB numbers do not keep 2.0 apart from 2.
"""

import logging
from pathlib import Path
from typing import Any

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import SubmissionError, SubmissionFailure
from src.domain.query import Query, evaluate
from src.domain.transaction import (
    Fact,
    Snapshot,
    TransactionRequest,
    TransactionResult,
    expand_request,
    visible_facts,
)

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock() serializing writers.
_WRITER_LOCK_KEY = 0x1ED6E7

# Structure: src/adapters/repository/postgres.py -> migrations/
MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


class PostgresFactStore:
    """
    Implements DatabaseConnection protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def submit(self, request: TransactionRequest) -> TransactionResult:
        """
        Write a transaction request atomically.

        Args:
            request: Ordered assign/retract operations

        Returns:
            TransactionResult with before/after snapshots, written facts
            and placeholder mapping

        Raises:
            SubmissionError: CONSTRAINT_VIOLATION for rejected data,
                CONFLICT for serialization failures and deadlocks,
                CONNECTIVITY when the database cannot be reached
        """
        insert_sql = """
            INSERT INTO facts (entity_id, attribute, value, value_type, tx_id, added)
            VALUES (%s, %s, %s, %s, %s, %s)
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute("SELECT pg_advisory_xact_lock(%s)", (_WRITER_LOCK_KEY,))
                cursor.execute("SELECT COALESCE(MAX(tx_id), 0) FROM transactions")
                basis_before = cursor.fetchone()[0]

                cursor.execute("INSERT INTO transactions DEFAULT VALUES RETURNING tx_id")
                tx = cursor.fetchone()[0]

                def allocate_id() -> int:
                    cursor.execute("SELECT nextval('entity_id_seq')")
                    return cursor.fetchone()[0]

                def current_value(entity: int, attribute: str) -> Any | None:
                    facts = self._fetch_facts(cursor, basis_before, entity=entity, attributes=[attribute])
                    visible = visible_facts(facts, basis_before)
                    return visible[-1].value if visible else None

                # Raises SubmissionError; the pool rolls back the open transaction
                facts, tempids = expand_request(
                    request, tx=tx, allocate_id=allocate_id, current_value=current_value
                )

                if facts:
                    cursor.executemany(
                        insert_sql,
                        [
                            (
                                f.entity,
                                f.attribute,
                                Jsonb(f.value),
                                type(f.value).__name__,
                                f.tx,
                                f.added,
                            )
                            for f in facts
                        ],
                    )
                conn.commit()
        except (psycopg.errors.SerializationFailure, psycopg.errors.DeadlockDetected) as e:
            raise SubmissionError(SubmissionFailure.CONFLICT, str(e)) from e
        except (psycopg.IntegrityError, psycopg.DataError) as e:
            raise SubmissionError(SubmissionFailure.CONSTRAINT_VIOLATION, str(e)) from e
        except (psycopg.OperationalError, PoolTimeout) as e:
            raise SubmissionError(SubmissionFailure.CONNECTIVITY, str(e)) from e

        return TransactionResult(
            db_before=Snapshot(basis_before),
            db_after=Snapshot(tx),
            tx_data=facts,
            tempids=tempids,
        )

    def snapshot(self) -> Snapshot:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT COALESCE(MAX(tx_id), 0) FROM transactions")
            return Snapshot(cursor.fetchone()[0])

    def query(self, snapshot: Snapshot, query: Query, *params: Any) -> set[tuple]:
        """
        Evaluate a pattern query as of a snapshot.

        Only facts for the attributes named in the query are loaded when
        every clause uses a constant attribute.
        """
        attributes = query.attributes
        with self._pool.connection() as conn, conn.cursor() as cursor:
            facts = self._fetch_facts(
                cursor,
                snapshot.basis_t,
                attributes=sorted(attributes) if attributes is not None else None,
            )
        return evaluate(visible_facts(facts, snapshot.basis_t), query, params)

    def entity(self, snapshot: Snapshot, entity_id: int) -> dict[str, Any]:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            facts = self._fetch_facts(cursor, snapshot.basis_t, entity=entity_id)
        return {fact.attribute: fact.value for fact in visible_facts(facts, snapshot.basis_t)}

    @staticmethod
    def _fetch_facts(
        cursor: psycopg.Cursor,
        basis_t: int,
        entity: int | None = None,
        attributes: list[str] | None = None,
    ) -> list[Fact]:
        """Load facts up to basis_t in write order, optionally filtered."""
        sql = (
            "SELECT entity_id, attribute, value, value_type, tx_id, added "
            "FROM facts WHERE tx_id <= %s"
        )
        params: list[Any] = [basis_t]
        if entity is not None:
            sql += " AND entity_id = %s"
            params.append(entity)
        if attributes is not None:
            sql += " AND attribute = ANY(%s)"
            params.append(attributes)
        sql += " ORDER BY tx_id, id"

        cursor.execute(sql, params)
        return [
            Fact(entity_id, attribute, _decode_value(value, value_type), tx, added)
            for entity_id, attribute, value, value_type, tx, added in cursor.fetchall()
        ]


def _decode_value(value: Any, value_type: str | None) -> Any:
    """Restore the Python type a value was written with."""
    if value_type == "float" and not isinstance(value, float):
        return float(value)
    if value_type == "int" and isinstance(value, float):
        return int(value)
    return value


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """
    Apply every *.sql file in migrations_dir, in file name order.

    Each file runs in its own transaction and must be safe to re-run.

    Args:
        pool: psycopg3 ConnectionPool instance
        migrations_dir: Directory holding the migration files

    Returns:
        Names of the files applied

    Raises:
        RuntimeError: A migration failed; later files are not applied
    """
    if not migrations_dir.is_dir():
        logger.warning("No migrations directory at %s", migrations_dir)
        return []

    applied = []
    for sql_file in sorted(migrations_dir.glob("*.sql")):
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text(encoding="utf-8"))
        except psycopg.Error as e:
            logger.error("Migration %s failed: %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
        applied.append(sql_file.name)

    logger.info("Applied %d migration(s) from %s", len(applied), migrations_dir)
    return applied
