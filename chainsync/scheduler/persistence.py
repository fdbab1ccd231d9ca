"""
Persistence Adapter for the chain sync scheduler.

SQLite storage with WAL mode. Holds:
- blockchains: the (chain, network) pairs jobs are scheduled against
- system_status: one StatusRecord per job name
- rpcs / rpcs_history: endpoints and their request outcomes

Provides:
- Short-lived connections per call for the scheduler's own bookkeeping
- session(): one autocommit connection for a whole job invocation
- The trailing-window aggregation the weight job reads
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Optional

from .entities import (
    ChainRecord,
    EndpointHistoryWindow,
    EndpointRecord,
    EndpointWindow,
    StatusRecord,
    utcnow,
)
from .errors import ContextNotFoundError, StatusNotFoundError


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    """
    Store format for timestamps: UTC, ISO 8601 with microseconds.

    Window queries compare these strings, so every stored value must use
    the same offset.
    """
    if value is None:
        return None
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Naive datetime not allowed: {value}")
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _to_bool(value: Optional[int]) -> Optional[bool]:
    return None if value is None else bool(value)


class PersistenceAdapter:
    """
    SQLite-based store for scheduler and endpoint data.

    - Does NOT contain scheduling or scoring logic
    - Methods taking conn= run on the caller's connection (inside a
      session) and leave commit to the caller
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize persistence adapter.

        Args:
            db_path: Path to SQLite database file.

        Raises:
            ValueError: For ":memory:"; every call opens its own connection,
                so an in-memory database would lose its schema
        """
        self.db_path = str(db_path)
        if self.db_path == ":memory:":
            raise ValueError("PersistenceAdapter needs a database file, not ':memory:'")
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """
        Scoped connection for one job invocation.

        Runs in autocommit mode so work done by earlier steps of a
        pipeline is kept when a later step fails. Closed on every path.
        """
        conn = self._get_connection()
        conn.isolation_level = None
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _use(self, conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
        else:
            with self._transaction() as own:
                yield own

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS blockchains (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    blockchain_name TEXT NOT NULL,
                    network_name TEXT NOT NULL,
                    display_name TEXT NOT NULL,
                    UNIQUE (blockchain_name, network_name)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS system_status (
                    name TEXT PRIMARY KEY,
                    is_running INTEGER NOT NULL DEFAULT 0,
                    last_success INTEGER,
                    next_run_at TEXT,
                    last_updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS rpcs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    blockchain_id INTEGER NOT NULL,
                    latest_block_number INTEGER NOT NULL DEFAULT 0,
                    weight INTEGER NOT NULL DEFAULT 100,
                    last_score TEXT,
                    enabled INTEGER NOT NULL DEFAULT 1,
                    FOREIGN KEY (blockchain_id) REFERENCES blockchains(id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS rpcs_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    rpc_id INTEGER NOT NULL,
                    timestamp TEXT NOT NULL,
                    success INTEGER NOT NULL,
                    FOREIGN KEY (rpc_id) REFERENCES rpcs(id)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_rpcs_history_rpc_time
                ON rpcs_history (rpc_id, timestamp)
            """)

    # =========================================================================
    # Chain Operations
    # =========================================================================

    def add_chain(
        self,
        blockchain_name: str,
        network_name: str,
        display_name: Optional[str] = None,
    ) -> ChainRecord:
        """Register a (chain, network) pair."""
        display_name = display_name or f"{blockchain_name} {network_name}"
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO blockchains (blockchain_name, network_name, display_name)
                VALUES (?, ?, ?)
                """,
                (blockchain_name, network_name, display_name),
            )
            chain_id = cursor.lastrowid

        return ChainRecord(
            id=chain_id,
            blockchain_name=blockchain_name,
            network_name=network_name,
            display_name=display_name,
        )

    def list_chains(self) -> list[ChainRecord]:
        """List all known chains in insertion order."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM blockchains ORDER BY id").fetchall()

        return [
            ChainRecord(
                id=row["id"],
                blockchain_name=row["blockchain_name"],
                network_name=row["network_name"],
                display_name=row["display_name"],
            )
            for row in rows
        ]

    def get_chain_id(
        self,
        blockchain_name: str,
        network_name: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        """
        Resolve the numeric id of a (chain, network) pair.

        Raises:
            ContextNotFoundError: If the pair is not registered
        """
        with self._use(conn) as c:
            row = c.execute(
                "SELECT id FROM blockchains WHERE blockchain_name = ? AND network_name = ?",
                (blockchain_name, network_name),
            ).fetchone()

        if row is None:
            raise ContextNotFoundError(blockchain_name, network_name)
        return row["id"]

    # =========================================================================
    # Status Operations
    # =========================================================================

    def upsert_status(
        self,
        name: str,
        is_running: bool,
        last_success: Optional[bool],
        next_run_at: Optional[datetime],
    ) -> StatusRecord:
        """Insert or fully replace the status record for a job name."""
        now = utcnow()
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO system_status (name, is_running, last_success, next_run_at, last_updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    is_running = excluded.is_running,
                    last_success = excluded.last_success,
                    next_run_at = excluded.next_run_at,
                    last_updated_at = excluded.last_updated_at
                """,
                (
                    name,
                    int(is_running),
                    None if last_success is None else int(last_success),
                    _to_iso(next_run_at),
                    _to_iso(now),
                ),
            )

        return StatusRecord(
            name=name,
            is_running=is_running,
            last_success=last_success,
            next_run_at=next_run_at,
            last_updated_at=now,
        )

    def mark_status_running(self, name: str) -> None:
        """
        Flag a job as running, keeping its last outcome and next run.

        Creates the record if it does not exist yet.
        """
        now = _to_iso(utcnow())
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO system_status (name, is_running, last_updated_at)
                VALUES (?, 1, ?)
                ON CONFLICT(name) DO UPDATE SET
                    is_running = 1,
                    last_updated_at = excluded.last_updated_at
                """,
                (name, now),
            )

    def get_status(self, name: str) -> StatusRecord:
        """
        Get the status record for a job name.

        Raises:
            StatusNotFoundError: If no record exists
        """
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM system_status WHERE name = ?",
                (name,),
            ).fetchone()

        if row is None:
            raise StatusNotFoundError(name)
        return self._row_to_status(row)

    def list_statuses(self) -> list[StatusRecord]:
        """List all status records ordered by name."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM system_status ORDER BY name").fetchall()
        return [self._row_to_status(row) for row in rows]

    def _row_to_status(self, row: sqlite3.Row) -> StatusRecord:
        return StatusRecord(
            name=row["name"],
            is_running=bool(row["is_running"]),
            last_success=_to_bool(row["last_success"]),
            next_run_at=_from_iso(row["next_run_at"]),
            last_updated_at=_from_iso(row["last_updated_at"]),
        )

    # =========================================================================
    # Endpoint Operations
    # =========================================================================

    def add_endpoint(
        self,
        name: str,
        chain_id: int,
        latest_block_number: int = 0,
        weight: int = 100,
        enabled: bool = True,
    ) -> EndpointRecord:
        """Register an endpoint for a chain."""
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO rpcs (name, blockchain_id, latest_block_number, weight, enabled)
                VALUES (?, ?, ?, ?, ?)
                """,
                (name, chain_id, latest_block_number, weight, int(enabled)),
            )
            endpoint_id = cursor.lastrowid

        return self.get_endpoint(endpoint_id)

    def get_endpoint(self, endpoint_id: int) -> Optional[EndpointRecord]:
        """Get an endpoint by ID."""
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT r.*, b.display_name AS network_family
                FROM rpcs r
                JOIN blockchains b ON b.id = r.blockchain_id
                WHERE r.id = ?
                """,
                (endpoint_id,),
            ).fetchone()

        if row is None:
            return None
        return self._row_to_endpoint(row)

    def list_endpoints(self) -> list[EndpointRecord]:
        """List all endpoints, enabled or not."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT r.*, b.display_name AS network_family
                FROM rpcs r
                JOIN blockchains b ON b.id = r.blockchain_id
                ORDER BY b.id, r.id
                """
            ).fetchall()
        return [self._row_to_endpoint(row) for row in rows]

    def set_endpoint_block(
        self,
        endpoint_id: int,
        latest_block_number: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> None:
        """Record the latest block an endpoint has reported."""
        with self._use(conn) as c:
            c.execute(
                "UPDATE rpcs SET latest_block_number = ? WHERE id = ?",
                (latest_block_number, endpoint_id),
            )

    def set_endpoint_enabled(self, endpoint_id: int, enabled: bool) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE rpcs SET enabled = ? WHERE id = ?",
                (int(enabled), endpoint_id),
            )

    def record_endpoint_request(
        self,
        endpoint_id: int,
        success: bool,
        timestamp: Optional[datetime] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> None:
        """Append one request outcome to an endpoint's history."""
        timestamp = timestamp or utcnow()
        with self._use(conn) as c:
            c.execute(
                "INSERT INTO rpcs_history (rpc_id, timestamp, success) VALUES (?, ?, ?)",
                (endpoint_id, _to_iso(timestamp), int(success)),
            )

    def load_endpoint_windows(
        self,
        since: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[EndpointWindow]:
        """
        Aggregate request history since a cutoff for every enabled endpoint.

        Endpoints without history in the window get zero counts.
        Ordered by chain id, then endpoint id.
        """
        with self._use(conn) as c:
            rows = c.execute(
                """
                SELECT r.*, b.display_name AS network_family,
                    COALESCE(SUM(CASE WHEN h.timestamp >= ? THEN 1 ELSE 0 END), 0)
                        AS total_requests,
                    COALESCE(SUM(CASE WHEN h.success = 1 AND h.timestamp >= ? THEN 1 ELSE 0 END), 0)
                        AS successful_requests
                FROM rpcs r
                JOIN blockchains b ON b.id = r.blockchain_id
                LEFT JOIN rpcs_history h ON h.rpc_id = r.id
                WHERE r.enabled = 1
                GROUP BY r.id
                ORDER BY b.id, r.id
                """,
                (_to_iso(since), _to_iso(since)),
            ).fetchall()

        return [
            EndpointWindow(
                endpoint=self._row_to_endpoint(row),
                window=EndpointHistoryWindow(
                    total_requests=row["total_requests"],
                    successful_requests=row["successful_requests"],
                ),
            )
            for row in rows
        ]

    def update_endpoint_weight(
        self,
        endpoint_id: int,
        weight: int,
        last_score: Decimal,
        conn: Optional[sqlite3.Connection] = None,
    ) -> None:
        """Write back a computed weight and the score it was derived from."""
        with self._use(conn) as c:
            c.execute(
                "UPDATE rpcs SET weight = ?, last_score = ? WHERE id = ?",
                (weight, str(last_score), endpoint_id),
            )

    def _row_to_endpoint(self, row: sqlite3.Row) -> EndpointRecord:
        return EndpointRecord(
            id=row["id"],
            name=row["name"],
            chain_id=row["blockchain_id"],
            network_family=row["network_family"],
            latest_block_number=row["latest_block_number"],
            weight=row["weight"],
            last_score=Decimal(row["last_score"]) if row["last_score"] is not None else None,
            enabled=bool(row["enabled"]),
        )
