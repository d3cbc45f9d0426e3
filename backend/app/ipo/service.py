"""IpoStockService: DuckDB-backed IPO listings."""
import logging
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

import duckdb

from app.config import get_config

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS ipo_stocks (
    id             VARCHAR PRIMARY KEY,
    symbol         VARCHAR NOT NULL,
    company_name   VARCHAR NOT NULL,
    market         VARCHAR NOT NULL DEFAULT 'US',
    expected_price DOUBLE,
    price_range    VARCHAR,
    shares_offered BIGINT,
    ipo_date       DATE,
    status         VARCHAR NOT NULL DEFAULT 'UPCOMING',
    description    VARCHAR,
    sector         VARCHAR,
    industry       VARCHAR,
    underwriters   VARCHAR[] NOT NULL,
    market_cap     DOUBLE,
    revenue        DOUBLE,
    net_income     DOUBLE,
    employees      INTEGER,
    website        VARCHAR,
    created_at     TIMESTAMP NOT NULL,
    updated_at     TIMESTAMP NOT NULL
)
"""

# Withdrawn listings are hidden; the rest group by lifecycle stage, newest IPO first
_LIST_ACTIVE = """
SELECT * FROM ipo_stocks
WHERE status <> 'WITHDRAWN'
ORDER BY
    CASE status
        WHEN 'UPCOMING'  THEN 0
        WHEN 'PRICING'   THEN 1
        WHEN 'LISTED'    THEN 2
        WHEN 'POSTPONED' THEN 3
        ELSE 4
    END,
    ipo_date DESC NULLS LAST,
    created_at DESC
"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class IpoStockService:
    """Singleton service for IPO stock listings in DuckDB."""

    _instance: Optional["IpoStockService"] = None

    _COLUMNS = [
        "id", "symbol", "company_name", "market", "expected_price", "price_range",
        "shares_offered", "ipo_date", "status", "description", "sector", "industry",
        "underwriters", "market_cap", "revenue", "net_income", "employees", "website",
        "created_at", "updated_at",
    ]

    # Client-writable columns; the rest are managed here
    _WRITABLE = set(_COLUMNS) - {"id", "created_at", "updated_at"}
    _NOT_NULL = {"symbol", "company_name", "market", "status", "underwriters"}

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path or get_config().ipo.db_path
        self._conn: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(self._db_path)
        self._conn.execute(_CREATE_TABLE)
        logger.info("[IpoStockService] Initialized with db=%s", self._db_path)

    @classmethod
    def get_instance(cls, db_path: Optional[str] = None) -> "IpoStockService":
        if cls._instance is None:
            cls._instance = cls(db_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Close the connection and clear the instance (for testing)."""
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None

    # -----------------------------------------------------------------------
    # CRUD
    # -----------------------------------------------------------------------

    def create(self, **fields) -> dict:
        """Insert a listing and return it as stored."""
        stock_id = str(uuid.uuid4())
        now = _utc_now()
        values = {k: v for k, v in fields.items() if k in self._WRITABLE}
        values.setdefault("underwriters", [])
        values.update(id=stock_id, created_at=now, updated_at=now)

        columns = list(values)
        placeholders = ", ".join("?" for _ in columns)
        self._conn.execute(
            f"INSERT INTO ipo_stocks ({', '.join(columns)}) VALUES ({placeholders})",
            [values[c] for c in columns],
        )
        return self.get(stock_id)

    def list_active(self) -> List[dict]:
        """All listings except WITHDRAWN ones."""
        rows = self._conn.execute(_LIST_ACTIVE).fetchall()
        return [self._row_to_dict(r) for r in rows]

    def get(self, stock_id: str) -> Optional[dict]:
        row = self._conn.execute(
            "SELECT * FROM ipo_stocks WHERE id = ?", [stock_id]
        ).fetchone()
        return self._row_to_dict(row) if row else None

    def update(self, stock_id: str, **kwargs) -> Optional[dict]:
        """Apply a partial update.

        Nullable columns may be cleared by passing None; None for a
        required column is ignored.

        Returns:
            The updated listing, or None if it does not exist.
        """
        if self.get(stock_id) is None:
            return None

        fields = {
            k: v for k, v in kwargs.items()
            if k in self._WRITABLE and not (v is None and k in self._NOT_NULL)
        }
        fields["updated_at"] = _utc_now()

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        values = list(fields.values()) + [stock_id]
        self._conn.execute(
            f"UPDATE ipo_stocks SET {set_clause} WHERE id = ?", values
        )
        return self.get(stock_id)

    def delete(self, stock_id: str) -> bool:
        result = self._conn.execute(
            "DELETE FROM ipo_stocks WHERE id = ? RETURNING id", [stock_id]
        ).fetchone()
        return result is not None

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _row_to_dict(self, row) -> dict:
        d = dict(zip(self._COLUMNS, row))
        for key in ("ipo_date", "created_at", "updated_at"):
            if isinstance(d.get(key), (date, datetime)):
                d[key] = d[key].isoformat()
        d["underwriters"] = list(d.get("underwriters") or [])
        return d
