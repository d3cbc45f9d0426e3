"""DuckDB-based page-view statistics service.

Every tracked page view is one row; daily unique and total counts are
aggregated at query time.

Database Schema:
    page_visits table:
        - id: Auto-incrementing primary key
        - visit_date: UTC calendar date of the visit
        - visitor_id: SHA-256 of client IP + user agent
        - page: Path that was viewed
        - ts: When the visit was recorded (UTC)

Usage:
    service = PageViewService.get_instance()
    is_new = service.record_visit(visitor_id, "/prospectus")
    stats = service.get_stats()
"""
import hashlib
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import duckdb

from app.config import get_config

from .schemas import DailyStats, DayCounts, PageViewStats, TotalStats


def generate_visitor_id(ip: str, user_agent: str) -> str:
    """Derive a stable anonymous visitor ID from IP and user agent."""
    return hashlib.sha256((ip + user_agent).encode()).hexdigest()


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class PageViewService:
    """Singleton service for recording and aggregating page views."""

    _instance: Optional["PageViewService"] = None

    def __init__(self, db_path: Optional[str] = None, history_days: Optional[int] = None) -> None:
        """Initialize the service, creating the schema if needed.

        Args:
            db_path: DuckDB file path (":memory:" works for tests).
                Defaults to ``analytics.db_path`` from config.
            history_days: How many past days ``get_stats`` reports.
        """
        settings = get_config().analytics
        self._db_path = db_path or settings.db_path
        self._history_days = history_days if history_days is not None else settings.history_days
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._initialize_db()

    @classmethod
    def get_instance(cls, db_path: Optional[str] = None) -> "PageViewService":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls(db_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Close the connection and clear the instance (for testing)."""
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            self._connection = duckdb.connect(self._db_path)
        return self._connection

    def _initialize_db(self) -> None:
        conn = self._get_connection()
        conn.execute("CREATE SEQUENCE IF NOT EXISTS page_visits_seq START 1;")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS page_visits (
                id INTEGER DEFAULT nextval('page_visits_seq') PRIMARY KEY,
                visit_date DATE NOT NULL,
                visitor_id VARCHAR NOT NULL,
                page VARCHAR NOT NULL,
                ts TIMESTAMP NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_page_visits_date ON page_visits(visit_date)
        """)

    def record_visit(self, visitor_id: str, page: str = "/", today: Optional[date] = None) -> bool:
        """Record one page view.

        Args:
            visitor_id: Anonymous visitor ID (see generate_visitor_id).
            page: Path that was viewed.
            today: Override for the visit date (UTC today by default).

        Returns:
            True if this is the visitor's first view on that date.
        """
        visit_date = today or _utc_today()
        conn = self._get_connection()

        seen = conn.execute(
            "SELECT COUNT(*) FROM page_visits WHERE visit_date = ? AND visitor_id = ?",
            [visit_date, visitor_id],
        ).fetchone()[0]

        conn.execute(
            "INSERT INTO page_visits (visit_date, visitor_id, page, ts) VALUES (?, ?, ?, ?)",
            [visit_date, visitor_id, page, datetime.now(timezone.utc).replace(tzinfo=None)],
        )
        return seen == 0

    def get_stats(self, today: Optional[date] = None) -> PageViewStats:
        """Aggregate today's, recent daily and all-time view counts.

        ``daily_stats`` covers the last ``history_days`` days plus today,
        newest first. ``total_unique_views`` is the sum of daily unique
        counts, so a visitor returning on another day counts again.
        """
        today = today or _utc_today()
        start = today - timedelta(days=self._history_days)
        conn = self._get_connection()

        rows = conn.execute(
            """
            SELECT visit_date, COUNT(DISTINCT visitor_id), COUNT(*)
            FROM page_visits
            WHERE visit_date >= ?
            GROUP BY visit_date
            ORDER BY visit_date DESC
            """,
            [start],
        ).fetchall()
        daily = [
            DailyStats(date=row[0].isoformat(), unique_views=row[1], total_views=row[2])
            for row in rows
        ]

        today_row = next((d for d in daily if d.date == today.isoformat()), None)
        today_counts = (
            DayCounts(unique_views=today_row.unique_views, total_views=today_row.total_views)
            if today_row
            else DayCounts()
        )

        totals = conn.execute(
            """
            SELECT COALESCE(SUM(uniques), 0), COALESCE(SUM(views), 0)
            FROM (
                SELECT COUNT(DISTINCT visitor_id) AS uniques, COUNT(*) AS views
                FROM page_visits
                GROUP BY visit_date
            )
            """
        ).fetchone()

        return PageViewStats(
            daily_stats=daily,
            today_stats=today_counts,
            total_stats=TotalStats(
                total_unique_views=int(totals[0]),
                total_page_views=int(totals[1]),
            ),
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
