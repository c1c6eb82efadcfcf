"""
Candidate store.

SQLite persistence for product candidates and their analysis state.
Every write touches a single row addressed by id; the only conditional
write is claim_for_analysis(), which moves a row to "analyzing" only if
nobody else holds a fresh claim on it.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .logging_config import get_logger

logger = get_logger('store')

STATUS_UNSET = 'unset'
STATUS_PENDING = 'pending'
STATUS_ANALYZING = 'analyzing'
STATUS_COMPLETED = 'completed'
STATUS_FAILED = 'failed'

ANALYSIS_STATUSES = (STATUS_UNSET, STATUS_PENDING, STATUS_ANALYZING, STATUS_COMPLETED, STATUS_FAILED)

UPDATABLE_FIELDS = {
    'name',
    'source_url',
    'resolved_url',
    'category',
    'description',
    'analysis_status',
    'analysis_error',
    'analysis_result',
    'analysis_started_at',
    'analyzed_at',
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 UTC with fixed microsecond precision so strings sort in time order."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='microseconds')


def _status_clause(statuses: Iterable[str]) -> tuple:
    """SQL condition and params for a set of statuses, "unset" meaning NULL."""
    statuses = list(statuses)
    named = [status for status in statuses if status != STATUS_UNSET]
    parts = []
    params: List[Any] = []
    if STATUS_UNSET in statuses:
        parts.append('analysis_status IS NULL')
    if named:
        parts.append(f"analysis_status IN ({', '.join('?' for _ in named)})")
        params.extend(named)
    if not parts:
        return '0', params
    return '(' + ' OR '.join(parts) + ')', params


class CandidateStore:
    """High-level helper for the candidates SQLite database."""

    DEFAULT_DB_PATH = Path('database/candidates.db')

    def __init__(self, db_path: Optional[Union[str, Path]] = None, auto_initialize: bool = True) -> None:
        path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        if not path.is_absolute():
            path = Path.cwd() / path
        self.db_path = path
        if auto_initialize:
            self.initialize()

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        """Create the database directory and schema if missing."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute('PRAGMA journal_mode=WAL')
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS candidates (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    source_url TEXT NOT NULL,
                    resolved_url TEXT,
                    category TEXT,
                    description TEXT,
                    analysis_status TEXT,
                    analysis_error TEXT,
                    analysis_result TEXT,
                    analysis_started_at TEXT,
                    analyzed_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_candidates_status ON candidates(analysis_status);
                CREATE INDEX IF NOT EXISTS idx_candidates_created_at ON candidates(created_at);
                """
            )
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def _row_to_candidate(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
        if row is None:
            return None
        candidate = dict(row)
        raw_result = candidate.get('analysis_result')
        candidate['analysis_result'] = json.loads(raw_result) if raw_result else None
        return candidate

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_candidate(
        self,
        name: str,
        source_url: str,
        category: Optional[str] = 'unknown',
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Insert a candidate in pending state and return it."""
        if not name or not str(name).strip():
            raise ValueError('name is required')
        if not source_url or not str(source_url).strip():
            raise ValueError('source_url is required')

        created = format_timestamp(created_at or utc_now())
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO candidates (
                    name, source_url, category, description,
                    analysis_status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(name).strip(),
                    str(source_url).strip(),
                    category,
                    description,
                    STATUS_PENDING,
                    created,
                    created,
                ),
            )
            conn.commit()
            candidate_id = cursor.lastrowid

        return self.find_by_id(candidate_id)

    def create_many(self, items: List[Dict[str, Any]]) -> Dict[str, List]:
        """
        Insert several candidates, collecting per-item failures.

        Returns:
            Dict with:
                created: list - Stored candidates
                failed: list - {"index", "error", "item"} for rejected items
        """
        results = {'created': [], 'failed': []}

        for index, item in enumerate(items):
            try:
                if not isinstance(item, dict):
                    raise ValueError('candidate must be an object')
                candidate = self.create_candidate(
                    name=item.get('name'),
                    source_url=item.get('source_url'),
                    category=item.get('category') or 'unknown',
                    description=item.get('description'),
                )
                results['created'].append(candidate)
            except (ValueError, sqlite3.IntegrityError) as e:
                results['failed'].append({'index': index, 'error': str(e), 'item': item})

        return results

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_by_id(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute('SELECT * FROM candidates WHERE id = ?', (candidate_id,)).fetchone()
        return self._row_to_candidate(row)

    def list_candidates(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """All candidates newest first, optionally filtered by analysis status."""
        if status is None:
            return self.find_many_by_status_in(ANALYSIS_STATUSES)
        return self.find_many_by_status_in([status])

    def find_many_by_status_in(
        self,
        statuses: Iterable[str],
        stale_before: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Candidates whose analysis status is in statuses, newest first.

        Args:
            statuses: Status names; "unset" matches rows with no status
            stale_before: Also include "analyzing" rows claimed before this time
        """
        condition, params = _status_clause(statuses)
        if stale_before is not None:
            condition = f"({condition} OR (analysis_status = ? AND analysis_started_at < ?))"
            params.extend([STATUS_ANALYZING, format_timestamp(stale_before)])

        with self._connect() as conn:
            rows = conn.execute(
                f'SELECT * FROM candidates WHERE {condition} ORDER BY created_at DESC, id DESC',
                params,
            ).fetchall()
        return [self._row_to_candidate(row) for row in rows]

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------
    def update_fields(self, candidate_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update a subset of columns on one candidate and return the new row.

        Raises:
            ValueError: if fields names a column that cannot be updated
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown candidate fields: {', '.join(sorted(unknown))}")
        if not fields:
            return self.find_by_id(candidate_id)

        values = []
        for key, value in fields.items():
            if key == 'analysis_result' and value is not None:
                value = json.dumps(value, ensure_ascii=False)
            elif isinstance(value, datetime):
                value = format_timestamp(value)
            values.append(value)

        assignments = ', '.join(f'{key} = ?' for key in fields)
        with self._connect() as conn:
            conn.execute(
                f'UPDATE candidates SET {assignments}, updated_at = ? WHERE id = ?',
                values + [format_timestamp(utc_now()), candidate_id],
            )
            conn.commit()

        return self.find_by_id(candidate_id)

    def claim_for_analysis(
        self,
        candidate_id: int,
        allowed_statuses: Iterable[str],
        now: Optional[datetime] = None,
        stale_before: Optional[datetime] = None,
    ) -> bool:
        """
        Move a candidate to "analyzing" if its current status allows it.

        The status check and the write are a single UPDATE, so two runs
        racing for the same candidate cannot both win.

        Returns:
            True if this call set the claim
        """
        claimed_at = format_timestamp(now or utc_now())
        condition, params = _status_clause(allowed_statuses)
        if stale_before is not None:
            condition = f"({condition} OR (analysis_status = ? AND analysis_started_at < ?))"
            params.extend([STATUS_ANALYZING, format_timestamp(stale_before)])

        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE candidates
                SET analysis_status = ?, analysis_started_at = ?, updated_at = ?
                WHERE id = ? AND {condition}
                """,
                [STATUS_ANALYZING, claimed_at, claimed_at, candidate_id] + params,
            )
            conn.commit()
            claimed = cursor.rowcount == 1

        if not claimed:
            logger.info(f"Candidate #{candidate_id} not claimed for analysis")
        return claimed
