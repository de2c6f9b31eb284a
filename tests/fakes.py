"""
Test doubles for the database session and sample rows
"""
import uuid
from unittest.mock import AsyncMock


class FakeResult:
    """Stands in for a SQLAlchemy result over a list of row dicts"""

    def __init__(self, rows=None):
        self._rows = [dict(r) for r in (rows or [])]
        self.rowcount = len(self._rows)

    def mappings(self):
        return self

    def first(self):
        return self._rows[0] if self._rows else None

    def one(self):
        assert len(self._rows) == 1, f"expected one row, got {len(self._rows)}"
        return self._rows[0]

    def all(self):
        return list(self._rows)

    def fetchone(self):
        return tuple(self._rows[0].values()) if self._rows else None

    def fetchall(self):
        return [tuple(r.values()) for r in self._rows]

    def scalar(self):
        row = self.fetchone()
        return row[0] if row else None


class FakeSession:
    """
    Async session double driven by SQL fragments.

    ``on(fragment, *results)`` answers the first statement containing
    ``fragment``; several results are consumed in order and the last one
    repeats. A result may be a callable taking the bind params. Statements
    without a rule get an empty result.
    """

    def __init__(self):
        self.rules = []
        self.executed = []
        self.commit = AsyncMock()
        self.rollback = AsyncMock()

    def on(self, fragment, *results):
        self.rules.append((fragment, list(results)))
        return self

    async def execute(self, statement, params=None):
        sql = " ".join(str(statement).split())
        params = params or {}
        self.executed.append((sql, params))
        for fragment, results in self.rules:
            if fragment in sql:
                result = results.pop(0) if len(results) > 1 else results[0]
                if callable(result):
                    result = result(params)
                if isinstance(result, Exception):
                    raise result
                return result
        return FakeResult()

    def statements(self, fragment):
        return [(sql, params) for sql, params in self.executed if fragment in sql]


def rows(*items):
    return FakeResult(list(items))


def make_document(**overrides):
    document = {
        "id": str(uuid.uuid4()),
        "user_id": str(uuid.uuid4()),
        "organization_id": None,
        "title": "Services Agreement",
        "original_content": "The Licensee shall indemnify the Licensor.",
        "converted_content": None,
        "conversion_type": None,
        "document_type": "contract",
        "status": "pending",
        "credits_used": 0,
        "key_terms": None,
        "summary": None,
        "tags": [],
        "original_file": None,
        "converted_file": None,
        "file_type": None,
        "word_count": 6,
        "character_count": 42,
        "metadata": {},
        "is_archived": False,
        "archived_at": None,
        "archived_by": None,
        "archive_reason": None,
        "recalled_at": None,
        "recalled_by": None,
        "recall_reason": None,
        "created_at": "2025-01-15T10:00:00+00:00",
        "updated_at": "2025-01-15T10:00:00+00:00",
    }
    document.update(overrides)
    return document
