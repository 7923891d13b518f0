"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclass in tasks/models.py remains the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Ownership: every read/delete method that takes owner_id puts it in the WHERE
clause next to the id, so a row owned by someone else looks exactly like a
missing row. The store does not decide who the owner is -- TaskService does.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///taskvault.db")
    task_id = store.create_task(Task(owner_id=1, title="t", description="d", due_date=1700000000))
    store.list_for_owner(1)
    store.update_task(task_id, status="completed")
    store.delete_for_owner(task_id, 1)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Column, ForeignKey, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from auth.store import make_engine
from core.config import get_settings
from tasks.models import DEFAULT_STATUS, Task

# Columns callers may change through update_task(). owner_id and created_at
# are fixed at insert time.
_MUTABLE_FIELDS = frozenset({"title", "description", "due_date", "status"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

# Mirror of auth.store's accounts table so the foreign key resolves inside
# this MetaData. Only the primary key is declared; auth/store.py owns the rest.
_accounts_ref = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True),
)

_tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, ForeignKey("accounts.id"), nullable=False, index=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("due_date", BigInteger, nullable=False),
    Column("status", String(20), nullable=False, server_default=DEFAULT_STATUS),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        # Only create the tasks table; the accounts table belongs to AccountStore.
        metadata.create_all(self.engine, tables=[_tasks])

    def create_task(self, task: Task) -> int:
        """Insert a new task and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    owner_id=task.owner_id,
                    title=task.title,
                    description=task.description,
                    due_date=task.due_date,
                    status=task.status or DEFAULT_STATUS,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_for_owner(self, owner_id: int) -> list[Task]:
        """Return every task owned by owner_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_tasks.select().where(_tasks.c.owner_id == owner_id).order_by(_tasks.c.id)).fetchall()
        return [_row_to_task(r) for r in rows]

    def get_task(self, task_id: int, owner_id: Optional[int] = None) -> Optional[Task]:
        """Fetch a task by ID, optionally restricted to one owner. None if no match."""
        stmt = _tasks.select().where(_tasks.c.id == task_id)
        if owner_id is not None:
            stmt = stmt.where(_tasks.c.owner_id == owner_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_task(row) if row is not None else None

    def update_task(self, task_id: int, owner_id: Optional[int] = None, **fields) -> Optional[Task]:
        """Update mutable fields on a task and return the updated record.

        Accepts any subset of: title, description, due_date, status. Unknown
        field names raise ValueError rather than being silently dropped.
        With owner_id set, a task owned by someone else is treated as missing.

        Returns None if no task matched.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {unknown!r}")

        condition = _tasks.c.id == task_id
        if owner_id is not None:
            condition = condition & (_tasks.c.owner_id == owner_id)

        with self.engine.connect() as conn:
            if fields:
                result = conn.execute(_tasks.update().where(condition).values(**fields))
                conn.commit()
                if result.rowcount == 0:
                    return None
            row = conn.execute(_tasks.select().where(condition)).fetchone()
        return _row_to_task(row) if row is not None else None

    def delete_for_owner(self, task_id: int, owner_id: int) -> bool:
        """Permanently delete a task. Returns True if deleted, False if not found or not owned."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where((_tasks.c.id == task_id) & (_tasks.c.owner_id == owner_id)))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        due_date=row.due_date,
        status=row.status,
        created_at=row.created_at,
    )
