"""
tasks/models.py -- Domain dataclass for tasks.

Pure data container. Ownership rules live in tasks/service.py; SQL lives in
tasks/store.py.
"""

from dataclasses import dataclass
from typing import Optional

TASK_STATUSES: tuple[str, ...] = ("pending", "in progress", "completed")
DEFAULT_STATUS = "pending"


@dataclass
class Task:
    """A to-do item owned by exactly one account.

    due_date is a Unix timestamp in seconds. id is None before the record is
    written to the database.
    """

    owner_id: int
    title: str
    description: str
    due_date: int
    status: str = DEFAULT_STATUS  # "pending" | "in progress" | "completed"
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
