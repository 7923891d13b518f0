"""
tasks/service.py -- The ownership-scoped task service.

This is the single place where task reads and writes are tied to the
authenticated caller. Route handlers pass in the email from the access
guard's Identity; the service resolves it to an account and puts that
account's id into every store query.

Lookups that miss because the task belongs to someone else raise the same
NotFound("Task not found.") as lookups for ids that do not exist, so one
account cannot discover which task ids another account owns.

update() matches on task id alone unless scope_updates is enabled
(SCOPE_TASK_UPDATES). See DESIGN.md for why that is a setting.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.store import AccountStore
from core.errors import NotFound, ValidationError
from tasks.models import DEFAULT_STATUS, TASK_STATUSES, Task
from tasks.store import TaskStore

logger = logging.getLogger("taskvault.tasks")

_TASK_NOT_FOUND = "Task not found."


class TaskService:
    def __init__(self, accounts: AccountStore, tasks: TaskStore, scope_updates: bool = False) -> None:
        self.accounts = accounts
        self.tasks = tasks
        self.scope_updates = scope_updates

    def _owner_id(self, caller_email: str) -> Optional[int]:
        account = self.accounts.get_by_email(caller_email)
        return account.id if account is not None else None

    def list(self, caller_email: str) -> list[Task]:
        """All tasks owned by the caller. An unknown account simply has none."""
        owner_id = self._owner_id(caller_email)
        if owner_id is None:
            return []
        return self.tasks.list_for_owner(owner_id)

    def create(
        self,
        caller_email: str,
        title: Optional[str],
        description: Optional[str],
        due_date: Optional[int],
        status: Optional[str] = None,
    ) -> Task:
        """Create a task owned by the caller. status defaults to "pending"."""
        if not title or not description or not due_date:
            raise ValidationError("Please provide all required fields.")
        status = status or DEFAULT_STATUS
        _check_status(status)

        owner_id = self._owner_id(caller_email)
        if owner_id is None:
            raise NotFound("Account not found.")

        task = Task(owner_id=owner_id, title=title, description=description, due_date=due_date, status=status)
        task.id = self.tasks.create_task(task)
        logger.info("Task %s created (owner id=%s)", task.id, owner_id)
        return self.tasks.get_task(task.id) or task

    def get_by_id(self, caller_email: str, task_id: int) -> Task:
        owner_id = self._owner_id(caller_email)
        task = self.tasks.get_task(task_id, owner_id=owner_id) if owner_id is not None else None
        if task is None:
            raise NotFound(_TASK_NOT_FOUND)
        return task

    def update(self, task_id: int, fields: dict, caller_email: Optional[str] = None) -> Task:
        """Apply the given fields to a task and return the result.

        Fields whose value is None are ignored, so a PUT may send a partial
        body. With scope_updates on, the task must belong to caller_email.
        """
        changes = {k: v for k, v in fields.items() if v is not None}
        if "status" in changes:
            _check_status(changes["status"])

        owner_id: Optional[int] = None
        if self.scope_updates:
            owner_id = self._owner_id(caller_email) if caller_email else None
            if owner_id is None:
                raise NotFound(_TASK_NOT_FOUND)

        task = self.tasks.update_task(task_id, owner_id=owner_id, **changes)
        if task is None:
            raise NotFound(_TASK_NOT_FOUND)
        logger.info("Task %s updated (%s)", task_id, ", ".join(sorted(changes)) or "no changes")
        return task

    def delete(self, caller_email: str, task_id: int) -> None:
        owner_id = self._owner_id(caller_email)
        if owner_id is None or not self.tasks.delete_for_owner(task_id, owner_id):
            raise NotFound(_TASK_NOT_FOUND)
        logger.info("Task %s deleted (owner id=%s)", task_id, owner_id)


def _check_status(status: str) -> None:
    if status not in TASK_STATUSES:
        raise ValidationError(f"Invalid status. Expected one of: {', '.join(TASK_STATUSES)}.")
