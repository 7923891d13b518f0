"""Unit tests for tasks/service.py -- ownership-scoped task operations.

Covers:
- create(): required fields, default status, invalid status, nothing persisted on failure
- list() / get_by_id(): one account never sees another account's tasks
- update(): id-only matching by default, owner matching with scope_updates
- delete(): only the owner can delete; misses look like missing tasks
"""

import pytest

from auth.models import Account
from auth.store import AccountStore
from core.errors import NotFound, ValidationError
from tasks.service import TaskService
from tasks.store import TaskStore

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

ALICE = "alice@x.com"
BOB = "bob@x.com"


@pytest.fixture
def service(account_store: AccountStore, task_store: TaskStore) -> TaskService:
    """TaskService with two accounts (alice, bob) and no tasks.

    Password hashes are placeholders; the service never looks at them.
    """
    account_store.create_account(Account(email=ALICE, hashed_password="x"))
    account_store.create_account(Account(email=BOB, hashed_password="x"))
    return TaskService(account_store, task_store)


@pytest.fixture
def scoped_service(account_store: AccountStore, task_store: TaskStore, service: TaskService) -> TaskService:
    return TaskService(account_store, task_store, scope_updates=True)


def _make(service: TaskService, email: str = ALICE, title: str = "t"):
    return service.create(email, title=title, description="d", due_date=1700000000)


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_defaults_to_pending(self, service: TaskService) -> None:
        task = _make(service)
        assert task.id is not None
        assert task.status == "pending"
        assert task.title == "t"
        assert task.due_date == 1700000000

    def test_explicit_status_kept(self, service: TaskService) -> None:
        task = service.create(ALICE, "t", "d", 1700000000, status="in progress")
        assert task.status == "in progress"

    @pytest.mark.parametrize(
        "title,description,due_date",
        [(None, "d", 1700000000), ("t", "", 1700000000), ("t", "d", None), ("t", "d", 0)],
    )
    def test_missing_fields_rejected_and_not_persisted(self, service: TaskService, title, description, due_date) -> None:
        with pytest.raises(ValidationError):
            service.create(ALICE, title, description, due_date)
        assert service.list(ALICE) == []

    def test_invalid_status_rejected(self, service: TaskService) -> None:
        with pytest.raises(ValidationError):
            service.create(ALICE, "t", "d", 1700000000, status="done")
        assert service.list(ALICE) == []

    def test_unknown_account_cannot_create(self, service: TaskService) -> None:
        with pytest.raises(NotFound):
            _make(service, email="ghost@x.com")


# ---------------------------------------------------------------------------
# list / get_by_id
# ---------------------------------------------------------------------------


class TestIsolation:
    def test_list_only_returns_own_tasks(self, service: TaskService) -> None:
        a1 = _make(service, ALICE, "a1")
        a2 = _make(service, ALICE, "a2")
        b1 = _make(service, BOB, "b1")

        assert [t.id for t in service.list(ALICE)] == [a1.id, a2.id]
        assert [t.id for t in service.list(BOB)] == [b1.id]

    def test_unknown_account_lists_nothing(self, service: TaskService) -> None:
        _make(service)
        assert service.list("ghost@x.com") == []

    def test_get_by_id_own_task(self, service: TaskService) -> None:
        task = _make(service)
        assert service.get_by_id(ALICE, task.id).id == task.id

    def test_other_owner_gets_same_error_as_missing_id(self, service: TaskService) -> None:
        task = _make(service, ALICE)

        with pytest.raises(NotFound) as not_owner:
            service.get_by_id(BOB, task.id)
        with pytest.raises(NotFound) as missing:
            service.get_by_id(BOB, 99999)

        assert not_owner.value.message == missing.value.message


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_partial_update(self, service: TaskService) -> None:
        task = _make(service)
        updated = service.update(task.id, {"status": "completed", "title": None})
        assert updated.status == "completed"
        assert updated.title == "t"
        assert service.get_by_id(ALICE, task.id).status == "completed"

    def test_empty_update_returns_task_unchanged(self, service: TaskService) -> None:
        task = _make(service)
        assert service.update(task.id, {}).title == "t"

    def test_missing_task(self, service: TaskService) -> None:
        with pytest.raises(NotFound):
            service.update(99999, {"title": "x"})

    def test_invalid_status_rejected(self, service: TaskService) -> None:
        task = _make(service)
        with pytest.raises(ValidationError):
            service.update(task.id, {"status": "archived"})
        assert service.get_by_id(ALICE, task.id).status == "pending"

    def test_unscoped_update_matches_on_id_only(self, service: TaskService) -> None:
        """Default behaviour: any caller's update reaches the task by id."""
        task = _make(service, ALICE)
        updated = service.update(task.id, {"title": "changed"}, caller_email=BOB)
        assert updated.title == "changed"
        # Ownership itself never moves.
        assert service.get_by_id(ALICE, task.id).title == "changed"

    def test_scoped_update_rejects_other_owner(self, scoped_service: TaskService) -> None:
        task = _make(scoped_service, ALICE)
        with pytest.raises(NotFound):
            scoped_service.update(task.id, {"title": "changed"}, caller_email=BOB)
        assert scoped_service.get_by_id(ALICE, task.id).title == "t"

    def test_scoped_update_allows_owner(self, scoped_service: TaskService) -> None:
        task = _make(scoped_service, ALICE)
        assert scoped_service.update(task.id, {"title": "mine"}, caller_email=ALICE).title == "mine"


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_owner_deletes(self, service: TaskService) -> None:
        task = _make(service)
        service.delete(ALICE, task.id)
        assert service.list(ALICE) == []
        with pytest.raises(NotFound):
            service.get_by_id(ALICE, task.id)

    def test_other_owner_cannot_delete(self, service: TaskService) -> None:
        task = _make(service, ALICE)
        with pytest.raises(NotFound):
            service.delete(BOB, task.id)
        assert [t.id for t in service.list(ALICE)] == [task.id]

    def test_delete_twice(self, service: TaskService) -> None:
        task = _make(service)
        service.delete(ALICE, task.id)
        with pytest.raises(NotFound):
            service.delete(ALICE, task.id)
