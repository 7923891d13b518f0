"""
tests/test_api_toggles.py -- Route behaviour under the non-default settings.

Each test opens its own client_for() so the app is wired with the toggle it
needs. These live apart from test_api_routes.py because the module-scoped
api_client there must be the only client wired into the app while it is open.

Covers:
  - ENFORCE_REVOCATION=false: a logged-out token still passes the access guard
  - SCOPE_TASK_UPDATES=true: PUT on someone else's task is a 404
  - SCOPE_TASK_UPDATES=false: PUT matches the task id alone
  - rate limiting switched on: the (N+1)th login within the window is a 429
"""

from __future__ import annotations

from api.limiter import limiter
from conftest import bearer, client_for, signup_and_login

_TASK = {"title": "t", "description": "d", "dueDate": 1700000000}


def test_revoked_token_accepted_when_revocation_not_enforced() -> None:
    with client_for("lenient", enforce_revocation=False) as client:
        token = signup_and_login(client, "a@x.com")
        assert client.post("/auth/logout", headers=bearer(token)).status_code == 204

        assert client.get("/task", headers=bearer(token)).status_code == 200
        # verify-token always consults the registry.
        assert client.get("/auth/verify-token", headers=bearer(token)).status_code == 401


def test_revoked_token_refused_when_revocation_enforced() -> None:
    with client_for("strict", enforce_revocation=True) as client:
        token = signup_and_login(client, "a@x.com")
        client.post("/auth/logout", headers=bearer(token))
        assert client.get("/task", headers=bearer(token)).status_code == 403


def test_scoped_update_hides_other_accounts_tasks() -> None:
    with client_for("scoped", scope_task_updates=True) as client:
        owner = signup_and_login(client, "owner@x.com")
        other = signup_and_login(client, "other@x.com")
        task_id = client.post("/task", json=_TASK, headers=bearer(owner)).json()["id"]

        resp = client.put(f"/task/{task_id}", json={"title": "hijacked"}, headers=bearer(other))
        assert resp.status_code == 404
        assert client.get(f"/task/{task_id}", headers=bearer(owner)).json()["title"] == "t"

        resp = client.put(f"/task/{task_id}", json={"title": "mine"}, headers=bearer(owner))
        assert resp.status_code == 200
        assert resp.json()["title"] == "mine"


def test_unscoped_update_matches_on_id() -> None:
    with client_for("unscoped", scope_task_updates=False) as client:
        owner = signup_and_login(client, "owner@x.com")
        other = signup_and_login(client, "other@x.com")
        task_id = client.post("/task", json=_TASK, headers=bearer(owner)).json()["id"]

        resp = client.put(f"/task/{task_id}", json={"status": "completed"}, headers=bearer(other))
        assert resp.status_code == 200
        # The task still belongs to its owner.
        assert client.get("/task", headers=bearer(other)).json() == []
        assert client.get(f"/task/{task_id}", headers=bearer(owner)).json()["status"] == "completed"


def test_login_rate_limit_returns_429(monkeypatch) -> None:
    """LOGIN_RATE_LIMIT is 3/minute in the test environment (see conftest.py)."""
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        with client_for("ratelimit") as client:
            body = {"email": "slow@x.com", "password": "wrong"}
            statuses = [client.post("/auth/login", json=body).status_code for _ in range(3)]
            assert statuses == [401, 401, 401]

            resp = client.post("/auth/login", json=body)
            assert resp.status_code == 429
            assert set(resp.json()) == {"message"}
            assert int(resp.headers["Retry-After"]) > 0
    finally:
        limiter.reset()
