# tests/fakes.py

from __future__ import annotations

from typing import Any

from asana_dashboard.business.config_schema import DashboardSettings
from asana_dashboard.data.asana_client import AsanaClientFactory
from asana_dashboard.data.models import Project, Task, User, Workspace
from asana_dashboard.utils.error_handler import NetworkError


class FakeAsanaClient:
    """
    In-memory stand-in for AsanaClient.

    - Records every remote call as (method, args) for assertions
    - Raises `fail_with` from any remote call when set
    """

    def __init__(self) -> None:
        self.me = User(gid="1001", name="Ada Lovelace", email="ada@example.com")
        self.workspaces = [Workspace(gid="2001", name="Engineering")]
        self.projects = [Project(gid="3001", name="Roadmap"), Project(gid="3002", name="Ops")]
        self.tasks: list[Task] = []
        self.fail_with: Exception | None = None
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.closed = 0

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.fail_with is not None:
            raise self.fail_with

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def __enter__(self) -> "FakeAsanaClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.closed += 1
        return False

    def test_connection(self) -> User:
        self._record("test_connection")
        return self.me

    def get_me(self) -> User:
        self._record("get_me")
        return self.me

    def get_workspaces(self) -> list[Workspace]:
        self._record("get_workspaces")
        return list(self.workspaces)

    def get_projects(self, workspace_id: str, archived: bool = False) -> list[Project]:
        self._record("get_projects", workspace_id, archived)
        return list(self.projects)

    def get_tasks(self, workspace_id: str, assignee: str, opt_fields: str) -> list[Task]:
        self._record("get_tasks", workspace_id, assignee, opt_fields)
        return list(self.tasks)

    def create_task(self, task_data: dict[str, Any]) -> dict[str, Any]:
        self._record("create_task", task_data)
        return {"gid": "9001", **task_data, "completed": False}

    def update_task(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        self._record("update_task", task_id, updates)
        return {"gid": task_id, **updates}

    def delete_task(self, task_id: str) -> None:
        self._record("delete_task", task_id)


class FakeClientFactory(AsanaClientFactory):
    """
    Client factory that hands out a single FakeAsanaClient.

    Token resolution is the real one, so tests can assert which
    credential each request would have used.
    """

    def __init__(self, settings_store, client: FakeAsanaClient | None = None) -> None:
        super().__init__(settings_store)
        self.client = client or FakeAsanaClient()
        self.tokens: list[str] = []

    def create(self, credential_override: str | None = None,
               settings: DashboardSettings | None = None) -> FakeAsanaClient:
        token = self.resolve_token(credential_override, settings)
        self.tokens.append(token)
        return self.client


def make_tasks(flags: list[bool]) -> list[Task]:
    """Tasks with sequential gids; `flags[i]` is the completion flag of task i."""
    return [
        Task(gid=str(5000 + i), name=f"task {i}", completed=done)
        for i, done in enumerate(flags)
    ]


def network_failure() -> NetworkError:
    return NetworkError("Asana API への接続に失敗しました")
