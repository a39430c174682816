# tests/test_task_manager.py

from __future__ import annotations

import pytest

from asana_dashboard.business.config_schema import DashboardSettings
from asana_dashboard.business.settings_store import SettingsStore
from asana_dashboard.business.task_manager import (
    TaskManager,
    sort_incomplete_first,
    tally_completion,
)
from asana_dashboard.data.models import TASK_LIST_FIELDS, TASK_STATS_FIELDS
from asana_dashboard.utils.error_handler import NetworkError, ValidationError

from .fakes import FakeAsanaClient, FakeClientFactory, make_tasks, network_failure


def test_sort_puts_incomplete_first_and_keeps_upstream_order() -> None:
    tasks = make_tasks([True, False, True, False, False, True])

    ordered = sort_incomplete_first(tasks)

    assert [t.gid for t in ordered] == ["5001", "5003", "5004", "5000", "5002", "5005"]
    first_done = next(i for i, t in enumerate(ordered) if t.completed)
    assert all(t.completed for t in ordered[first_done:])


@pytest.mark.parametrize("flags", [[], [True] * 4, [False] * 4, [True, False, False, True, False]])
def test_tally_adds_up_to_total(flags: list[bool]) -> None:
    stats = tally_completion(make_tasks(flags))

    assert stats["active"] + stats["completed"] == len(flags)
    assert stats["completed"] == sum(flags)


def test_list_tasks_without_workspace_skips_remote(store: SettingsStore, factory: FakeClientFactory,
                                                   fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    store.replace({"asanaToken": "t", "asanaWorkspace": ""})

    assert manager.list_tasks() == []
    assert manager.task_stats() == {"active": 0, "completed": 0}
    assert manager.list_dashboard_projects() == []
    assert factory.tokens == []
    assert fake_client.calls == []


def test_list_tasks_resolves_me_and_uses_projection(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    fake_client.tasks = make_tasks([False])

    result = manager.list_tasks()

    assert fake_client.calls == [
        ("get_me", ()),
        ("get_tasks", ("2001", "1001", TASK_LIST_FIELDS)),
    ]
    assert result == [{
        "gid": "5000",
        "name": "task 0",
        "completed": False,
        "due_on": None,
        "notes": None,
        "assignee": None,
        "projects": [],
    }]


@pytest.mark.parametrize(("upstream", "expected"), [(0, 0), (1, 1), (50, 50), (51, 50), (200, 50)])
def test_list_tasks_is_capped_at_fifty(fake_client: FakeAsanaClient, manager: TaskManager,
                                       upstream: int, expected: int) -> None:
    fake_client.tasks = make_tasks([i % 3 == 0 for i in range(upstream)])

    assert len(manager.list_tasks()) == expected


def test_list_tasks_cap_applies_after_sorting(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    # 60 completed tasks upstream first, then 5 incomplete ones
    fake_client.tasks = make_tasks([True] * 60 + [False] * 5)

    result = manager.list_tasks()

    assert [t["completed"] for t in result[:5]] == [False] * 5
    assert [t["gid"] for t in result[:5]] == ["5060", "5061", "5062", "5063", "5064"]
    assert result[5]["gid"] == "5000"


def test_task_stats_uses_completion_projection(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    fake_client.tasks = make_tasks([True, False, False])

    assert manager.task_stats() == {"active": 2, "completed": 1}
    assert fake_client.calls[-1] == ("get_tasks", ("2001", "1001", TASK_STATS_FIELDS))


def test_create_task_falls_back_to_default_project(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    created = manager.create_task("Write report")

    assert fake_client.calls == [("create_task", ({
        "name": "Write report",
        "workspace": "2001",
        "notes": "",
        "projects": ["3001"],
    },))]
    assert created["gid"] == "9001"


def test_create_task_explicit_project_and_due_date(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    manager.create_task("Ship", notes="v2", project="3002", due_on="2026-11-01")

    _, (sent,) = fake_client.calls[0]
    assert sent["projects"] == ["3002"]
    assert sent["notes"] == "v2"
    assert sent["due_on"] == "2026-11-01"


def test_create_task_without_any_project(store: SettingsStore, fake_client: FakeAsanaClient,
                                         manager: TaskManager) -> None:
    store.replace({"asanaToken": "t", "asanaWorkspace": "2001"})

    manager.create_task("Loose task")

    _, (sent,) = fake_client.calls[0]
    assert "projects" not in sent
    assert "due_on" not in sent


def test_complete_update_delete(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    assert manager.complete_task("77") == {"gid": "77", "completed": True}
    assert manager.update_task("77", {"name": "Renamed", "custom": 1}) == {"gid": "77", "name": "Renamed", "custom": 1}
    assert manager.delete_task("77") == {"success": True}

    assert fake_client.call_names() == ["update_task", "update_task", "delete_task"]
    assert fake_client.calls[0] == ("update_task", ("77", {"completed": True}))


def test_test_connection_requires_token(manager: TaskManager, factory: FakeClientFactory) -> None:
    with pytest.raises(ValidationError):
        manager.test_connection("   ")
    assert factory.tokens == []


def test_test_connection_uses_given_token(manager: TaskManager, factory: FakeClientFactory) -> None:
    result = manager.test_connection("  explicit  ")

    assert result == {"success": True, "user": "Ada Lovelace", "email": "ada@example.com"}
    assert factory.tokens == ["explicit"]


def test_list_projects_prefers_explicit_token(manager: TaskManager, factory: FakeClientFactory,
                                              fake_client: FakeAsanaClient) -> None:
    projects = manager.list_projects("2001", token="header-token")
    manager.list_projects("2001")

    assert projects == [{"gid": "3001", "name": "Roadmap"}, {"gid": "3002", "name": "Ops"}]
    assert factory.tokens == ["header-token", "stored-token"]
    assert fake_client.calls[0] == ("get_projects", ("2001", False))


def test_remote_failures_propagate(fake_client: FakeAsanaClient, manager: TaskManager) -> None:
    fake_client.fail_with = network_failure()

    with pytest.raises(NetworkError):
        manager.list_tasks()
    assert fake_client.closed == 1


class SaveDuringReadStore(SettingsStore):
    """Store that applies a second save right after the first read."""

    def __init__(self, first: DashboardSettings, second: DashboardSettings) -> None:
        super().__init__(first)
        self.second = second
        self.reads = 0

    def get(self) -> DashboardSettings:
        snapshot = super().get()
        self.reads += 1
        if self.reads == 1:
            self.replace(self.second)
        return snapshot


@pytest.fixture()
def racing_store() -> SaveDuringReadStore:
    return SaveDuringReadStore(
        DashboardSettings(asana_token="token-A", asana_workspace="ws-A", asana_project="proj-A"),
        DashboardSettings(asana_token="token-B", asana_workspace="ws-B", asana_project="proj-B"),
    )


def test_list_tasks_uses_one_settings_snapshot(racing_store: SaveDuringReadStore,
                                               fake_client: FakeAsanaClient) -> None:
    factory = FakeClientFactory(racing_store, fake_client)

    TaskManager(racing_store, factory).list_tasks()

    assert factory.tokens == ["token-A"]
    assert fake_client.calls[-1][1][0] == "ws-A"
    assert racing_store.reads == 1


def test_create_task_uses_one_settings_snapshot(racing_store: SaveDuringReadStore,
                                                fake_client: FakeAsanaClient) -> None:
    factory = FakeClientFactory(racing_store, fake_client)

    TaskManager(racing_store, factory).create_task("Write report")

    task_data = fake_client.calls[-1][1][0]
    assert factory.tokens == ["token-A"]
    assert (task_data["workspace"], task_data["projects"]) == ("ws-A", ["proj-A"])


def test_dashboard_projects_use_one_settings_snapshot(racing_store: SaveDuringReadStore,
                                                      fake_client: FakeAsanaClient) -> None:
    factory = FakeClientFactory(racing_store, fake_client)

    TaskManager(racing_store, factory).list_dashboard_projects()

    assert factory.tokens == ["token-A"]
    assert fake_client.calls == [("get_projects", ("ws-A", False))]
