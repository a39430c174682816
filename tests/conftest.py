# tests/conftest.py

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from asana_dashboard.api.server import create_app
from asana_dashboard.business.config_schema import DashboardSettings
from asana_dashboard.business.settings_store import SettingsStore
from asana_dashboard.business.task_manager import TaskManager

from .fakes import FakeAsanaClient, FakeClientFactory


@pytest.fixture()
def store() -> SettingsStore:
    """Store that starts fully configured, as if loaded from the environment."""
    return SettingsStore(DashboardSettings(
        asana_token="stored-token",
        asana_workspace="2001",
        asana_project="3001",
    ))


@pytest.fixture()
def fake_client() -> FakeAsanaClient:
    return FakeAsanaClient()


@pytest.fixture()
def factory(store: SettingsStore, fake_client: FakeAsanaClient) -> FakeClientFactory:
    return FakeClientFactory(store, fake_client)


@pytest.fixture()
def manager(store: SettingsStore, factory: FakeClientFactory) -> TaskManager:
    return TaskManager(store, factory)


@pytest.fixture()
def client(store: SettingsStore, factory: FakeClientFactory) -> TestClient:
    """HTTP client over the real app, wired to the fake Asana factory."""
    return TestClient(create_app(store, factory))
