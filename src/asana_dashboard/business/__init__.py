# ビジネスロジックレイヤー - 設定管理、タスク管理

from .config_schema import AppConfig, DashboardSettings
from .settings_store import SettingsStore
from .config_initializer import ConfigInitializer
from .task_manager import TaskManager, sort_incomplete_first, tally_completion

__all__ = [
    'AppConfig', 'DashboardSettings',
    'SettingsStore',
    'ConfigInitializer',
    'TaskManager', 'sort_incomplete_first', 'tally_completion'
]
