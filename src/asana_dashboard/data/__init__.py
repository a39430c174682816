"""
データレイヤーモジュール

Asana API との通信とデータモデルを提供
"""

from .models import Workspace, Project, User, Task, TASK_LIST_FIELDS, TASK_STATS_FIELDS
from .asana_client import AsanaClient, AsanaClientFactory

__all__ = [
    'Workspace',
    'Project',
    'User',
    'Task',
    'TASK_LIST_FIELDS',
    'TASK_STATS_FIELDS',
    'AsanaClient',
    'AsanaClientFactory'
]
