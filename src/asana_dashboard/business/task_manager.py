"""
タスク管理機能

ダッシュボードの各機能（接続テスト、ワークスペース・プロジェクト・タスクの取得と更新、
タスク統計）を、設定ストアと Asana クライアントを組み合わせて提供
"""

import logging
from typing import List, Dict, Any, Optional

from .config_schema import DashboardSettings
from .settings_store import SettingsStore
from ..data.asana_client import AsanaClientFactory
from ..data.models import TASK_LIST_FIELDS, TASK_STATS_FIELDS, Task
from ..utils.error_handler import ValidationError


class TaskManager:
    """
    タスク管理クラス

    状態は持たず、呼び出しごとに設定を読み、新しいクライアントで Asana を呼び出す
    """

    MAX_DASHBOARD_TASKS = 50

    def __init__(self, settings_store: SettingsStore, client_factory: AsanaClientFactory):
        """
        TaskManager を初期化

        Args:
            settings_store: 設定ストア
            client_factory: Asana クライアントファクトリ
        """
        self.settings_store = settings_store
        self.client_factory = client_factory
        self.logger = logging.getLogger(__name__)

    def test_connection(self, token: str) -> Dict[str, Any]:
        """
        指定トークンで Asana に接続できるか確認

        Args:
            token: テストする Asana トークン

        Returns:
            {success, user, email}

        Raises:
            ValidationError: トークンが空の場合
            AuthenticationError: トークンが無効な場合
        """
        token = (token or "").strip()
        if not token:
            raise ValidationError("No token provided", field="asanaToken")

        self.logger.info(f"Asana 接続テスト - トークン長: {len(token)}")
        with self.client_factory.create(token) as client:
            user = client.test_connection()

        return {'success': True, 'user': user.name, 'email': user.email}

    def list_workspaces(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        with self.client_factory.create(token) as client:
            workspaces = client.get_workspaces()
        return [workspace.to_dict() for workspace in workspaces]

    def list_projects(self, workspace_id: Optional[str], token: Optional[str] = None,
                      settings: Optional[DashboardSettings] = None) -> List[Dict[str, Any]]:
        """
        ワークスペース内のアーカイブされていないプロジェクトを取得

        Args:
            workspace_id: ワークスペースID（空の場合は Asana を呼ばずに空リスト）
            token: 明示的なトークン（None の場合は保存済みトークン）
            settings: 読み込み済みの設定スナップショット

        Returns:
            プロジェクトの辞書リスト
        """
        if not workspace_id:
            return []

        with self.client_factory.create(token, settings=settings) as client:
            projects = client.get_projects(workspace_id, archived=False)
        return [project.to_dict() for project in projects]

    def list_dashboard_projects(self) -> List[Dict[str, Any]]:
        """保存済みワークスペースのプロジェクト一覧"""
        settings = self.settings_store.get()
        return self.list_projects(settings.asana_workspace, settings=settings)

    def _fetch_my_tasks(self, settings: DashboardSettings, opt_fields: str) -> List[Task]:
        # ワークスペースとトークンは同じスナップショットから取る
        with self.client_factory.create(settings=settings) as client:
            me = client.get_me()
            return client.get_tasks(settings.asana_workspace, assignee=me.gid, opt_fields=opt_fields)

    def list_tasks(self) -> List[Dict[str, Any]]:
        """
        自分に割り当てられたタスクを取得

        未完了タスクを先に並べ（各グループ内は Asana の返却順を維持）、
        先頭 MAX_DASHBOARD_TASKS 件に切り詰める。

        Returns:
            タスクの辞書リスト
        """
        settings = self.settings_store.get()
        if not settings.asana_workspace:
            return []

        tasks = self._fetch_my_tasks(settings, TASK_LIST_FIELDS)
        ordered = sort_incomplete_first(tasks)[:self.MAX_DASHBOARD_TASKS]

        self.logger.info(f"タスク一覧: {len(tasks)}件取得, {len(ordered)}件返却")
        return [task.to_dict() for task in ordered]

    def task_stats(self) -> Dict[str, int]:
        """
        自分に割り当てられたタスクの未完了・完了件数を集計

        Returns:
            {active, completed}
        """
        settings = self.settings_store.get()
        if not settings.asana_workspace:
            return {'active': 0, 'completed': 0}

        tasks = self._fetch_my_tasks(settings, TASK_STATS_FIELDS)
        return tally_completion(tasks)

    def create_task(self, name: Optional[str], notes: Optional[str] = None,
                    project: Optional[str] = None, due_on: Optional[str] = None) -> Dict[str, Any]:
        """
        タスクを作成

        Args:
            name: タスク名
            notes: メモ（省略時は空文字列）
            project: プロジェクトID（省略時はデフォルトプロジェクト）
            due_on: 期限日（指定時のみ送信）

        Returns:
            作成されたタスク
        """
        settings = self.settings_store.get()
        task_data: Dict[str, Any] = {
            'name': name,
            'workspace': settings.asana_workspace,
            'notes': notes or ''
        }

        project_id = project or settings.asana_project
        if project_id:
            task_data['projects'] = [project_id]

        if due_on:
            task_data['due_on'] = due_on

        with self.client_factory.create(settings=settings) as client:
            created = client.create_task(task_data)

        self.logger.info(f"タスクを作成しました: {created.get('gid', '?')}")
        return created

    def complete_task(self, task_id: str) -> Dict[str, Any]:
        return self.update_task(task_id, {'completed': True})

    def update_task(self, task_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        タスクを部分更新（フィールドの制限なし）

        Args:
            task_id: タスク ID
            updates: Asana にそのまま渡す更新内容

        Returns:
            更新後のタスク
        """
        with self.client_factory.create() as client:
            updated = client.update_task(task_id, updates)

        self.logger.info(f"タスクを更新しました: {task_id} ({', '.join(updates) or '-'})")
        return updated

    def delete_task(self, task_id: str) -> Dict[str, bool]:
        with self.client_factory.create() as client:
            client.delete_task(task_id)

        self.logger.info(f"タスクを削除しました: {task_id}")
        return {'success': True}


def sort_incomplete_first(tasks: List[Task]) -> List[Task]:
    """未完了タスクを先頭に並べる（安定ソート、二次キーなし）"""
    return sorted(tasks, key=lambda task: task.completed)


def tally_completion(tasks: List[Task]) -> Dict[str, int]:
    completed = sum(1 for task in tasks if task.completed)
    return {'active': len(tasks) - completed, 'completed': completed}
