"""
Asana API クライアント

Asana API との通信を担当するクライアントクラスと、リクエストごとに
クライアントを生成するファクトリ
"""

import json
import logging
import time
from typing import TYPE_CHECKING, List, Dict, Any, Optional
from urllib.parse import urljoin

import requests

from .models import Workspace, Project, User, Task
from ..utils.error_handler import (
    APIError, NetworkError, AuthenticationError, ConfigurationError
)
from ..utils.logger import PerformanceLogger, log_api_request

if TYPE_CHECKING:
    from ..business.config_schema import DashboardSettings


class AsanaClient:
    """
    Asana API クライアント

    API 認証、HTTP リクエスト処理、エラー変換を提供する。
    各呼び出しは一度だけ実行し、再試行は行わない。
    """

    BASE_URL = "https://app.asana.com/api/1.0/"
    DEFAULT_TIMEOUT = 30
    PAGE_SIZE = 100

    def __init__(self, access_token: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        """
        AsanaClient を初期化

        Args:
            access_token: Asana API アクセストークン
            timeout: リクエストタイムアウト（秒）
            session: 利用する requests セッション（テスト用に差し替え可能）
        """
        if not access_token or not isinstance(access_token, str):
            raise ValueError("access_token は空でない文字列である必要があります")

        self.access_token = access_token.strip()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

        self.logger.debug(f"AsanaClient初期化 - トークン長: {len(self.access_token)}")

        self.session.headers.update({
            'Authorization': f'Bearer {self.access_token}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'User-Agent': 'AsanaDashboard/1.0 (Python/requests)'
        })

    def close(self):
        """
        セッションを閉じてリソースを解放
        """
        if self.session:
            self.session.close()
            self.logger.debug("Asana API セッションをクローズしました")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _make_request(self, method: str, endpoint: str, params: Optional[Dict] = None,
                      data: Optional[Dict] = None) -> Dict[str, Any]:
        """
        HTTP リクエストを実行

        Args:
            method: HTTP メソッド
            endpoint: API エンドポイント
            params: クエリパラメータ
            data: リクエストボディ

        Returns:
            API レスポンスデータ

        Raises:
            AuthenticationError: 401/403 の場合
            APIError: その他の API エラー
            NetworkError: タイムアウト・接続エラーの場合
        """
        url = urljoin(self.BASE_URL, endpoint)
        request_size = len(json.dumps(data).encode('utf-8')) if data else 0
        start_time = time.time()

        self.logger.debug(f"API リクエスト: {method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=data,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            log_api_request(method, endpoint, 0, time.time() - start_time, request_size=request_size)
            raise NetworkError("リクエストがタイムアウトしました", original_error=e)
        except requests.exceptions.ConnectionError as e:
            log_api_request(method, endpoint, 0, time.time() - start_time, request_size=request_size)
            raise NetworkError("Asana API への接続に失敗しました", original_error=e)
        except requests.exceptions.RequestException as e:
            log_api_request(method, endpoint, 0, time.time() - start_time, request_size=request_size)
            raise NetworkError(f"リクエストエラーが発生しました: {e}", original_error=e)

        response_size = len(response.content) if response.content else 0
        log_api_request(
            method=method,
            url=endpoint,
            status_code=response.status_code,
            duration=time.time() - start_time,
            request_size=request_size,
            response_size=response_size
        )

        if not response.ok:
            self._handle_error_response(response)

        if not response.content:
            return {}

        try:
            json_response = response.json()
        except ValueError as e:
            raise APIError(f"API レスポンスの JSON 解析に失敗しました: {e}",
                           status_code=response.status_code, original_error=e)

        if self.logger.isEnabledFor(logging.DEBUG):
            payload = json_response.get('data') if isinstance(json_response, dict) else None
            data_count = len(payload) if isinstance(payload, list) else int(bool(payload))
            self.logger.debug(f"API レスポンス成功: {method} {endpoint} - "
                              f"データ件数: {data_count}, サイズ: {response_size}B")

        return json_response

    def _handle_error_response(self, response: requests.Response):
        """
        エラーレスポンスの処理

        Args:
            response: HTTP レスポンス

        Raises:
            AuthenticationError: 認証・権限エラー
            APIError: その他のエラー
        """
        error_data = {}
        try:
            error_data = response.json()
            first_error = (error_data.get('errors') or [{}])[0]
            error_message = first_error.get('message', 'Unknown error')
            error_phrase = first_error.get('phrase', '')
        except (ValueError, AttributeError, IndexError):
            error_message = f"HTTP {response.status_code}: {response.reason}"
            error_phrase = ""
            error_data = {}

        full_error_message = error_message
        if error_phrase:
            full_error_message += f" ({error_phrase})"

        if response.status_code in (401, 403):
            raise AuthenticationError(full_error_message, status_code=response.status_code)

        raise APIError(full_error_message, status_code=response.status_code, response_data=error_data)

    def _get_collection(self, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        ページネーションを辿ってコレクションを全件取得

        Args:
            endpoint: API エンドポイント
            params: クエリパラメータ

        Returns:
            取得したレコードのリスト
        """
        params = dict(params)
        params.setdefault('limit', self.PAGE_SIZE)
        records: List[Dict[str, Any]] = []

        while True:
            response = self._make_request('GET', endpoint, params=dict(params))
            records.extend(response.get('data') or [])

            next_page = response.get('next_page') or {}
            offset = next_page.get('offset')
            if not offset:
                return records
            params['offset'] = offset

    def get_me(self) -> User:
        """
        現在のトークンに対応するユーザーを取得

        Returns:
            ユーザー情報
        """
        response = self._make_request('GET', 'users/me')
        data = response.get('data')
        if not data:
            raise APIError("予期しないレスポンス形式です", response_data=response)
        return User.from_api(data)

    def test_connection(self) -> User:
        """
        API 接続をテスト

        Returns:
            接続に成功したユーザー

        Raises:
            AuthenticationError: トークンが無効な場合
        """
        self.logger.info("API 接続をテストしています...")
        user = self.get_me()
        self.logger.info(f"API 接続テストが成功しました - ユーザー: {user.name}")
        return user

    def get_workspaces(self) -> List[Workspace]:
        """
        アクセス可能なワークスペース一覧を取得

        Returns:
            ワークスペースのリスト
        """
        return [Workspace.from_api(item) for item in self._get_collection('workspaces', {})]

    def get_projects(self, workspace_id: str, archived: bool = False) -> List[Project]:
        """
        ワークスペース内のプロジェクト一覧を取得

        Args:
            workspace_id: ワークスペースID
            archived: アーカイブ済みプロジェクトを対象にするかどうか

        Returns:
            プロジェクトのリスト
        """
        with PerformanceLogger("プロジェクト一覧取得"):
            items = self._get_collection('projects', {
                'workspace': workspace_id,
                'archived': 'true' if archived else 'false',
                'opt_fields': 'name'
            })

        projects = []
        for item in items:
            try:
                projects.append(Project.from_api(item))
            except ValueError as e:
                self.logger.warning(f"プロジェクトデータの解析に失敗: {e} - データ: {item}")

        self.logger.info(f"{len(projects)}個のプロジェクトを取得しました")
        return projects

    def get_tasks(self, workspace_id: str, assignee: str, opt_fields: str) -> List[Task]:
        """
        担当者に割り当てられたタスクを取得

        Args:
            workspace_id: ワークスペースID
            assignee: 担当者の gid
            opt_fields: 取得するフィールド（カンマ区切り）

        Returns:
            API の返却順を保ったタスクのリスト
        """
        with PerformanceLogger("タスク一覧取得") as perf:
            items = self._get_collection('tasks', {
                'workspace': workspace_id,
                'assignee': assignee,
                'opt_fields': opt_fields
            })
            perf.log_checkpoint("API レスポンス受信")

        tasks = [Task.from_api(item) for item in items]
        self.logger.info(f"{len(tasks)}個のタスクを取得しました")
        return tasks

    def create_task(self, task_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        タスクを作成

        Args:
            task_data: Asana に渡すタスクデータ

        Returns:
            作成されたタスク
        """
        response = self._make_request('POST', 'tasks', data={'data': task_data})
        return response.get('data') or {}

    def update_task(self, task_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        タスクを部分更新

        Args:
            task_id: タスク ID
            updates: 更新するフィールド

        Returns:
            更新後のタスク
        """
        if not task_id:
            raise ValueError("task_id は必須です")
        response = self._make_request('PUT', f'tasks/{task_id}', data={'data': updates})
        return response.get('data') or {}

    def delete_task(self, task_id: str) -> None:
        """
        タスクを削除

        Args:
            task_id: タスク ID
        """
        if not task_id:
            raise ValueError("task_id は必須です")
        self._make_request('DELETE', f'tasks/{task_id}')


class AsanaClientFactory:
    """
    リクエストごとに独立した AsanaClient を生成するファクトリ

    明示的なトークンがあればそれを、なければ設定ストアのトークンを使う。
    クライアントはリクエスト間で共有しない。
    """

    def __init__(self, settings_store, timeout: float = AsanaClient.DEFAULT_TIMEOUT):
        self.settings_store = settings_store
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def resolve_token(self, credential_override: Optional[str] = None,
                      settings: Optional['DashboardSettings'] = None) -> str:
        if credential_override and credential_override.strip():
            return credential_override.strip()
        if settings is None:
            settings = self.settings_store.get()
        return settings.asana_token.strip()

    def create(self, credential_override: Optional[str] = None,
               settings: Optional['DashboardSettings'] = None) -> AsanaClient:
        """
        AsanaClient を生成

        Args:
            credential_override: リクエストで明示されたトークン
            settings: 呼び出し側が読み込み済みの設定スナップショット（None の場合はストアから読む）

        Returns:
            新しい AsanaClient

        Raises:
            ConfigurationError: 利用できるトークンがない場合
        """
        token = self.resolve_token(credential_override, settings)
        if not token:
            raise ConfigurationError("Asana トークンが設定されていません", config_key="asanaToken")
        return AsanaClient(token, timeout=self.timeout)
