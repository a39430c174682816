"""
ダッシュボード API サーバー

Asana のワークスペース・プロジェクト・タスクを中継する REST エンドポイントを提供する FastAPI アプリケーション

Endpoints:
    GET    /api/settings                 → 現在の設定 + configured
    POST   /api/settings                 → 設定を丸ごと置き換え
    POST   /api/asana/test               → トークンの接続テスト
    GET    /api/asana/workspaces         → ワークスペース一覧（X-Asana-Token）
    GET    /api/asana/projects           → プロジェクト一覧（X-Asana-Token, ?workspace=）
    GET    /api/projects                 → 保存済みワークスペースのプロジェクト一覧
    GET    /api/tasks                    → 自分のタスク（未完了優先、最大50件）
    GET    /api/tasks/stats              → 未完了・完了件数
    POST   /api/tasks                    → タスク作成
    PUT    /api/tasks/{task_id}/complete → タスク完了
    PUT    /api/tasks/{task_id}          → タスク部分更新
    DELETE /api/tasks/{task_id}          → タスク削除
    GET    /api/health                   → 稼働状態
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from ..business.settings_store import SettingsStore
from ..business.task_manager import TaskManager
from ..data.asana_client import AsanaClientFactory
from ..utils.error_handler import ValidationError, handle_error

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
#  Request Models
# ─────────────────────────────────────────────────────────────

class ConnectionTestRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    asanaToken: Optional[str] = None


class TaskCreateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    notes: Optional[str] = None
    project: Optional[str] = None
    due_on: Optional[str] = None


# ─────────────────────────────────────────────────────────────
#  Dependencies
# ─────────────────────────────────────────────────────────────

def get_settings_store(request: Request) -> SettingsStore:
    return request.app.state.settings_store


def get_task_manager(request: Request) -> TaskManager:
    state = request.app.state
    return TaskManager(state.settings_store, state.client_factory)


def _error_response(status_code: int, message: str, error: Exception,
                    context: str, include_details: bool = False) -> JSONResponse:
    """
    エラーを記録し、固定形式のエラーレスポンスを返す

    Args:
        status_code: HTTP ステータス
        message: クライアントに返すメッセージ
        error: 発生したエラー
        context: ログ用コンテキスト
        include_details: 上流エラーの詳細を返すかどうか
    """
    handle_error(error, context)
    content = {'error': message}
    if include_details:
        content['details'] = str(error)
    return JSONResponse(status_code=status_code, content=content)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


# ─────────────────────────────────────────────────────────────
#  App Factory
# ─────────────────────────────────────────────────────────────

def create_app(settings_store: SettingsStore, client_factory: AsanaClientFactory) -> FastAPI:
    """
    ダッシュボード API アプリケーションを作成

    Args:
        settings_store: 設定ストア
        client_factory: リクエストごとに Asana クライアントを生成するファクトリ

    Returns:
        FastAPI アプリケーション
    """
    app = FastAPI(title="Asana Dashboard", version="1.0.0")
    app.state.settings_store = settings_store
    app.state.client_factory = client_factory
    logger.info("API アプリケーションを作成しました")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        handle_error(exc, f"{request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={'error': 'Internal server error'})

    # ── Settings ────────────────────────────────────────────

    @app.get("/api/settings")
    async def get_settings(store: SettingsStore = Depends(get_settings_store)):
        return store.get().to_dict()

    @app.post("/api/settings")
    async def save_settings(request: Request, store: SettingsStore = Depends(get_settings_store)):
        try:
            raw = await request.body()
            payload = json.loads(raw) if raw.strip() else None
            if payload is not None and not isinstance(payload, dict):
                raise ValidationError("settings body must be a JSON object", field="body")
            store.replace(payload)
            return {'success': True}
        except Exception as e:
            return _error_response(500, 'Failed to save settings', e, "設定保存")

    # ── Asana (explicit token) ──────────────────────────────

    @app.post("/api/asana/test")
    def test_connection(payload: Any = Body(None),
                        manager: TaskManager = Depends(get_task_manager)):
        raw_token = payload.get('asanaToken') if isinstance(payload, dict) else None
        if not raw_token:
            return JSONResponse(status_code=400, content={'error': 'No token provided'})
        try:
            token = ConnectionTestRequest.model_validate(payload).asanaToken
            if not token.strip():
                return JSONResponse(status_code=400, content={'error': 'No token provided'})
            return manager.test_connection(token)
        except Exception as e:
            return _error_response(400, 'Invalid Asana token or connection failed', e,
                                   "Asana 接続テスト", include_details=True)

    @app.get("/api/asana/workspaces")
    def list_workspaces(x_asana_token: Optional[str] = Header(None, alias="X-Asana-Token"),
                        manager: TaskManager = Depends(get_task_manager)):
        if not (x_asana_token or "").strip():
            return JSONResponse(status_code=401, content={'error': 'No Asana token provided'})
        try:
            return manager.list_workspaces(x_asana_token)
        except Exception as e:
            return _error_response(401, 'Invalid token or failed to fetch workspaces', e,
                                   "ワークスペース一覧取得", include_details=True)

    @app.get("/api/asana/projects")
    def list_workspace_projects(workspace: Optional[str] = Query(None),
                                x_asana_token: Optional[str] = Header(None, alias="X-Asana-Token"),
                                manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.list_projects(workspace, x_asana_token)
        except Exception as e:
            return _error_response(500, 'Failed to fetch projects', e, "プロジェクト一覧取得")

    # ── Dashboard (stored settings) ─────────────────────────

    @app.get("/api/projects")
    def list_projects(manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.list_dashboard_projects()
        except Exception as e:
            return _error_response(500, 'Failed to fetch projects', e, "プロジェクト一覧取得")

    @app.get("/api/tasks")
    def list_tasks(manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.list_tasks()
        except Exception as e:
            return _error_response(500, 'Failed to fetch tasks', e, "タスク一覧取得")

    @app.get("/api/tasks/stats")
    def task_stats(manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.task_stats()
        except Exception as e:
            return _error_response(500, 'Failed to fetch task stats', e, "タスク統計取得")

    @app.post("/api/tasks")
    def create_task(payload: Any = Body(None), manager: TaskManager = Depends(get_task_manager)):
        try:
            body = TaskCreateRequest.model_validate(payload if payload is not None else {})
            return manager.create_task(body.name, notes=body.notes,
                                       project=body.project, due_on=body.due_on)
        except Exception as e:
            return _error_response(500, 'Failed to create task', e, "タスク作成")

    @app.put("/api/tasks/{task_id}/complete")
    def complete_task(task_id: str, manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.complete_task(task_id)
        except Exception as e:
            return _error_response(500, 'Failed to complete task', e, "タスク完了")

    @app.put("/api/tasks/{task_id}")
    def update_task(task_id: str, updates: Optional[Dict[str, Any]] = Body(None),
                    manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.update_task(task_id, updates or {})
        except Exception as e:
            return _error_response(500, 'Failed to update task', e, "タスク更新")

    @app.delete("/api/tasks/{task_id}")
    def delete_task(task_id: str, manager: TaskManager = Depends(get_task_manager)):
        try:
            return manager.delete_task(task_id)
        except Exception as e:
            return _error_response(500, 'Failed to delete task', e, "タスク削除")

    # ── Health ──────────────────────────────────────────────

    @app.get("/api/health")
    async def health(store: SettingsStore = Depends(get_settings_store)):
        return {
            'status': 'healthy',
            'timestamp': _utc_timestamp(),
            'configured': store.configured
        }

    return app
