"""
データモデル定義

Asana API から取得するデータの構造を定義するデータクラス
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


# タスク一覧で取得するフィールド
TASK_LIST_FIELDS = "name,completed,due_on,assignee,assignee.name,projects,notes"

# タスク統計で取得するフィールド
TASK_STATS_FIELDS = "completed"


def _require_gid(data: Dict[str, Any], kind: str) -> str:
    gid = data.get('gid')
    if gid is None or gid == "":
        raise ValueError(f"{kind} gid は必須です")
    return str(gid)


@dataclass
class Workspace:
    """Asana ワークスペースを表すデータクラス"""
    gid: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Workspace':
        return cls(gid=_require_gid(data, "Workspace"), name=data.get('name') or "")

    def to_dict(self) -> Dict[str, Any]:
        return {'gid': self.gid, 'name': self.name}


@dataclass
class Project:
    """Asana プロジェクトを表すデータクラス"""
    gid: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Project':
        return cls(gid=_require_gid(data, "Project"), name=data.get('name') or "")

    def to_dict(self) -> Dict[str, Any]:
        return {'gid': self.gid, 'name': self.name}


@dataclass
class User:
    """Asana ユーザー（接続テスト・担当者解決用）"""
    gid: str
    name: str
    email: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            gid=_require_gid(data, "User"),
            name=data.get('name') or "",
            email=data.get('email')
        )


@dataclass
class Task:
    """Asana タスクを表すデータクラス"""
    gid: str
    name: str
    completed: bool = False
    due_on: Optional[str] = None
    notes: Optional[str] = None
    assignee: Optional[Dict[str, Any]] = None
    projects: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Task':
        """
        API レスポンスからタスクオブジェクトを作成

        Args:
            data: API から取得したタスクデータ

        Returns:
            Task オブジェクト
        """
        return cls(
            gid=_require_gid(data, "Task"),
            name=data.get('name') or "",
            completed=bool(data.get('completed', False)),
            due_on=data.get('due_on'),
            notes=data.get('notes'),
            assignee=data.get('assignee'),
            projects=list(data.get('projects') or [])
        )

    def to_dict(self) -> Dict[str, Any]:
        """ダッシュボード向けの辞書形式に変換"""
        return {
            'gid': self.gid,
            'name': self.name,
            'completed': self.completed,
            'due_on': self.due_on,
            'notes': self.notes,
            'assignee': self.assignee,
            'projects': self.projects
        }
