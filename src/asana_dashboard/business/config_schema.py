"""
設定構造定義

プロセス起動時に環境変数（および .env ファイル）から読み込む設定と、
実行中に置き換えられるダッシュボード設定の構造を定義します。
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class DashboardSettings:
    """Asana 接続設定（不変スナップショット）

    保存時は部分更新せず、インスタンスごと置き換えます。
    """
    asana_token: str = ""
    asana_workspace: str = ""
    asana_project: str = ""

    @property
    def configured(self) -> bool:
        """トークンとワークスペースが両方設定されているか"""
        return bool(self.asana_token) and bool(self.asana_workspace)

    def to_dict(self) -> Dict[str, Any]:
        """API 応答用の辞書（camelCase キー）に変換"""
        return {
            'asanaToken': self.asana_token,
            'asanaWorkspace': self.asana_workspace,
            'asanaProject': self.asana_project,
            'configured': self.configured
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'DashboardSettings':
        """リクエストボディから設定を作成

        欠けているキーや null は空文字列になります。
        """
        data = data or {}

        def _text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        return cls(
            asana_token=_text('asanaToken'),
            asana_workspace=_text('asanaWorkspace'),
            asana_project=_text('asanaProject')
        )


class AppConfig(BaseSettings):
    """プロセス全体の設定

    起動時に一度だけ読み込み、以降は変更しません。
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True
    )

    asana_token: str = Field("", validation_alias="ASANA_TOKEN")
    asana_workspace: str = Field("", validation_alias="ASANA_WORKSPACE")
    asana_project: str = Field("", validation_alias="ASANA_PROJECT")

    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(8080, validation_alias="PORT")

    debug: bool = Field(False, validation_alias="ASANA_DASHBOARD_DEBUG")
    log_level: str = Field("INFO", validation_alias="ASANA_DASHBOARD_LOG_LEVEL")
    log_dir: Optional[str] = Field(None, validation_alias="ASANA_DASHBOARD_LOG_DIR")
    request_timeout: float = Field(30.0, gt=0, validation_alias="ASANA_DASHBOARD_REQUEST_TIMEOUT")

    def initial_settings(self) -> DashboardSettings:
        """環境変数由来の初期ダッシュボード設定"""
        return DashboardSettings(
            asana_token=self.asana_token,
            asana_workspace=self.asana_workspace,
            asana_project=self.asana_project
        )
