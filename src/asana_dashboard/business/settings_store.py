"""
設定管理 - SettingsStore クラス

Asana トークン、ワークスペース、デフォルトプロジェクトをプロセス内メモリで保持します。
永続化は行わず、再起動すると環境変数由来の初期値に戻ります。
"""

import logging
import threading
from typing import Any, Dict, Optional, Union

from .config_schema import DashboardSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """設定管理クラス

    不変の DashboardSettings をロック下で丸ごと差し替えます。
    同時に保存された場合は後勝ちです。
    """

    def __init__(self, initial: Optional[DashboardSettings] = None):
        """SettingsStore を初期化

        Args:
            initial: 初期設定。None の場合は空の設定
        """
        self._lock = threading.Lock()
        self._settings = initial or DashboardSettings()
        logger.info(f"SettingsStore initialized (configured={self._settings.configured})")

    def get(self) -> DashboardSettings:
        """現在の設定スナップショットを取得

        Returns:
            現在の設定
        """
        with self._lock:
            return self._settings

    @property
    def configured(self) -> bool:
        return self.get().configured

    def replace(self, new_settings: Union[DashboardSettings, Dict[str, Any], None]) -> DashboardSettings:
        """設定を丸ごと置き換え

        フィールド単位のマージは行いません。辞書で渡された場合、
        含まれないキーは空文字列になります。

        Args:
            new_settings: 新しい設定、またはリクエストボディの辞書

        Returns:
            保存後の設定
        """
        if not isinstance(new_settings, DashboardSettings):
            new_settings = DashboardSettings.from_dict(new_settings)

        with self._lock:
            self._settings = new_settings

        logger.info(
            "Settings replaced (configured=%s, workspace=%s, project=%s)",
            new_settings.configured,
            new_settings.asana_workspace or "-",
            new_settings.asana_project or "-"
        )
        return new_settings
