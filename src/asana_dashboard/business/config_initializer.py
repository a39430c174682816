"""
設定初期化ユーティリティ

起動時の設定から SettingsStore と AsanaClientFactory を組み立てます。
"""

import logging
from typing import Optional

from .config_schema import AppConfig
from .settings_store import SettingsStore
from ..data.asana_client import AsanaClientFactory

logger = logging.getLogger(__name__)


class ConfigInitializer:
    """設定初期化クラス

    AppConfig を読み込み、リクエスト処理に渡す依存オブジェクトを生成します。
    """

    def __init__(self, app_config: Optional[AppConfig] = None):
        """ConfigInitializer を初期化

        Args:
            app_config: 使用する AppConfig。None の場合は環境変数から読み込む
        """
        self.app_config = app_config or AppConfig()
        logger.info("ConfigInitializer initialized")

    def create_settings_store(self) -> SettingsStore:
        """環境変数の値で初期化した SettingsStore を作成"""
        initial = self.app_config.initial_settings()
        if initial.configured:
            logger.info("Asana configured from environment")
        else:
            logger.warning("Asana not configured - configure via the settings endpoint")
        return SettingsStore(initial)

    def create_client_factory(self, settings_store: SettingsStore) -> AsanaClientFactory:
        return AsanaClientFactory(settings_store, timeout=self.app_config.request_timeout)

    def get_config_info(self) -> dict:
        """起動設定の概要（トークンは含めない）"""
        return {
            "host": self.app_config.host,
            "port": self.app_config.port,
            "debug": self.app_config.debug,
            "log_level": self.app_config.log_level,
            "request_timeout": self.app_config.request_timeout,
            "token_configured": bool(self.app_config.asana_token)
        }
