"""
エラーハンドリング基盤

Asana API 呼び出しと設定操作で発生するエラーを分類し、ログ記録と統計を提供する
"""
import logging
import traceback
from typing import Optional, Dict, Any, Callable
from enum import Enum


class ErrorType(Enum):
    """エラータイプ分類"""
    API_ERROR = "api_error"
    NETWORK_ERROR = "network_error"
    AUTHENTICATION_ERROR = "auth_error"
    VALIDATION_ERROR = "validation_error"
    CONFIGURATION_ERROR = "config_error"
    UNKNOWN_ERROR = "unknown_error"


class DashboardError(Exception):
    """アプリケーション基底例外クラス"""

    def __init__(self, message: str, error_type: ErrorType = ErrorType.UNKNOWN_ERROR,
                 details: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """
        エラーを初期化

        Args:
            message: エラーメッセージ
            error_type: エラータイプ
            details: エラー詳細情報
            original_error: 元の例外
        """
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}
        self.original_error = original_error


class APIError(DashboardError):
    """API関連エラー"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_data: Optional[Dict] = None, original_error: Optional[Exception] = None):
        details = {
            'status_code': status_code,
            'response_data': response_data
        }
        super().__init__(message, ErrorType.API_ERROR, details, original_error)

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get('status_code')


class NetworkError(DashboardError):
    """ネットワーク関連エラー"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, ErrorType.NETWORK_ERROR, original_error=original_error)


class AuthenticationError(DashboardError):
    """認証関連エラー"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, ErrorType.AUTHENTICATION_ERROR,
                         {'status_code': status_code}, original_error)


class ValidationError(DashboardError):
    """バリデーション関連エラー"""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        details = {
            'field': field,
            'value': value
        }
        super().__init__(message, ErrorType.VALIDATION_ERROR, details)


class ConfigurationError(DashboardError):
    """設定関連エラー"""

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {'config_key': config_key}
        super().__init__(message, ErrorType.CONFIGURATION_ERROR, details)


class ErrorHandler:
    """エラーハンドリング管理クラス"""

    def __init__(self):
        self.logger = logging.getLogger('asana_dashboard.error_handler')

        # クライアントに返す汎用メッセージ
        self.user_messages = {
            ErrorType.API_ERROR: "Asana API request failed",
            ErrorType.NETWORK_ERROR: "Could not reach Asana",
            ErrorType.AUTHENTICATION_ERROR: "Invalid Asana token or insufficient permissions",
            ErrorType.VALIDATION_ERROR: "Invalid request data",
            ErrorType.CONFIGURATION_ERROR: "Asana is not configured",
            ErrorType.UNKNOWN_ERROR: "Unexpected error"
        }

        self.error_stats = {
            'total_errors': 0,
            'errors_by_type': {}
        }

    def handle_error(self, error: Exception, context: str = "") -> str:
        """
        エラーを記録してクライアント向けの汎用メッセージを返す

        Args:
            error: 発生したエラー
            context: エラーが発生したコンテキスト

        Returns:
            クライアント向けエラーメッセージ
        """
        self.record_error_stats(error)
        self.log_error(error, context)

        if isinstance(error, DashboardError):
            return self.user_messages.get(error.error_type, self.user_messages[ErrorType.UNKNOWN_ERROR])
        return self.user_messages[ErrorType.UNKNOWN_ERROR]

    def log_error(self, error: Exception, context: str = ""):
        """
        エラーをログに記録

        Args:
            error: 発生したエラー
            context: エラーが発生したコンテキスト
        """
        error_info = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'context': context,
        }

        if isinstance(error, DashboardError):
            error_info.update({
                'application_error_type': error.error_type.value,
                'error_details': error.details
            })
            self.logger.error(f"エラーが発生しました: {error_info}")
        else:
            # 想定外の例外のみスタックトレースを残す
            error_info['traceback'] = traceback.format_exc()
            self.logger.error(f"予期しないエラーが発生しました: {error_info}")

    def record_error_stats(self, error: Exception):
        """
        エラー統計情報を記録

        Args:
            error: 発生したエラー
        """
        self.error_stats['total_errors'] += 1

        if isinstance(error, DashboardError):
            error_type = error.error_type.value
        else:
            error_type = type(error).__name__

        if error_type not in self.error_stats['errors_by_type']:
            self.error_stats['errors_by_type'][error_type] = 0
        self.error_stats['errors_by_type'][error_type] += 1

    def get_error_stats(self) -> Dict[str, Any]:
        """エラー統計情報のコピーを取得"""
        return {
            'total_errors': self.error_stats['total_errors'],
            'errors_by_type': dict(self.error_stats['errors_by_type'])
        }

    def reset_stats(self):
        self.error_stats = {'total_errors': 0, 'errors_by_type': {}}


# グローバルエラーハンドラーインスタンス
_error_handler = ErrorHandler()


def handle_error(error: Exception, context: str = "") -> str:
    """
    グローバルエラーハンドラーを使用してエラーを処理

    Args:
        error: 発生したエラー
        context: エラーコンテキスト

    Returns:
        クライアント向けエラーメッセージ
    """
    return _error_handler.handle_error(error, context)


def get_error_stats() -> Dict[str, Any]:
    """
    エラー統計情報を取得

    Returns:
        エラー統計情報辞書
    """
    return _error_handler.get_error_stats()


def reset_error_stats():
    _error_handler.reset_stats()


# エラーハンドリングコンテキストマネージャ
class ErrorContext:
    """エラーハンドリングコンテキストマネージャ"""

    def __init__(self, context: str, reraise: bool = True,
                 on_error: Optional[Callable[[Exception], None]] = None):
        """
        エラーコンテキストを初期化

        Args:
            context: エラーコンテキスト
            reraise: エラーを再発生させるかどうか
            on_error: エラー発生時のコールバック関数
        """
        self.context = context
        self.reraise = reraise
        self.on_error = on_error
        self.error: Optional[Exception] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_val is not None:
            self.error = exc_val
            _error_handler.record_error_stats(exc_val)
            _error_handler.log_error(exc_val, self.context)

            if self.on_error:
                try:
                    self.on_error(exc_val)
                except Exception as callback_error:
                    _error_handler.log_error(callback_error, f"{self.context} - error callback")

            if not self.reraise:
                return True  # エラーを抑制

        return False  # エラーを再発生
