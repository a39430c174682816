"""
ログ設定とログ管理機能

アプリケーションログ、エラーログ、パフォーマンスログ、API リクエストログを扱う
"""
import logging
import logging.handlers
import os
from pathlib import Path
from datetime import datetime, timedelta
from typing import Optional


class LoggerConfig:
    """ログ設定管理クラス"""

    DEFAULT_CONFIG = {
        "max_file_size_mb": 10,
        "backup_count": 5,
        "console_log_level": "INFO",
        "enable_performance_logging": True,
        "log_format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S"
    }

    def __init__(self, log_dir: Optional[str] = None, debug_mode: bool = False):
        """
        ログ設定を初期化

        Args:
            log_dir: ログファイル保存ディレクトリ（Noneの場合はデフォルト使用）
            debug_mode: デバッグモードの有効/無効
        """
        if log_dir is None:
            self.log_dir = Path(os.path.expanduser('~')) / '.asana_dashboard' / 'logs'
        else:
            self.log_dir = Path(log_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)

        date_str = datetime.now().strftime('%Y%m%d')
        self.log_file = self.log_dir / f"asana_dashboard_{date_str}.log"
        self.debug_log_file = self.log_dir / f"asana_dashboard_debug_{date_str}.log"
        self.error_log_file = self.log_dir / f"asana_dashboard_error_{date_str}.log"

        self.debug_mode = debug_mode
        self.config = dict(self.DEFAULT_CONFIG)
        if debug_mode:
            self.config["console_log_level"] = "DEBUG"

    def setup_logging(self, level: str = "INFO") -> logging.Logger:
        """
        ログ設定をセットアップ

        Args:
            level: ログレベル（DEBUG, INFO, WARNING, ERROR, CRITICAL）

        Returns:
            設定済みのロガーインスタンス
        """
        config = self.config
        log_level = getattr(logging, level.upper(), logging.INFO)
        console_level = getattr(logging, config['console_log_level'].upper(), logging.INFO)
        console_level = max(console_level, log_level)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # アプリケーション専用ロガー（ハンドラー側でレベルを絞る）
        logger = logging.getLogger('asana_dashboard')
        logger.setLevel(logging.DEBUG)
        logger.handlers.clear()
        # 伝播なし（ハンドラーはルートと共有）
        logger.propagate = False

        detailed_formatter = logging.Formatter(config['log_format'], datefmt=config['date_format'])
        simple_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        # メインログファイルハンドラー（日次ローテーション）
        main_file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=self.log_file,
            when='midnight',
            interval=1,
            backupCount=30,
            encoding='utf-8'
        )
        main_file_handler.setLevel(log_level)
        main_file_handler.setFormatter(detailed_formatter)
        logger.addHandler(main_file_handler)

        max_bytes = config['max_file_size_mb'] * 1024 * 1024

        debug_file_handler = None
        if self.debug_mode or log_level <= logging.DEBUG:
            debug_file_handler = logging.handlers.RotatingFileHandler(
                filename=self.debug_log_file,
                maxBytes=max_bytes,
                backupCount=config['backup_count'],
                encoding='utf-8'
            )
            debug_file_handler.setLevel(logging.DEBUG)
            debug_file_handler.setFormatter(detailed_formatter)
            logger.addHandler(debug_file_handler)

        error_file_handler = logging.handlers.RotatingFileHandler(
            filename=self.error_log_file,
            maxBytes=max_bytes,
            backupCount=config['backup_count'],
            encoding='utf-8'
        )
        error_file_handler.setLevel(logging.ERROR)
        error_file_handler.setFormatter(detailed_formatter)
        logger.addHandler(error_file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

        # uvicorn など他のロガーの出力も拾う
        if not root_logger.handlers:
            root_logger.addHandler(main_file_handler)
            root_logger.addHandler(console_handler)
            if debug_file_handler is not None:
                root_logger.addHandler(debug_file_handler)

        if config['enable_performance_logging']:
            perf_log_file = self.log_dir / f"performance_{datetime.now().strftime('%Y%m%d')}.log"
            perf_handler = logging.handlers.TimedRotatingFileHandler(
                filename=perf_log_file,
                when='midnight',
                interval=1,
                backupCount=7,
                encoding='utf-8'
            )
            perf_handler.setLevel(logging.INFO)
            perf_handler.setFormatter(logging.Formatter(
                '%(asctime)s - PERF - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))

            perf_logger = logging.getLogger('asana_dashboard.performance')
            perf_logger.setLevel(logging.INFO)
            perf_logger.handlers.clear()
            perf_logger.addHandler(perf_handler)
            perf_logger.propagate = False

        logger.info("ログシステムが初期化されました")
        logger.info(f"ログレベル: {level}")
        logger.info(f"メインログファイル: {self.log_file}")
        logger.info(f"エラーログファイル: {self.error_log_file}")

        if self.debug_mode:
            logger.info(f"デバッグログファイル: {self.debug_log_file}")
            logger.debug("デバッグモードが有効です")

        return logger

    def cleanup_old_logs(self, days: int = 30):
        """古いログファイルをクリーンアップ"""
        cutoff = (datetime.now() - timedelta(days=days)).timestamp()
        logger = logging.getLogger('asana_dashboard')

        for log_file in self.log_dir.glob("*.log*"):
            try:
                if log_file.stat().st_mtime < cutoff:
                    log_file.unlink()
                    logger.info(f"古いログファイルを削除: {log_file}")
            except OSError as e:
                logger.warning(f"ログファイルを削除できません: {log_file} - {e}")


def get_logger(name: str = 'asana_dashboard') -> logging.Logger:
    """
    ロガーインスタンスを取得

    Args:
        name: ロガー名

    Returns:
        ロガーインスタンス
    """
    return logging.getLogger(name)


# グローバルログ設定インスタンス
_logger_config = None


def initialize_logging(log_dir: Optional[str] = None, level: str = "INFO",
                       debug_mode: bool = False) -> logging.Logger:
    """
    アプリケーション全体のログ設定を初期化

    Args:
        log_dir: ログディレクトリ
        level: ログレベル
        debug_mode: デバッグモードの有効/無効

    Returns:
        メインロガー
    """
    global _logger_config
    _logger_config = LoggerConfig(log_dir, debug_mode)
    return _logger_config.setup_logging(level)


def cleanup_old_logs(days: int = 30):
    """
    古いログファイルをクリーンアップ

    Args:
        days: 保持する日数
    """
    global _logger_config
    if _logger_config:
        _logger_config.cleanup_old_logs(days)


class PerformanceLogger:
    """パフォーマンス測定用クラス"""

    def __init__(self, operation_name: str, logger_name: str = 'asana_dashboard.performance'):
        self.operation_name = operation_name
        self.logger = logging.getLogger(logger_name)
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"開始: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = datetime.now()
        duration = (self.end_time - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.info(f"完了: {self.operation_name} - 実行時間: {duration:.3f}秒")
        else:
            self.logger.error(f"エラー終了: {self.operation_name} - 実行時間: {duration:.3f}秒 - エラー: {exc_val}")

    def log_checkpoint(self, checkpoint_name: str):
        """チェックポイントをログに記録"""
        if self.start_time:
            elapsed = (datetime.now() - self.start_time).total_seconds()
            self.logger.info(f"チェックポイント: {self.operation_name} - {checkpoint_name} - 経過時間: {elapsed:.3f}秒")


def log_system_info():
    """システム情報をログに記録"""
    import sys
    import platform
    import psutil

    logger = get_logger('asana_dashboard.system')
    logger.info("=== システム情報 ===")
    logger.info(f"OS: {platform.system()} {platform.release()}")
    logger.info(f"Python: {sys.version}")
    logger.info(f"CPU: {platform.processor()} ({psutil.cpu_count()} cores)")
    logger.info(f"メモリ: {psutil.virtual_memory().total // (1024**3)} GB")
    logger.info(f"実行パス: {sys.executable}")
    logger.info(f"作業ディレクトリ: {os.getcwd()}")


def log_api_request(method: str, url: str, status_code: int, duration: float,
                    request_size: int = 0, response_size: int = 0):
    """API リクエスト情報をログに記録"""
    logger = get_logger('asana_dashboard.api')
    logger.info(f"API: {method} {url} - {status_code} - {duration:.3f}s - "
                f"Req:{request_size}B Res:{response_size}B")
