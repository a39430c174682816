"""
Asana Dashboard メインエントリーポイント

環境変数から設定を読み込み、ログを初期化して API サーバーを起動する
"""
import argparse
import os
import sys
from typing import List, Optional

import uvicorn

from .business.config_initializer import ConfigInitializer
from .business.config_schema import AppConfig
from .api.server import create_app
from .utils.logger import initialize_logging, cleanup_old_logs, log_system_info
from .utils.error_handler import ErrorContext, handle_error


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="asana-dashboard", description="Asana task dashboard API server")
    parser.add_argument("--host", help="listen address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="listen port (default: PORT or 8080)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--debug", action="store_true", help="enable debug mode")
    verbosity.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    verbosity.add_argument("--quiet", action="store_true", help="log at WARNING level")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """メインアプリケーション実行関数"""
    args = parse_args(argv)
    logger = None

    try:
        app_config = AppConfig()

        debug_mode = app_config.debug or args.debug
        log_level = "DEBUG" if debug_mode else app_config.log_level
        if args.verbose:
            log_level = "DEBUG"
        elif args.quiet:
            log_level = "WARNING"

        logger = initialize_logging(log_dir=app_config.log_dir, level=log_level, debug_mode=debug_mode)
        logger.info("Asana Dashboard を開始しています...")
        logger.info(f"Python バージョン: {sys.version}")
        logger.info(f"実行ディレクトリ: {os.getcwd()}")
        logger.info(f"デバッグモード: {'有効' if debug_mode else '無効'}")
        if debug_mode:
            log_system_info()

        initializer = ConfigInitializer(app_config)
        settings_store = initializer.create_settings_store()
        client_factory = initializer.create_client_factory(settings_store)
        app = create_app(settings_store, client_factory)

        host = args.host or app_config.host
        port = args.port or app_config.port
        logger.info(f"API サーバーを起動します: http://{host}:{port}")
        logger.info(f"ヘルスチェック: http://localhost:{port}/api/health")

        uvicorn.run(app, host=host, port=port, log_level=log_level.lower())

        logger.info("アプリケーションが正常終了しました")

    except KeyboardInterrupt:
        if logger:
            logger.info("ユーザーによりアプリケーションが中断されました")
        sys.exit(0)

    except Exception as error:
        error_message = handle_error(error, "アプリケーション初期化")
        if logger:
            logger.critical(f"アプリケーション初期化に失敗しました: {error_message} ({error})")
        else:
            print(f"ログシステム初期化前にエラーが発生しました: {error}", file=sys.stderr)
        sys.exit(1)

    finally:
        with ErrorContext("ログクリーンアップ", reraise=False):
            cleanup_old_logs(days=30)


if __name__ == "__main__":
    main()
