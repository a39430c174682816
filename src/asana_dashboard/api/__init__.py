# API レイヤー - FastAPI ベースの REST エンドポイント

from .server import create_app

__all__ = ['create_app']
