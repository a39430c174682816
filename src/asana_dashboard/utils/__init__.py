# ユーティリティ - エラーハンドリングとログ設定
