"""
Asana Dashboard

Asana のワークスペース・プロジェクト・タスクを中継するダッシュボード用 API
"""

__version__ = "1.0.0"
