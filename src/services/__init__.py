# src/services/__init__.py
"""
Приложения, которые запускает main.py.

Сервисы:
- marketplace_api: HTTP API маркетплейса (FastAPI, префикс /api)
- realtime_ws: WebSocket-шлюз, пересылает события из Redis Pub/Sub
"""

__all__: list[str] = []
