# src/services/realtime_ws/__init__.py
"""
Realtime WebSocket Gateway.

Обеспечивает:
- WebSocket соединения клиентов с выдачей socket_id
- Подписку на приватные каналы по подписи из API
- Пересылку событий из Redis Pub/Sub подписчикам
"""
