# src/services/marketplace_api/routes/__init__.py
"""
Роутеры API маркетплейса (подключаются с префиксом API_PREFIX).
"""

from src.services.marketplace_api.routes import (
    admin,
    auth,
    bookings,
    cars,
    chat,
    notifications,
    payments,
    realtime,
    rooms,
    users,
)

ROUTERS = [
    auth.router,
    admin.router,
    users.router,
    rooms.router,
    cars.router,
    bookings.router,
    payments.router,
    notifications.router,
    chat.router,
    realtime.router,
]

__all__ = ["ROUTERS"]
