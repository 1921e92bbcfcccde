# src/core/__init__.py
"""
Доменный слой (Core Domain).
Бизнес-логика маркетплейса: пользователи, салоны, автомобили,
бронирования, платежи, чат, уведомления, журнал API.
"""
