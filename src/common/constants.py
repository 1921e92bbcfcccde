# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей (плоские, без иерархии)."""
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class CarAvailability(str, Enum):
    """Доступность автомобиля."""
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    SOLD = "Sold"


class BookingStatus(str, Enum):
    """Статусы бронирования."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


class PaymentStatus(str, Enum):
    """Статусы оплаты."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class NotificationType(str, Enum):
    """Типы уведомлений."""
    BOOKING = "booking"
    BOOKING_STATUS = "booking_status"
    PAYMENT = "payment"
    PAYMENT_STATUS = "payment_status"
    MESSAGE = "message"
    SYSTEM = "system"


class MessageType(str, Enum):
    """Типы сообщений чата."""
    TEXT = "text"
    CAR_DETAILS = "car_details"
    IMAGE = "image"
    FILE = "file"


class MessageStatus(str, Enum):
    """Статусы доставки сообщений."""
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class OtpPurpose(str, Enum):
    """Назначение одноразового кода."""
    REGISTRATION = "registration"
    SCANNER_UPLOAD = "scanner_upload"


class RealtimeEvent(str, Enum):
    """События realtime-канала."""
    NEW_MESSAGE = "new-message"
    MESSAGE_DELIVERED = "message-delivered"
    TYPING_STATUS = "typing-status"
    UNREAD_COUNT_UPDATE = "unread-count-update"
    NEW_NOTIFICATION = "new-notification"
    NEW_BOOKING = "new-booking"


class SettingKey(str, Enum):
    """Ключи системных настроек."""
    API_LOGGING_ENABLED = "api_logging_enabled"
    API_LOG_RETENTION_DAYS = "api_log_retention_days"


# Сообщения, которые видит клиент
MSG_UNAUTHORIZED = "Unauthorized"
MSG_FORBIDDEN = "Access denied"
MSG_INTERNAL_ERROR = "Internal server error"
MSG_INVALID_OTP = "Invalid or expired OTP"
