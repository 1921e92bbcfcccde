# src/core/api_logs/__init__.py
"""
Журнал API-запросов: запись, выборка с фильтрами, очистка по сроку хранения.
"""

from src.core.api_logs.models import ApiLog, LogEntry, LogFilters
from src.core.api_logs.repository import ApiLogRepository
from src.core.api_logs.service import ApiLogService

__all__ = ["ApiLog", "LogEntry", "LogFilters", "ApiLogRepository", "ApiLogService"]
