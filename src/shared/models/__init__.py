# src/shared/models/__init__.py
"""
Общие Pydantic-модели API.
"""

from src.shared.models.common import (
    EntityId,
    parse_uuid,
    PaginationParams,
    Pagination,
    HealthStatus,
)

__all__ = [
    "EntityId",
    "parse_uuid",
    "PaginationParams",
    "Pagination",
    "HealthStatus",
]
