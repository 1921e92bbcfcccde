# src/shared/__init__.py
"""
Общий код между API и realtime-шлюзом.

Модули:
- models: общие Pydantic-модели (идентификаторы, пагинация, health)
"""

__all__: list[str] = []
