# src/core/cars/__init__.py
"""Домен автомобилей."""

from src.core.cars.models import REQUIRED_CAR_FIELDS, Car, CarFilters, CarInput
from src.core.cars.repository import CarRepository
from src.core.cars.service import CarService

__all__ = [
    "REQUIRED_CAR_FIELDS",
    "Car",
    "CarFilters",
    "CarInput",
    "CarRepository",
    "CarService",
]
