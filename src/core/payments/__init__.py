# src/core/payments/__init__.py
"""Домен платежей."""

from src.core.payments.models import REVIEW_STATUSES, Payment, PaymentInput, PaymentReview
from src.core.payments.repository import PaymentRepository
from src.core.payments.service import PaymentService

__all__ = [
    "REVIEW_STATUSES",
    "Payment",
    "PaymentInput",
    "PaymentReview",
    "PaymentRepository",
    "PaymentService",
]
