# src/core/notifications/emails.py
"""
Шаблоны транзакционных писем. Каждая функция возвращает (subject, html).
"""

from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Any, Optional

BRAND = "CarSelling Platform"


def _layout(title: str, body: str) -> str:
    year = datetime.now().year
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; '
        'max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #ddd; border-radius: 8px;">'
        f'<h1 style="color: #007bff; text-align: center;">{BRAND}</h1>'
        f'<p style="font-size: 18px; color: #555; text-align: center;">{escape(title)}</p>'
        f"{body}"
        '<div style="text-align: center; margin-top: 30px; font-size: 12px; color: #777;">'
        f"<p>&copy; {year} {BRAND}. All rights reserved.</p>"
        "<p>This is an automated message, please do not reply to this email.</p>"
        "</div></div>"
    )


def _table(rows: list[tuple[str, Any]]) -> str:
    cells = "".join(
        f'<tr><td style="padding: 6px 0;"><strong>{escape(label)}:</strong></td>'
        f'<td style="padding: 6px 0;">{escape(str(value if value not in (None, "") else "N/A"))}</td></tr>'
        for label, value in rows
    )
    return f'<table width="100%" cellpadding="0" cellspacing="0">{cells}</table>'


def otp_email(code: str, ttl_minutes: int) -> tuple[str, str]:
    body = (
        "<p>Your verification code is:</p>"
        f'<p style="font-size: 28px; font-weight: bold; letter-spacing: 6px; text-align: center;">{escape(code)}</p>'
        f"<p>This code expires in {ttl_minutes} minutes.</p>"
    )
    return f"Your OTP Code - {BRAND}", _layout("Verification Code", body)


def password_reset_email(username: str, reset_url: str, ttl_minutes: int) -> tuple[str, str]:
    body = (
        f"<p>Hello {escape(username)},</p>"
        "<p>We received a request to reset your password.</p>"
        f'<p style="text-align: center;"><a href="{escape(reset_url, quote=True)}" '
        'style="background-color: #007bff; color: white; padding: 12px 24px; '
        'text-decoration: none; border-radius: 5px;">Reset Your Password</a></p>'
        f"<p>This link will expire in {ttl_minutes} minutes.</p>"
        "<p>If you did not request a password reset, please ignore this email.</p>"
    )
    return f"Password Reset Request - {BRAND}", _layout("Password Reset", body)


def booking_admin_email(
    admin_name: str,
    car: dict[str, Any],
    customer: dict[str, Any],
    details: dict[str, Any],
) -> tuple[str, str]:
    body = (
        f"<p>Dear {escape(admin_name or 'Admin')},</p>"
        "<p>A new booking has been made for your car. Please review the details below:</p>"
        + _table([
            ("Car Title", car.get("title")),
            ("Brand", car.get("brand")),
            ("Model", car.get("model")),
            ("Booked By", f"{customer.get('username')} ({customer.get('email')})"),
            ("Contact Phone", details.get("phone")),
            ("Additional Notes", details.get("notes")),
        ])
    )
    return f"New Car Booking Notification - {BRAND}", _layout("New Car Booking Received!", body)


def booking_user_email(username: str, car: dict[str, Any], details: dict[str, Any]) -> tuple[str, str]:
    body = (
        f"<p>Dear {escape(username or 'User')},</p>"
        "<p>Your car booking has been submitted and is pending approval.</p>"
        + _table([
            ("Car Title", car.get("title")),
            ("Brand", car.get("brand")),
            ("Model", car.get("model")),
            ("Booking Status", "Pending"),
            ("Contact Phone", details.get("phone")),
            ("Additional Notes", details.get("notes")),
        ])
        + "<p>The car owner will contact you shortly to confirm the booking.</p>"
    )
    return f"Booking Confirmation - {BRAND}", _layout("Booking Confirmation", body)


def payment_admin_email(
    admin_name: str,
    customer_name: str,
    amount: Any,
    car_title: Optional[str],
    payment_method: str,
) -> tuple[str, str]:
    body = (
        f"<p>Dear {escape(admin_name or 'Admin')},</p>"
        "<p>A new payment has been submitted and is waiting for your review.</p>"
        + _table([
            ("Customer", customer_name),
            ("Car", car_title),
            ("Amount", amount),
            ("Payment Method", payment_method),
        ])
    )
    return f"New Payment Received - {BRAND}", _layout("New Payment Received", body)
