"""Input hygiene and credential strength rules shared by the auth endpoints."""

from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
MIN_PASSWORD_LENGTH = 8

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' 'unsafe-inline' 'unsafe-eval'; "
        "style-src 'self' 'unsafe-inline';"
    ),
}


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def password_policy_violations(password: str) -> list[str]:
    """Return every strength rule the password breaks (empty when it is fine).

    Messages are user-facing and therefore German.
    """

    errors: list[str] = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append("Passwort muss mindestens 8 Zeichen lang sein")
    if not re.search(r"[A-Z]", password):
        errors.append("Passwort muss mindestens einen Großbuchstaben enthalten")
    if not re.search(r"[a-z]", password):
        errors.append("Passwort muss mindestens einen Kleinbuchstaben enthalten")
    if not re.search(r"\d", password):
        errors.append("Passwort muss mindestens eine Zahl enthalten")
    if not SPECIAL_CHARACTERS.search(password):
        errors.append("Passwort muss mindestens ein Sonderzeichen enthalten")

    return errors


def sanitize_input(value: str) -> str:
    """Trim whitespace and strip angle brackets from free-text input."""

    return value.strip().replace("<", "").replace(">", "")
