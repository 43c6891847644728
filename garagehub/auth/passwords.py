"""Password hashing and password policy."""

from __future__ import annotations

import re

from passlib.context import CryptContext

from garagehub.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

MIN_PASSWORD_LENGTH = 8
PHONE_PATTERN = re.compile(r"^(\+?60|0)[0-9]{8,10}$")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def password_policy_errors(password: str) -> list[str]:
    """Return the list of unmet password requirements (empty when valid)."""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"at least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        errors.append("an uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("a lowercase letter")
    if not re.search(r"\d", password):
        errors.append("a digit")
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append("a special character")
    return errors


def is_valid_phone(phone: str) -> bool:
    """Malaysian mobile/landline format, with or without +60."""
    return bool(PHONE_PATTERN.match(phone.replace(" ", "").replace("-", "")))
