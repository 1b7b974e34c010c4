"""Field validation helpers shared by the domain services."""
import re
from datetime import date
from typing import Optional

from .errors import DomainError, failed_validation
from .tokens import TOKEN_LENGTH

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


class Validator:
    """Collects field errors; the first message recorded for a field wins."""

    def __init__(self):
        self.errors: dict[str, str] = {}

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        if key not in self.errors:
            self.errors[key] = message

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        """Raise a FAILED_VALIDATION DomainError carrying every collected error."""
        if not self.valid:
            raise self.as_error()

    def as_error(self) -> DomainError:
        return failed_validation(self.errors)


def permitted_value(value, *permitted) -> bool:
    return value in permitted


def matches(value: str, rx: re.Pattern) -> bool:
    return rx.match(value) is not None


def byte_length(value: Optional[str]) -> int:
    return len((value or "").encode("utf-8"))


def check_length(v: Validator, value: Optional[str], key: str, minimum: int, maximum: int) -> None:
    """Check that value is provided and its UTF-8 length is within bounds."""
    v.check(bool(value), key, "must be provided")
    v.check(byte_length(value) >= minimum, key, f"must not be less than {minimum} bytes long")
    v.check(byte_length(value) <= maximum, key, f"must not be more than {maximum} bytes long")


def check_after(v: Validator, later: Optional[date], earlier: Optional[date], key: str, message: str) -> None:
    if later is not None and earlier is not None:
        v.check(later > earlier, key, message)


def validate_email(v: Validator, email: Optional[str]) -> None:
    v.check(bool(email), "email", "must be provided")
    v.check(matches(email or "", EMAIL_RX), "email", "must be a valid email address")


def validate_password_plaintext(v: Validator, password: Optional[str]) -> None:
    v.check(bool(password), "password", "must be provided")
    v.check(byte_length(password) >= 8, "password", "must be at least 8 bytes long")
    v.check(byte_length(password) <= 72, "password", "must not be more than 72 bytes long")


def validate_token_plaintext(v: Validator, plaintext: Optional[str]) -> None:
    v.check(bool(plaintext), "token", "must be provided")
    v.check(len(plaintext or "") == TOKEN_LENGTH, "token", f"must be {TOKEN_LENGTH} bytes long")
