"""Tests for field validation helpers."""
from datetime import date

import pytest

from issuetracker_core.errors import DomainError, ErrorKind
from issuetracker_core.validator import (
    Validator,
    check_after,
    check_length,
    validate_email,
    validate_password_plaintext,
    validate_token_plaintext,
)


class TestValidator:
    """Test error collection."""

    def test_first_error_for_a_field_wins(self):
        """Test that later messages for the same field are ignored."""
        v = Validator()
        v.add_error("name", "first")
        v.add_error("name", "second")
        assert v.errors == {"name": "first"}

    def test_raise_if_invalid_sorts_fields(self):
        """Test that the raised error lists fields in sorted order."""
        v = Validator()
        v.check(False, "title", "bad")
        v.check(False, "description", "bad")
        with pytest.raises(DomainError) as exc_info:
            v.raise_if_invalid()
        assert exc_info.value.kind == ErrorKind.FAILED_VALIDATION
        assert list(exc_info.value.errors) == ["description", "title"]

    def test_valid_does_not_raise(self):
        v = Validator()
        v.check(True, "name", "unused")
        assert v.valid
        v.raise_if_invalid()


class TestFieldChecks:
    """Test individual field rules."""

    def test_length_counts_bytes(self):
        """Test that multi-byte characters count by encoded length."""
        v = Validator()
        check_length(v, "éé", "name", 4, 10)  # 4 bytes
        assert v.valid

        v = Validator()
        check_length(v, "abcd", "name", 5, 10)
        assert v.errors == {"name": "must not be less than 5 bytes long"}

    def test_missing_value(self):
        v = Validator()
        check_length(v, "", "name", 5, 500)
        assert v.errors == {"name": "must be provided"}

    def test_dates_must_be_strictly_after(self):
        """Test that equal dates fail the ordering check."""
        v = Validator()
        check_after(v, date(2026, 1, 1), date(2026, 1, 1), "target_end_date", "must not be before start date")
        assert "target_end_date" in v.errors

    def test_email(self):
        v = Validator()
        validate_email(v, "alice@example.com")
        assert v.valid

        v = Validator()
        validate_email(v, "not-an-email")
        assert v.errors == {"email": "must be a valid email address"}

    def test_password_bounds(self):
        """Test the 8 to 72 byte password window."""
        for password, ok in (("short", False), ("8charsOK", True), ("x" * 72, True), ("x" * 73, False)):
            v = Validator()
            validate_password_plaintext(v, password)
            assert v.valid is ok, password

    def test_token_length(self):
        v = Validator()
        validate_token_plaintext(v, "A" * 25)
        assert v.errors == {"token": "must be 26 bytes long"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
