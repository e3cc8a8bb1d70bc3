"""Unit tests for auth/models.py -- value-type parsing.

Covers:
- Email: empty / missing "@" rejected, valid addresses accepted verbatim
- Password: length boundary at 8, no other policy
- LoginAttemptId / TwoFACode: generate() output always re-parses
"""

import itertools

import pytest

from auth.errors import InvalidFormatError, PasswordTooShortError
from auth.models import Email, LoginAttemptId, Password, TwoFACode


_LOCAL_PARTS = ["bob", "Alice.Smith", "user+tag", "a_b-c", "x9", "o'neil"]
_DOMAINS = [
    "example.com",
    "sub.example.co.uk",
    "example.io",
    "localhost",
    "b",
    "mail.test",
    "host.local",
    "my-host.internal",
]
VALID_EMAILS = [f"{local}@{domain}" for local, domain in itertools.product(_LOCAL_PARTS, _DOMAINS)]


class TestEmail:
    @pytest.mark.parametrize(
        "raw",
        ["", "bobatexample.com", "@example.com", "bob@", "bob@@example.com", "bob example@example.com"],
    )
    def test_invalid_emails_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidFormatError):
            Email.parse(raw)

    @pytest.mark.parametrize("raw", VALID_EMAILS)
    def test_valid_emails_round_trip(self, raw: str) -> None:
        """Accepted addresses keep their exact text, including case."""
        email = Email.parse(raw)
        assert str(email) == raw
        assert email.value == raw

    @pytest.mark.parametrize("raw", ["bob@localhost", "a@b", "bob@example", "user@mail.test", "x@host.local"])
    def test_private_and_single_label_domains_accepted(self, raw: str) -> None:
        """Only syntax is checked; deliverability policy does not apply."""
        assert Email.parse(raw).value == raw

    def test_email_is_case_sensitive(self) -> None:
        assert Email.parse("Bob@example.com") != Email.parse("bob@example.com")


class TestPassword:
    @pytest.mark.parametrize("raw", ["", "a", "abc", "1234567"])
    def test_short_passwords_rejected(self, raw: str) -> None:
        with pytest.raises(PasswordTooShortError):
            Password.parse(raw)

    def test_too_short_is_a_format_error(self) -> None:
        """The service catches one exception type for every parse failure."""
        assert issubclass(PasswordTooShortError, InvalidFormatError)

    @pytest.mark.parametrize("raw", ["12345678", "password123", "        ", "x" * 128])
    def test_passwords_of_eight_or_more_accepted(self, raw: str) -> None:
        assert Password.parse(raw).value == raw

    def test_repr_hides_value(self) -> None:
        assert "password123" not in repr(Password.parse("password123"))


class TestLoginAttemptId:
    def test_generated_ids_parse(self) -> None:
        generated = LoginAttemptId.generate()
        assert LoginAttemptId.parse(generated.value) == generated

    def test_generated_ids_are_unique(self) -> None:
        assert len({LoginAttemptId.generate().value for _ in range(50)}) == 50

    @pytest.mark.parametrize("raw", ["", "123", "notavalidloginattemptid", "٠" * 32])
    def test_invalid_ids_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidFormatError):
            LoginAttemptId.parse(raw)


class TestTwoFACode:
    def test_generated_codes_are_six_digits(self) -> None:
        for _ in range(50):
            code = TwoFACode.generate()
            assert len(code.value) == 6
            assert code.value.isdigit()
            assert TwoFACode.parse(code.value) == code

    @pytest.mark.parametrize("raw", ["", "12345", "1234567", "abcdef", "12 456", "١٢٣٤٥٦"])
    def test_invalid_codes_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidFormatError):
            TwoFACode.parse(raw)

    def test_leading_zeros_preserved(self) -> None:
        assert TwoFACode.parse("000123").value == "000123"
