"""
auth/models.py -- Domain value types for authentication entities.

Pattern: Value Object. Each type wraps a plain string and can only be
constructed through parse() (untrusted input) or generate() (fresh values).
Once built, an instance is known-valid and immutable, so stores and the
service never re-check format.

Equality is exact string comparison -- no case folding or trimming. Email is
case-sensitive: "Bob@example.com" and "bob@example.com" are two
different identities.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

import email_validator
from email_validator import EmailNotValidError, validate_email

from auth.errors import InvalidFormatError, PasswordTooShortError

if TYPE_CHECKING:
    from auth.passwords import HashedPassword

MIN_PASSWORD_LENGTH = 8
TWO_FA_CODE_LENGTH = 6

# Identities on private or reserved domains (localhost, .test, .internal)
# are valid here; email_validator rejects them unless removed from this list.
email_validator.SPECIAL_USE_DOMAIN_NAMES.clear()


@dataclass(frozen=True)
class Email:
    """A syntactically valid email address, stored exactly as supplied."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> Email:
        """Validate raw against RFC 5322 address syntax.

        Deliverability policy (DNS lookups, a dot in the domain) is off: this is
        a syntax check only, so "bob@localhost" parses.
        The original text is kept rather than email_validator's normalized
        form, so str(Email.parse(s)) == s for every accepted s.
        """
        if not raw:
            raise InvalidFormatError("Email must not be empty.")
        try:
            validate_email(raw, check_deliverability=False, globally_deliverable=False)
        except EmailNotValidError as exc:
            raise InvalidFormatError(f"{raw} is not a valid email.") from exc
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Password:
    """A raw password that passed the length check. Never persisted."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> Password:
        if len(raw) < MIN_PASSWORD_LENGTH:
            raise PasswordTooShortError("Invalid password provided.")
        return cls(raw)

    def __repr__(self) -> str:
        return "Password('********')"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LoginAttemptId:
    """Opaque id returned to the client when a login needs a second factor."""

    value: str

    @classmethod
    def generate(cls) -> LoginAttemptId:
        return cls(str(uuid.uuid4()))

    @classmethod
    def parse(cls, raw: str) -> LoginAttemptId:
        if not raw.isascii():
            raise InvalidFormatError("Invalid login attempt id.")
        try:
            uuid.UUID(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidFormatError("Invalid login attempt id.") from exc
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TwoFACode:
    """Six-digit one-time code delivered out of band."""

    value: str

    @classmethod
    def generate(cls) -> TwoFACode:
        return cls(f"{secrets.randbelow(10**TWO_FA_CODE_LENGTH):0{TWO_FA_CODE_LENGTH}d}")

    @classmethod
    def parse(cls, raw: str) -> TwoFACode:
        # str.isdigit() accepts non-ASCII digits such as "٣"; restrict to 0-9.
        if len(raw) != TWO_FA_CODE_LENGTH or not all("0" <= ch <= "9" for ch in raw):
            raise InvalidFormatError("Invalid 2FA code.")
        return cls(raw)

    def __repr__(self) -> str:
        return "TwoFACode('******')"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class User:
    """A registered identity.

    Frozen: a change (new password, 2FA toggled) is a new User written over the
    old record, never an in-place mutation shared between requests.
    """

    email: Email
    password_hash: HashedPassword
    requires_2fa: bool = False
