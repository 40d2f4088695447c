"""Contact-channel identifiers.

Each deployment picks one channel through ``IDENTIFIER_KIND``. A channel knows
how to normalize raw input and reject values that cannot be reached.
"""
from __future__ import annotations

import re

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .core import errors
from .core.config import settings

_email_adapter = TypeAdapter(EmailStr)
_MOBILE_SEPARATORS = re.compile(r"[\s\-\.\(\)]")


class EmailIdentifier:
    kind = "email"
    label = "Email"

    def normalize(self, raw: str) -> str:
        return (raw or "").strip().lower()

    def validate(self, raw: str) -> str:
        value = self.normalize(raw)
        if not value:
            raise errors.ValidationError("Email is required")
        try:
            _email_adapter.validate_python(value)
        except PydanticValidationError:
            raise errors.ValidationError("Please enter a valid email address")
        return value


class MobileIdentifier:
    kind = "mobile"
    label = "Mobile number"

    def normalize(self, raw: str) -> str:
        value = _MOBILE_SEPARATORS.sub("", (raw or "").strip())
        return value[1:] if value.startswith("+") else value

    def validate(self, raw: str) -> str:
        value = self.normalize(raw)
        if not value:
            raise errors.ValidationError("Mobile number is required")
        if not (value.isascii() and value.isdigit()) or not (
            settings.MOBILE_MIN_DIGITS <= len(value) <= settings.MOBILE_MAX_DIGITS
        ):
            raise errors.ValidationError(
                f"Mobile number must have {settings.MOBILE_MIN_DIGITS}"
                f"-{settings.MOBILE_MAX_DIGITS} digits"
            )
        return value


IDENTIFIERS = {
    EmailIdentifier.kind: EmailIdentifier(),
    MobileIdentifier.kind: MobileIdentifier(),
}


def current_identifier():
    return IDENTIFIERS[settings.IDENTIFIER_KIND]
