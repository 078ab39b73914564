"""Caller identities.

A caller is identified either by an email address (a registered user) or by
its IP address (anonymous). The kind is decided once, when the raw string is
parsed, and only email identities can own sessions.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from access_control.core.errors import ValidationAppError

LIMIT_KEY_PREFIX = "limit:"


@dataclass(frozen=True)
class EmailIdentity:
    """Identity of a registered user."""

    value: str

    kind = "email"

    @property
    def limit_key(self) -> str:
        return f"{LIMIT_KEY_PREFIX}{self.value}"


@dataclass(frozen=True)
class IPIdentity:
    """Identity of an anonymous caller, keyed by client address."""

    value: str

    kind = "ip"

    @property
    def limit_key(self) -> str:
        return f"{LIMIT_KEY_PREFIX}{self.value}"


Identity = EmailIdentity | IPIdentity


def parse_identity(raw: str) -> Identity:
    """Classify a raw email-or-IP string.

    Args:
        raw: Email address or IP address as received from the caller.

    Returns:
        EmailIdentity when the value contains ``@``, IPIdentity otherwise.

    Raises:
        ValidationAppError: If the value is empty after trimming.

    Examples:
        >>> parse_identity("a@b.com")
        EmailIdentity(value='a@b.com')
        >>> parse_identity(" 10.0.0.1 ")
        IPIdentity(value='10.0.0.1')
    """
    value = (raw or "").strip()
    if not value:
        raise ValidationAppError(
            code="identity_empty",
            message="Identity must be a non-empty email or IP address",
        )
    if "@" in value:
        return EmailIdentity(value)
    return IPIdentity(value)


def hash_identity(identity: Identity) -> str:
    """Hash an identity for logging without exposing emails or addresses."""
    return hashlib.sha256(identity.value.encode()).hexdigest()[:16]
